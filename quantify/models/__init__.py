from quantify import db

# Import models after db is defined
from .user import User
from .store import Store
from .rating import Rating

# Export models
__all__ = ['db', 'User', 'Store', 'Rating']
