from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from dotenv import load_dotenv

from quantify.utils.logging_config import setup_logging
from quantify.utils.error_handler import init_error_handlers, handle_error_response

load_dotenv()

db = SQLAlchemy()
login_manager = LoginManager()
csrf = CSRFProtect()
limiter = Limiter(key_func=get_remote_address)

CONFIGS = {
    'development': 'config.development.DevelopmentConfig',
    'production': 'config.production.ProductionConfig',
    'testing': 'config.testing.TestingConfig',
    'default': 'config.base.Config',
}

# (blueprint module, attribute, url prefix)
BLUEPRINTS = (
    ('quantify.controllers.main', 'main_bp', None),
    ('quantify.controllers.auth', 'auth_bp', '/api/auth'),
    ('quantify.controllers.stores', 'stores_bp', '/api/stores'),
    ('quantify.controllers.user', 'user_bp', '/api/user'),
    ('quantify.controllers.owner', 'owner_bp', '/api/owner'),
    ('quantify.controllers.admin', 'admin_bp', '/api/admin'),
)


def register_extensions(app):
    db.init_app(app)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        from quantify.models import User
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return handle_error_response('UNAUTHORIZED', 'Authentication required', 401)


def register_blueprints(app):
    from importlib import import_module

    for module_name, attr, prefix in BLUEPRINTS:
        blueprint = getattr(import_module(module_name), attr)
        app.register_blueprint(blueprint, url_prefix=prefix)


def create_app(config_name='default'):
    app = Flask(__name__)
    app.config.from_object(CONFIGS.get(config_name, CONFIGS['default']))

    setup_logging(
        app.config['LOG_LEVEL'],
        log_dir=app.config['LOG_DIR'],
        log_to_file=app.config['LOG_TO_FILE']
    )

    register_extensions(app)
    init_error_handlers(app)
    register_blueprints(app)

    with app.app_context():
        from quantify import models  # noqa: F401
        db.create_all()

    return app
