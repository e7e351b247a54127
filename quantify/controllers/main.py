from flask import Blueprint, jsonify
from sqlalchemy import text

from quantify import db
from quantify.utils.helpers import utcnow
from quantify.utils.logging_config import get_logger

main_bp = Blueprint('main', __name__)

logger = get_logger('quantify.health')


@main_bp.route('/')
def index():
    return jsonify({
        'service': 'quantify',
        'description': 'Store rating platform API',
        'endpoints': ['/api/auth', '/api/stores', '/api/user', '/api/owner', '/api/admin'],
    })


@main_bp.route('/health')
def health():
    try:
        db.session.execute(text('SELECT 1'))
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return jsonify({'status': 'unhealthy', 'database': 'unavailable'}), 503

    return jsonify({'status': 'healthy', 'database': 'ok', 'timestamp': utcnow().isoformat()})
