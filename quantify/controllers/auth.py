from flask import Blueprint, jsonify, request
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf

from quantify import limiter
from quantify.services.security import SecurityService
from quantify.utils.helpers import get_json_body
from quantify.utils.logging_config import log_security_event

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/register', methods=['POST'])
def register():
    data = get_json_body()
    user = SecurityService.register_user(data)

    message = 'Registration successful! Please login.'
    if user.status != 'ACTIVE':
        message = 'Registration successful! Your account is awaiting approval.'

    return jsonify({'message': message, 'user': user.to_dict()}), 201


@auth_bp.route('/login', methods=['POST'])
@limiter.limit('5 per minute')
def login():
    data = get_json_body()
    user = SecurityService.authenticate_user(data.get('email'), data.get('password'))

    login_user(user, remember=bool(data.get('remember_me')))
    return jsonify({'message': 'Logged in successfully', 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    log_security_event('LOGOUT', user_id=current_user.id, ip_address=request.remote_addr)
    logout_user()
    return jsonify({'message': 'You have been logged out successfully.'})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify({'user': current_user.to_dict()})


@auth_bp.route('/csrf-token')
def csrf_token():
    return jsonify({'csrf_token': generate_csrf()})
