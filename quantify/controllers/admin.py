from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from quantify.services.ratings import RatingService
from quantify.services.stores import StoreService
from quantify.services.users import UserService
from quantify.utils.error_handler import ValidationError
from quantify.utils.helpers import get_json_body, int_arg, pagination_args
from quantify.utils.reporting import ReportingService
from quantify.utils.security import ROLE_ADMIN, current_auth_context, role_required

admin_bp = Blueprint('admin', __name__)

reporting = ReportingService()


# Dashboard and analytics

@admin_bp.route('/dashboard')
@login_required
@role_required(ROLE_ADMIN)
def dashboard():
    return jsonify(reporting.platform_dashboard(current_auth_context()))


@admin_bp.route('/ratings/distribution')
@login_required
@role_required(ROLE_ADMIN)
def ratings_distribution():
    return jsonify({'distribution': reporting.ratings_distribution(current_auth_context())})


@admin_bp.route('/ratings/trend')
@login_required
@role_required(ROLE_ADMIN)
def ratings_trend():
    days = int_arg('days', default=current_app.config['PLATFORM_TREND_DAYS'], minimum=1, maximum=365)
    return jsonify({'days': days, 'trend': reporting.ratings_trend(current_auth_context(), days)})


@admin_bp.route('/ratings/analytics')
@login_required
@role_required(ROLE_ADMIN)
def ratings_analytics():
    store_id = int_arg('store_id', minimum=1)
    return jsonify(reporting.rating_analytics(current_auth_context(), store_id))


# Users

@admin_bp.route('/users')
@login_required
@role_required(ROLE_ADMIN)
def users():
    page, limit = pagination_args()
    return jsonify(UserService.list_users(
        search=request.args.get('search', '').strip() or None,
        role=request.args.get('role') or None,
        status=request.args.get('status') or None,
        sort=request.args.get('sort'),
        page=page,
        limit=limit
    ))


@admin_bp.route('/users', methods=['POST'])
@login_required
@role_required(ROLE_ADMIN)
def create_user():
    user = UserService.create_user(get_json_body())
    return jsonify({'message': 'User created successfully', 'user': user.to_dict()}), 201


@admin_bp.route('/users/<int:user_id>')
@login_required
@role_required(ROLE_ADMIN)
def user_details(user_id):
    return jsonify(UserService.get_user_detail(user_id))


@admin_bp.route('/users/<int:user_id>', methods=['PATCH'])
@login_required
@role_required(ROLE_ADMIN)
def update_user(user_id):
    user = UserService.update_user(user_id, get_json_body())
    return jsonify({'message': 'User updated successfully', 'user': user.to_dict()})


@admin_bp.route('/users/<int:user_id>', methods=['DELETE'])
@login_required
@role_required(ROLE_ADMIN)
def delete_user(user_id):
    UserService.delete_user(user_id)
    return jsonify({'message': 'User deleted successfully'})


# Stores

@admin_bp.route('/stores')
@login_required
@role_required(ROLE_ADMIN)
def stores():
    page, limit = pagination_args()
    return jsonify(StoreService.list_stores(
        search=request.args.get('search', '').strip() or None,
        status=request.args.get('status') or None,
        owner_id=int_arg('owner_id', minimum=1),
        sort=request.args.get('sort'),
        page=page,
        limit=limit
    ))


@admin_bp.route('/stores', methods=['POST'])
@login_required
@role_required(ROLE_ADMIN)
def create_store():
    store = StoreService.create_store(get_json_body())
    return jsonify({'message': 'Store created successfully', 'store': store.to_dict()}), 201


@admin_bp.route('/stores/<int:store_id>')
@login_required
@role_required(ROLE_ADMIN)
def store_details(store_id):
    return jsonify(StoreService.get_store_detail(store_id))


@admin_bp.route('/stores/<int:store_id>', methods=['PATCH'])
@login_required
@role_required(ROLE_ADMIN)
def update_store(store_id):
    store = StoreService.update_store(current_auth_context(), store_id, get_json_body())
    return jsonify({'message': 'Store updated successfully', 'store': store.to_dict()})


@admin_bp.route('/stores/<int:store_id>', methods=['DELETE'])
@login_required
@role_required(ROLE_ADMIN)
def delete_store(store_id):
    StoreService.delete_store(current_auth_context(), store_id)
    return jsonify({'message': 'Store deleted successfully'})


@admin_bp.route('/stores/<int:store_id>/owner', methods=['PATCH'])
@login_required
@role_required(ROLE_ADMIN)
def assign_store_owner(store_id):
    data = get_json_body()
    if 'owner_id' not in data:
        raise ValidationError('owner_id is required', {'field': 'owner_id'})

    owner_id = data['owner_id']
    if owner_id is not None and (isinstance(owner_id, bool) or not isinstance(owner_id, int)):
        raise ValidationError('owner_id must be an integer or null', {'field': 'owner_id'})

    store = StoreService.assign_owner(store_id, owner_id)
    return jsonify({'message': 'Store owner updated successfully', 'store': store.to_dict()})


# Ratings

@admin_bp.route('/ratings')
@login_required
@role_required(ROLE_ADMIN)
def ratings():
    page, limit = pagination_args()
    return jsonify(RatingService.list_all(
        store_id=int_arg('store_id', minimum=1),
        user_id=int_arg('user_id', minimum=1),
        value=request.args.get('rating') or None,
        search=request.args.get('search', '').strip() or None,
        sort=request.args.get('sort'),
        page=page,
        limit=limit
    ))


@admin_bp.route('/ratings/<int:rating_id>')
@login_required
@role_required(ROLE_ADMIN)
def rating_details(rating_id):
    rating = RatingService.get_rating_or_404(rating_id)
    return jsonify(rating.to_dict(include_store=True, include_user=True))


@admin_bp.route('/ratings/<int:rating_id>', methods=['DELETE'])
@login_required
@role_required(ROLE_ADMIN)
def delete_rating(rating_id):
    RatingService.delete_rating(current_auth_context(), rating_id)
    return jsonify({'message': 'Rating deleted successfully'})
