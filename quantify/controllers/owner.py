from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required, current_user

from quantify.services.ratings import RatingService
from quantify.services.stores import StoreService
from quantify.services.users import UserService
from quantify.utils.helpers import get_json_body, int_arg, pagination_args
from quantify.utils.reporting import ReportingService
from quantify.utils.security import ROLE_ADMIN, ROLE_OWNER, current_auth_context, role_required
from quantify.utils.sorting import StoreSort

owner_bp = Blueprint('owner', __name__)

reporting = ReportingService()


# Dashboards; admins may look at any owner, so the composer does the scoping

@owner_bp.route('/dashboard/<int:owner_id>')
@login_required
@role_required(ROLE_OWNER, ROLE_ADMIN)
def dashboard(owner_id):
    return jsonify(reporting.owner_dashboard(current_auth_context(), owner_id))


@owner_bp.route('/dashboard/<int:owner_id>/charts')
@login_required
@role_required(ROLE_OWNER, ROLE_ADMIN)
def dashboard_charts(owner_id):
    return jsonify(reporting.owner_charts(current_auth_context(), owner_id))


@owner_bp.route('/insights/<int:store_id>')
@login_required
@role_required(ROLE_OWNER, ROLE_ADMIN)
def store_insights(store_id):
    return jsonify(reporting.store_insights(current_auth_context(), store_id))


@owner_bp.route('/insights/<int:store_id>/reviewers')
@login_required
@role_required(ROLE_OWNER, ROLE_ADMIN)
def top_reviewers(store_id):
    limit = int_arg('limit', default=current_app.config['TOP_REVIEWERS_LIMIT'], minimum=1, maximum=50)
    return jsonify(reporting.top_reviewers(current_auth_context(), store_id, limit))


# Shops

@owner_bp.route('/shops')
@login_required
@role_required(ROLE_OWNER)
def shops():
    page, limit = pagination_args()
    return jsonify(StoreService.list_stores(
        owner_id=current_user.id,
        search=request.args.get('search', '').strip() or None,
        sort=request.args.get('sort'),
        default_sort=StoreSort.OLDEST,
        page=page,
        limit=limit
    ))


@owner_bp.route('/shops', methods=['POST'])
@login_required
@role_required(ROLE_OWNER)
def create_shop():
    store = StoreService.create_store_for_owner(current_auth_context(), get_json_body())
    return jsonify({'message': 'Store created successfully', 'store': store.to_dict()}), 201


@owner_bp.route('/shops/<int:store_id>', methods=['PATCH'])
@login_required
@role_required(ROLE_OWNER)
def update_shop(store_id):
    store = StoreService.update_store(current_auth_context(), store_id, get_json_body())
    return jsonify({'message': 'Store updated successfully', 'store': store.to_dict()})


@owner_bp.route('/shops/<int:store_id>', methods=['DELETE'])
@login_required
@role_required(ROLE_OWNER)
def delete_shop(store_id):
    StoreService.delete_store(current_auth_context(), store_id)
    return jsonify({'message': 'Store deleted successfully'})


# Reviews of the owner's stores

@owner_bp.route('/reviews')
@login_required
@role_required(ROLE_OWNER)
def reviews():
    store_id = int_arg('store_id', minimum=1)
    if store_id is not None:
        StoreService.get_owned_store(current_auth_context(), store_id)

    page, limit = pagination_args()
    return jsonify(RatingService.list_ratings(
        owner_id=current_user.id,
        store_id=store_id,
        value=request.args.get('rating') or None,
        search=request.args.get('search', '').strip() or None,
        sort=request.args.get('sort'),
        page=page,
        limit=limit
    ))


@owner_bp.route('/reviews/<int:rating_id>/flag', methods=['PATCH'])
@login_required
@role_required(ROLE_OWNER)
def flag_review(rating_id):
    data = get_json_body()
    rating = RatingService.flag_rating(current_auth_context(), rating_id, data.get('reason'))
    return jsonify({'message': 'Review flagged for moderation', 'review': rating.to_dict()})


# Profile

@owner_bp.route('/profile')
@login_required
@role_required(ROLE_OWNER)
def profile():
    return jsonify(UserService.get_profile(current_user))


@owner_bp.route('/profile', methods=['PATCH'])
@login_required
@role_required(ROLE_OWNER)
def update_profile():
    user = UserService.update_profile(current_user, get_json_body())
    return jsonify({'message': 'Profile updated successfully', 'user': user.to_dict()})
