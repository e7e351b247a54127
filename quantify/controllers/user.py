from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from quantify.services.ratings import RatingService
from quantify.services.users import UserService
from quantify.utils.helpers import get_json_body, pagination_args
from quantify.utils.reporting import ReportingService
from quantify.utils.security import ROLE_ADMIN, ROLE_USER, current_auth_context, role_required

user_bp = Blueprint('user', __name__)

reporting = ReportingService()


@user_bp.route('/dashboard/<int:user_id>')
@login_required
@role_required(ROLE_USER, ROLE_ADMIN)
def dashboard(user_id):
    return jsonify(reporting.user_dashboard(current_auth_context(), user_id))


@user_bp.route('/reviews')
@login_required
@role_required(ROLE_USER)
def reviews():
    page, limit = pagination_args()
    return jsonify(RatingService.list_ratings(
        user_id=current_user.id,
        value=request.args.get('rating') or None,
        search=request.args.get('search', '').strip() or None,
        sort=request.args.get('sort'),
        page=page,
        limit=limit
    ))


@user_bp.route('/reviews/<int:rating_id>', methods=['PATCH'])
@login_required
@role_required(ROLE_USER)
def update_review(rating_id):
    rating = RatingService.update_rating(current_auth_context(), rating_id, get_json_body())
    return jsonify({'message': 'Review updated successfully', 'review': rating.to_dict(include_store=True)})


@user_bp.route('/reviews/<int:rating_id>', methods=['DELETE'])
@login_required
@role_required(ROLE_USER)
def delete_review(rating_id):
    RatingService.delete_rating(current_auth_context(), rating_id)
    return jsonify({'message': 'Review deleted successfully'})


@user_bp.route('/profile')
@login_required
@role_required(ROLE_USER)
def profile():
    return jsonify(UserService.get_profile(current_user))


@user_bp.route('/profile', methods=['PATCH'])
@login_required
@role_required(ROLE_USER)
def update_profile():
    user = UserService.update_profile(current_user, get_json_body())
    return jsonify({'message': 'Profile updated successfully', 'user': user.to_dict()})
