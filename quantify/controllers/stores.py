from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from quantify import limiter
from quantify.services.ratings import RatingService
from quantify.services.stores import StoreService
from quantify.utils.error_handler import ValidationError
from quantify.utils.helpers import get_json_body, pagination_args
from quantify.utils.security import ROLE_ADMIN, ROLE_USER, STATUS_ACTIVE, current_auth_context, role_required
from quantify.utils.sorting import StoreSort

stores_bp = Blueprint('stores', __name__)


def min_rating_arg():
    raw = request.args.get('min_rating')
    if raw is None or raw == '':
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValidationError('min_rating must be a number', {'field': 'min_rating'})
    if not 0 <= value <= 5:
        raise ValidationError('min_rating must be between 0 and 5', {'field': 'min_rating'})
    return value


@stores_bp.route('/')
@login_required
def browse():
    """Browse stores with their average rating"""
    page, limit = pagination_args()
    return jsonify(StoreService.list_stores(
        search=request.args.get('search', '').strip() or None,
        category=request.args.get('category', '').strip() or None,
        status=None if current_user.role == ROLE_ADMIN else STATUS_ACTIVE,
        min_rating=min_rating_arg(),
        sort=request.args.get('sort'),
        default_sort=StoreSort.NAME,
        page=page,
        limit=limit
    ))


@stores_bp.route('/<int:store_id>')
@login_required
def store_details(store_id):
    viewer_id = current_user.id if current_user.role == ROLE_USER else None
    return jsonify(StoreService.get_store_detail(store_id, viewer_id=viewer_id))


@stores_bp.route('/<int:store_id>/reviews')
@login_required
def store_reviews(store_id):
    StoreService.get_store_or_404(store_id)
    page, limit = pagination_args()
    return jsonify(RatingService.list_ratings(store_id=store_id, page=page, limit=limit))


@stores_bp.route('/<int:store_id>/reviews', methods=['POST'])
@login_required
@role_required(ROLE_USER)
@limiter.limit('20 per hour')
def submit_review(store_id):
    rating = RatingService.create_rating(current_auth_context(), store_id, get_json_body())
    return jsonify({'message': 'Review submitted successfully', 'review': rating.to_dict()}), 201
