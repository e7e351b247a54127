from flask import current_app, has_request_context, request
from datetime import datetime, timezone
import math
import re

from quantify.utils.error_handler import ValidationError
from quantify.utils.security import sanitize_input

EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def utcnow():
    """Current UTC time as a naive datetime, matching stored timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_valid_email(email):
    return bool(email) and EMAIL_REGEX.match(email) is not None


def get_json_body():
    """Return the request JSON object, or raise if the body is not an object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def clean_text(data, field, max_length=None, required=False, min_length=None):
    """Pull a string field out of a payload, sanitized and length-checked."""
    value = data.get(field)
    if value is None:
        if required:
            raise ValidationError(f'{field} is required', {'field': field})
        return None
    if not isinstance(value, str):
        raise ValidationError(f'{field} must be a string', {'field': field})

    value = sanitize_input(value)
    if required and not value:
        raise ValidationError(f'{field} is required', {'field': field})
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f'{field} must not exceed {max_length} characters', {'field': field})
    if min_length is not None and value and len(value) < min_length:
        raise ValidationError(f'{field} must be at least {min_length} characters', {'field': field})
    return value


def clean_email(data, field='email', required=True):
    email = clean_text(data, field, max_length=120, required=required)
    if email is None:
        return None
    email = email.lower()
    if not is_valid_email(email):
        raise ValidationError('Please provide a valid email address', {'field': field})
    return email


def parse_rating_value(value, field='rating'):
    """Coerce a star value, rejecting anything outside 1..5."""
    if isinstance(value, bool) or value is None:
        raise ValidationError('Rating must be an integer between 1 and 5', {'field': field})
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or not 1 <= value <= 5:
        raise ValidationError('Rating must be an integer between 1 and 5', {'field': field})
    return value


def int_arg(name, default=None, minimum=None, maximum=None):
    """Read an integer query parameter."""
    raw = request.args.get(name)
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f'{name} must be an integer', {'field': name})
    if minimum is not None and value < minimum:
        raise ValidationError(f'{name} must be at least {minimum}', {'field': name})
    if maximum is not None and value > maximum:
        raise ValidationError(f'{name} must be at most {maximum}', {'field': name})
    return value


def pagination_args():
    """Read page and limit from the query string."""
    page = int_arg('page', default=1, minimum=1)
    limit = int_arg(
        'limit',
        default=current_app.config['DEFAULT_PAGE_SIZE'],
        minimum=1,
        maximum=current_app.config['MAX_PAGE_SIZE']
    )
    return page, limit


def paginated(items, page, limit, total):
    return {
        'items': items,
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'total_pages': math.ceil(total / limit) if limit else 0,
        }
    }


def isoformat(value):
    return value.isoformat() if value else None


def remote_addr():
    """Client address of the current request, if there is one."""
    return request.remote_addr if has_request_context() else None
