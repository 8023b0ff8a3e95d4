"""
==============================================================================
STOREFRONT - JSON API HELPERS
==============================================================================
Small helpers shared by every app's JSON views.

    - ApiError: raise from a view to answer {"error": ...} with a status
    - api_view: restricts HTTP methods and turns errors into JSON responses
    - customer_required / admin_required: session based access control
    - parse_json / form_errors: request body and form error helpers

Author: Storefront Development Team
==============================================================================
"""

import json
import logging
import re
from functools import wraps

from django.core.exceptions import ValidationError
from django.http import Http404, JsonResponse

logger = logging.getLogger('storefront.api')


class ApiError(Exception):
    """An error that should reach the client as a JSON error body."""

    def __init__(self, message, status=400, errors=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.errors = errors


def error_response(message, status=400, errors=None):
    body = {'error': message}
    if errors:
        body['errors'] = errors
    return JsonResponse(body, status=status)


_CAMEL_RE = re.compile(r'(?<!^)(?=[A-Z])')


def snake_case(name):
    """customerEmail -> customer_email"""
    return _CAMEL_RE.sub('_', name).lower()


def snake_keys(data):
    """Convert the top-level keys of a client payload to snake_case."""
    return {snake_case(key): value for key, value in data.items()}


def parse_json(request):
    """
    Decode the JSON request body.

    The client speaks camelCase; top-level keys are converted to snake_case
    so they line up with form field names. An empty body is treated as an
    empty object. Anything that is not a JSON object raises ApiError (400).
    """
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise ApiError('Invalid JSON body')
    if not isinstance(data, dict):
        raise ApiError('Request body must be a JSON object')
    return snake_keys(data)


def form_errors(form):
    """Flatten a Django form's errors to {field: [messages]}."""
    return {field: [str(e) for e in errs] for field, errs in form.errors.items()}


def api_view(methods):
    """
    Decorator for JSON endpoints.

    - Answers 405 for methods not in `methods`
    - ApiError -> its status and message
    - Http404 -> 404 {"error": "Not found"}
    - ValidationError -> 400 with the validation messages
    """
    allowed = [m.upper() for m in methods]

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            if request.method not in allowed:
                response = error_response('Method not allowed', status=405)
                response['Allow'] = ', '.join(allowed)
                return response
            try:
                return view_func(request, *args, **kwargs)
            except ApiError as exc:
                return error_response(exc.message, exc.status, exc.errors)
            except Http404:
                return error_response('Not found', status=404)
            except ValidationError as exc:
                return error_response('; '.join(exc.messages), status=400)
        return wrapper
    return decorator


def customer_required(view_func):
    """Require a logged-in user (any role)."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            raise ApiError('Authentication required', status=401)
        return view_func(request, *args, **kwargs)
    return wrapper


def admin_required(view_func):
    """Require a logged-in admin user."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            raise ApiError('Authentication required', status=401)
        if not request.user.is_admin_user():
            logger.warning('Admin endpoint %s refused for user %s',
                           request.path, request.user.pk)
            raise ApiError('Admin access required', status=403)
        return view_func(request, *args, **kwargs)
    return wrapper
