"""
JSON API plumbing shared by the engine's endpoints.

Views decorated with `api_endpoint` receive the parsed, snake_cased body
as `request.data`, and raise `PDCError` subclasses instead of building
error responses themselves.
"""
import json
import logging
import re
from functools import wraps

from django.core.paginator import EmptyPage, Paginator
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from .exceptions import ForbiddenException, PDCError, ValidationException
from .utils import RoleChecker

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

_CAMEL_RE = re.compile(r'(?<!^)(?=[A-Z])')


def camel_to_snake(name):
    return _CAMEL_RE.sub('_', name).lower()


def snake_keys(value):
    """Recursively convert dict keys from camelCase to snake_case."""
    if isinstance(value, dict):
        return {camel_to_snake(k): snake_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [snake_keys(v) for v in value]
    return value


def parse_json_body(request):
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise ValidationException('Request body must be valid JSON.')
    if not isinstance(payload, dict):
        raise ValidationException('Request body must be a JSON object.')
    return snake_keys(payload)


def error_response(exc):
    return JsonResponse({'error': exc.to_dict()}, status=exc.http_status)


def api_endpoint(methods=('GET',), roles=()):
    """
    Decorate a function view as a JSON endpoint.

    Args:
        methods: Allowed HTTP methods
        roles: Role codes of which the caller must hold at least one
    """
    def decorator(view):
        @csrf_exempt
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if request.method not in methods:
                response = JsonResponse(
                    {'error': {'code': 'METHOD_NOT_ALLOWED', 'message': f'{request.method} not allowed.'}},
                    status=405
                )
                response['Allow'] = ', '.join(methods)
                return response

            if not request.user.is_authenticated:
                return JsonResponse(
                    {'error': {'code': 'UNAUTHORIZED', 'message': 'Authentication required.'}},
                    status=401
                )

            try:
                if roles and not RoleChecker.has_any_role(request.user, roles):
                    raise ForbiddenException()
                request.data = parse_json_body(request) if request.method != 'GET' else {}
                return view(request, *args, **kwargs)
            except PDCError as exc:
                if exc.retryable and exc.http_status >= 500:
                    logger.error("%s %s failed: %s", request.method, request.path, exc.message)
                else:
                    logger.warning("%s %s rejected (%s): %s", request.method, request.path, exc.code, exc.message)
                return error_response(exc)

        return wrapper
    return decorator


def get_page_params(request):
    """Zero-based page index and page size from the query string."""
    try:
        page = int(request.GET.get('page', 0))
        size = int(request.GET.get('size', DEFAULT_PAGE_SIZE))
    except ValueError:
        raise ValidationException('page and size must be integers.')
    if page < 0:
        raise ValidationException('page must be zero or greater.')
    if size < 1 or size > MAX_PAGE_SIZE:
        raise ValidationException(f'size must be between 1 and {MAX_PAGE_SIZE}.')
    return page, size


def paginate(queryset, request, serialize):
    """
    Slice a queryset into the page structure the API client expects.

    Returns:
        dict: content, page, size, totalElements, totalPages
    """
    page, size = get_page_params(request)
    paginator = Paginator(queryset, size)
    try:
        content = [serialize(obj) for obj in paginator.page(page + 1).object_list]
    except EmptyPage:
        content = []
    return {
        'content': content,
        'page': page,
        'size': size,
        'totalElements': paginator.count,
        'totalPages': paginator.num_pages if paginator.count else 0,
    }
