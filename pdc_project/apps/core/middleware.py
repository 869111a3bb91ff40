"""
Core middleware for the PDC engine.
"""
import threading
import uuid
from contextlib import contextmanager

from django.utils.deprecation import MiddlewareMixin

# Thread local storage for current user and request
_thread_locals = threading.local()


def get_current_user():
    """Get the current user from thread local storage."""
    return getattr(_thread_locals, 'user', None)


def get_current_request():
    """Get the current request from thread local storage."""
    return getattr(_thread_locals, 'request', None)


def get_request_id():
    """Correlation id of the request being served, if any."""
    return getattr(_thread_locals, 'request_id', None)


@contextmanager
def acting_as(user):
    """
    Publish `user` as the current user for code running outside a request
    (Celery tasks, management commands, tests).
    """
    previous = getattr(_thread_locals, 'user', None)
    _thread_locals.user = user
    try:
        yield user
    finally:
        _thread_locals.user = previous


class AuditMiddleware(MiddlewareMixin):
    """
    Store the current user, request and a correlation id in thread local
    storage so models can track created_by/updated_by and log records can
    carry the request id.
    """

    def process_request(self, request):
        request_id = request.META.get('HTTP_X_REQUEST_ID') or uuid.uuid4().hex
        request.request_id = request_id
        _thread_locals.user = getattr(request, 'user', None)
        _thread_locals.request = request
        _thread_locals.request_id = request_id

    def process_response(self, request, response):
        request_id = getattr(request, 'request_id', None)
        if request_id:
            response['X-Request-ID'] = request_id
        for attr in ('user', 'request', 'request_id'):
            if hasattr(_thread_locals, attr):
                delattr(_thread_locals, attr)
        return response
