import logging
import time

logger = logging.getLogger('care.requests')


class RequestLogMiddleware:
    """Log method, path, status and duration of every request."""
    SKIP_PREFIXES = ('/static/', '/metrics')

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path or ''
        if path.startswith(self.SKIP_PREFIXES):
            return self.get_response(request)
        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000
        user = getattr(request, 'user', None)
        user_id = user.pk if user is not None and getattr(user, 'is_authenticated', False) else None
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(level, '%s %s -> %s (%.1f ms) user=%s',
                   request.method, path, response.status_code, elapsed_ms, user_id)
        return response
