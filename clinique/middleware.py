import logging
import time

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """Log method, path, status and duration of every request."""
    QUIET_PREFIXES = ('/healthz', '/metrics', '/static/')

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000
        path = request.path or ''
        level = logging.DEBUG if path.startswith(self.QUIET_PREFIXES) else logging.INFO
        logger.log(level, "%s %s -> %s (%.1f ms)", request.method, path, response.status_code, elapsed_ms)
        return response
