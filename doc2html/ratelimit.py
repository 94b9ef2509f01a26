"""Fixed-window rate limiting on top of the Django cache.

The counter store is whatever cache backend is configured, so limits are shared
between processes when the cache is (Redis, Memcached, database cache).
"""
import logging

from django.conf import settings
from django.core.cache import caches
from django.http import JsonResponse

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMITS = {
    'window_seconds': 15 * 60,
    'max_requests': 100,
    'max_uploads': 10,
    'max_uploads_authenticated': 50,
}

TOO_MANY_REQUESTS_MESSAGE = 'Too many requests. Please try again later.'

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'Referrer-Policy': 'origin-when-cross-origin',
    'Permissions-Policy': 'camera=(), microphone=(), geolocation=()',
    'X-DNS-Prefetch-Control': 'off',
}


class FixedWindowRateLimiter:
    def __init__(self, cache, window_seconds, prefix='doc2html:ratelimit'):
        self.cache = cache
        self.window_seconds = window_seconds
        self.prefix = prefix

    def _key(self, key):
        return f'{self.prefix}:{key}'

    def hit(self, key, limit) -> bool:
        """Count one request for ``key``; False once ``limit`` is exceeded."""
        cache_key = self._key(key)
        # add() only sets when absent, so the window starts with the first hit.
        if self.cache.add(cache_key, 1, timeout=self.window_seconds):
            return True
        try:
            count = self.cache.incr(cache_key)
        except ValueError:
            # Expired between add() and incr(): start a new window.
            self.cache.set(cache_key, 1, timeout=self.window_seconds)
            return True
        return count <= limit

    def reset(self, key):
        self.cache.delete(self._key(key))


def rate_limits():
    limits = dict(DEFAULT_RATE_LIMITS)
    limits.update(getattr(settings, 'DOC2HTML_RATE_LIMITS', {}))
    return limits


def client_key(request) -> str:
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR') or 'unknown'


class RateLimitMiddleware:
    """Throttle ``/api/`` requests per client and add security headers."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        limits = rate_limits()
        limiter = FixedWindowRateLimiter(
            caches[getattr(settings, 'DOC2HTML_RATE_LIMIT_CACHE', 'default')],
            limits['window_seconds'],
        )
        response = self._check(request, limiter, limits) or self.get_response(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    def _check(self, request, limiter, limits):
        path = request.path_info
        if '/api/' not in path:
            return None

        key = client_key(request)
        if path.rstrip('/').endswith('/api/upload'):
            user = getattr(request, 'user', None)
            authenticated = bool(user is not None and user.is_authenticated)
            limit = limits['max_uploads_authenticated'] if authenticated else limits['max_uploads']
            if not limiter.hit(f'{key}:upload', limit):
                return self._reject(key, 'upload')

        if not limiter.hit(key, limits['max_requests']):
            return self._reject(key, 'api')
        return None

    def _reject(self, key, scope):
        logger.warning('rate limit exceeded for %s (%s)', key, scope)
        return JsonResponse({'error': TOO_MANY_REQUESTS_MESSAGE}, status=429)
