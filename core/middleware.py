"""
KwiiGo Security Middleware
==========================

Provides:
1. Rate Limiting (per IP) using Django cache (Redis)
2. Request Audit Logging for sensitive endpoints
"""

import logging
import hashlib
from django.conf import settings
from django.core.cache import cache
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger('kwiigo.security')


class RateLimitMiddleware(MiddlewareMixin):
    """
    Rate limiting middleware using Redis cache.

    Configurable rates per endpoint pattern:
    - Auth endpoints: 10 requests/minute per IP (brute-force protection)
    - Password reset: 5 requests/15 minutes per IP
    - Assistant: 30 requests/minute per IP
    - Any other API endpoint: 100 requests/minute per IP
    """

    # Rate limit configurations: (max_requests, time_window_seconds)
    RATE_LIMITS = {
        '/api/auth/token/refresh/': (20, 60),
        '/api/auth/token/': (10, 60),
        '/api/auth/register/': (10, 60),
        '/api/auth/password/reset/': (5, 900),
        '/api/assistant/': (30, 60),
    }

    # Default rate limit for all API endpoints
    DEFAULT_API_LIMIT = (100, 60)

    def _get_client_ip(self, request):
        """Extract real client IP, considering proxy headers."""
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR', '0.0.0.0')

    def _get_rate_limit(self, path):
        """Get rate limit config for the given path."""
        for pattern, limits in self.RATE_LIMITS.items():
            if path.startswith(pattern):
                return limits

        if path.startswith('/api/'):
            return self.DEFAULT_API_LIMIT

        return None

    def process_request(self, request):
        """Check rate limits before processing the request."""
        if not getattr(settings, 'RATE_LIMIT_ENABLED', True):
            return None
        if settings.DEBUG and not getattr(settings, 'RATE_LIMIT_IN_DEBUG', False):
            return None

        path = request.path
        rate_limit = self._get_rate_limit(path)

        if rate_limit is None:
            return None

        max_requests, window = rate_limit
        client_ip = self._get_client_ip(request)

        path_hash = hashlib.md5(path.encode()).hexdigest()[:8]
        cache_key = f"rl:{client_ip}:{path_hash}"

        request_count = cache.get(cache_key, 0)

        if request_count >= max_requests:
            logger.warning(
                f"Rate limit exceeded: IP={client_ip} path={path} "
                f"count={request_count}/{max_requests} window={window}s"
            )

            return JsonResponse({
                'error': 'rate_limit_exceeded',
                'message': 'Trop de requêtes. Veuillez réessayer plus tard.',
                'retry_after': window,
            }, status=429, headers={
                'Retry-After': str(window),
                'X-RateLimit-Limit': str(max_requests),
                'X-RateLimit-Remaining': '0',
            })

        try:
            new_count = cache.incr(cache_key)
        except ValueError:
            cache.set(cache_key, 1, window)
            new_count = 1

        request._rate_limit_remaining = max(0, max_requests - new_count)
        request._rate_limit_limit = max_requests

        return None

    def process_response(self, request, response):
        """Add rate limit headers to response."""
        if hasattr(request, '_rate_limit_limit'):
            response['X-RateLimit-Limit'] = str(request._rate_limit_limit)
            response['X-RateLimit-Remaining'] = str(request._rate_limit_remaining)
        return response


class RequestAuditMiddleware(MiddlewareMixin):
    """
    Audit logging for sensitive API operations.

    Logs:
    - Authentication attempts
    - Write operations on orders, chat and wallet
    - Failed requests (4xx, 5xx)
    """

    SENSITIVE_PATHS = [
        '/api/auth/',
        '/api/orders/',
        '/api/wallet/',
        '/admin/',
    ]

    def _should_log(self, request, response):
        path = request.path
        method = request.method

        if '/auth/' in path:
            return True

        if method in ('POST', 'PUT', 'PATCH', 'DELETE'):
            return any(path.startswith(p) for p in self.SENSITIVE_PATHS)

        if response.status_code >= 500:
            return True

        if response.status_code >= 400 and path.startswith('/api/'):
            return True

        return False

    def process_response(self, request, response):
        """Log the request if it meets audit criteria."""
        if self._should_log(request, response):
            user = getattr(request, 'user', None)
            user_info = str(user) if user and user.is_authenticated else 'anonymous'

            ip = request.META.get('HTTP_X_FORWARDED_FOR', '').split(',')[0].strip() \
                or request.META.get('REMOTE_ADDR', '?')

            log_data = {
                'method': request.method,
                'path': request.path,
                'status': response.status_code,
                'user': user_info,
                'ip': ip,
            }

            if response.status_code >= 500:
                logger.error(f"AUDIT [ERROR] {log_data}")
            elif response.status_code >= 400:
                logger.warning(f"AUDIT [WARN] {log_data}")
            else:
                logger.info(f"AUDIT [OK] {log_data}")

        return response
