# core/rate_limiter.py

from typing import Dict, Tuple, Optional
from fastapi import HTTPException, Request
from collections import defaultdict
from threading import Lock
import time


# In-memory sliding window, per process.
# Guards the unauthenticated identity-provider proxies (login, password reset).
_rate_limit_store: Dict[str, list] = defaultdict(list)
_lock = Lock()


def check_rate_limit(
    identifier: str,
    max_requests: int = 10,
    window_seconds: int = 60,
) -> Tuple[bool, int]:
    """
    Check if a request should be rate limited.

    Returns:
        Tuple of (allowed: bool, remaining: int)
    """
    now = time.time()
    window_start = now - window_seconds

    with _lock:
        requests = [ts for ts in _rate_limit_store[identifier] if ts > window_start]

        if len(requests) >= max_requests:
            _rate_limit_store[identifier] = requests
            return False, 0

        requests.append(now)
        _rate_limit_store[identifier] = requests

    return True, max_requests - len(requests)


def reset_rate_limits():
    with _lock:
        _rate_limit_store.clear()


def get_rate_limit_identifier(request: Request, scope: str, key: Optional[str] = None) -> str:
    """
    Unique identifier for rate limiting.
    Prefers an explicit key (e.g. the email being reset), otherwise the client IP.
    """
    if key:
        return f"{scope}:key:{key.lower()}"

    client_ip = request.client.host if request.client else "unknown"

    # Check for forwarded IP (common behind proxies)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        client_ip = forwarded_for.split(",")[0].strip()

    return f"{scope}:ip:{client_ip}"


def require_rate_limit(
    request: Request,
    scope: str,
    key: Optional[str] = None,
    max_requests: int = 10,
    window_seconds: int = 60,
):
    """
    Raises HTTPException 429 if the limit is exceeded.
    """
    identifier = get_rate_limit_identifier(request, scope, key)
    allowed, remaining = check_rate_limit(identifier, max_requests, window_seconds)

    if not allowed:
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Maximum {max_requests} requests per {window_seconds} seconds.",
            headers={
                "X-RateLimit-Limit": str(max_requests),
                "X-RateLimit-Window": str(window_seconds),
                "Retry-After": str(window_seconds),
            },
        )

    return remaining
