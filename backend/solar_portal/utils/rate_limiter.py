"""
Simple Memory-based Rate Limiter.
Per-process only; a multi-worker deployment needs a shared store.
"""
import time
from fastapi import Request
from typing import Callable, Dict, Optional, Tuple

from solar_portal.config import get_settings
from solar_portal.exceptions import RateLimitError

# In-memory storage: {(ip, path): (window_end, count)}
_rate_limit_store: Dict[Tuple[str, str], Tuple[float, int]] = {}


def reset_rate_limits() -> None:
    _rate_limit_store.clear()


def _evict_expired(now: float) -> None:
    """Drop every entry whose window has closed so idle clients do not accumulate."""
    for key in [k for k, (window_end, _) in _rate_limit_store.items() if now > window_end]:
        del _rate_limit_store[key]


def rate_limit(requests: Optional[int] = None, window: Optional[int] = None) -> Callable:
    """
    Dependency factory for per-IP, per-path rate limiting.
    Limits default to PAYMENT_RATE_LIMIT_REQUESTS / PAYMENT_RATE_LIMIT_WINDOW.
    Example: Depends(rate_limit())
    """
    def limiter(request: Request):
        settings = get_settings()
        max_requests = requests if requests is not None else settings.PAYMENT_RATE_LIMIT_REQUESTS
        window_seconds = window if window is not None else settings.PAYMENT_RATE_LIMIT_WINDOW

        ip = request.client.host if request.client else "unknown"
        key = (ip, request.url.path)
        now = time.time()

        _evict_expired(now)

        if key not in _rate_limit_store:
            _rate_limit_store[key] = (now + window_seconds, 1)
            return True

        window_end, count = _rate_limit_store[key]

        if count >= max_requests:
            raise RateLimitError(
                f"Rate limit exceeded. Try again in {int(window_end - now)} seconds."
            )

        _rate_limit_store[key] = (window_end, count + 1)
        return True

    return limiter
