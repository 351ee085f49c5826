"""
Photo Browser API — Rate Limiting
===================================

What:  Per-IP sliding window limiters, one independent instance per tier.
How:   Each limiter keeps a list of request timestamps per client address.
       On every hit, timestamps older than the window are dropped; if the
       remaining count has reached the ceiling the request is rejected with
       the number of seconds until the oldest one expires.

Tiers (defaults, see config.py):
    api     100 requests / 15 minutes   every path under /api but /api/files
    auth      5 requests / 15 minutes   register + login
    upload   10 requests / 1 hour       photo upload
    strict    3 requests / 1 hour       reserved for sensitive operations

The limiters live on `app.state.rate_limiters`, so each application instance
starts with empty counters. State is in-process only; a multi-worker
deployment gets one set of counters per worker.
"""

import logging
import math
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from photo_browser.config import settings
from photo_browser.error_handlers import render_error
from photo_browser.exceptions import RateLimitExceededError
from photo_browser.middleware.logging import client_ip

logger = logging.getLogger(__name__)


def describe_window(seconds: int) -> str:
    """Human-readable window length: 900 → "15 minutes", 3600 → "1 hour"."""
    for unit_seconds, unit in ((3600, "hour"), (60, "minute")):
        if seconds >= unit_seconds and seconds % unit_seconds == 0:
            count = seconds // unit_seconds
            return f"{count} {unit}" + ("s" if count != 1 else "")
    return f"{seconds} second" + ("s" if seconds != 1 else "")


class SlidingWindowRateLimiter:
    """
    In-memory sliding window limiter keyed by client address.

    `clock` is injectable so tests can move time without sleeping.
    """

    # Idle keys are purged every CLEANUP_EVERY hits
    CLEANUP_EVERY = 1000

    def __init__(
        self,
        name: str,
        window_seconds: int,
        max_requests: int,
        message: str,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.message = message
        self.retry_hint = describe_window(window_seconds)
        self._clock = clock
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._hits = 0

    def hit(self, key: str) -> Optional[int]:
        """
        Count one request for `key`.

        Returns None when allowed, otherwise the seconds until a slot frees.
        Rejected requests are not recorded.
        """
        now = self._clock()
        window_start = now - self.window_seconds

        timestamps = [ts for ts in self._requests[key] if ts > window_start]
        self._requests[key] = timestamps

        if len(timestamps) >= self.max_requests:
            retry_after = max(1, math.ceil(timestamps[0] + self.window_seconds - now))
            logger.warning(
                "Rate limit '%s' exceeded for %s: %d requests in %ds window",
                self.name,
                key,
                len(timestamps),
                self.window_seconds,
            )
            return retry_after

        timestamps.append(now)
        self._hits += 1
        if self._hits % self.CLEANUP_EVERY == 0:
            self._cleanup_inactive(window_start)
        return None

    def check(self, key: str) -> None:
        """Like `hit()`, but raises `RateLimitExceededError` on rejection."""
        retry_after = self.hit(key)
        if retry_after is not None:
            raise RateLimitExceededError(
                retry_after=retry_after,
                retry_hint=self.retry_hint,
                message=self.message,
                context={"limiter": self.name, "key": key},
            )

    def reset(self) -> None:
        self._requests.clear()
        self._hits = 0

    def _cleanup_inactive(self, window_start: float) -> None:
        inactive = [
            key for key, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for key in inactive:
            del self._requests[key]
        if inactive:
            logger.debug("Limiter '%s' dropped %d inactive keys", self.name, len(inactive))


@dataclass
class RateLimiters:
    api: SlidingWindowRateLimiter
    auth: SlidingWindowRateLimiter
    upload: SlidingWindowRateLimiter
    strict: SlidingWindowRateLimiter

    def get(self, tier: str) -> SlidingWindowRateLimiter:
        return getattr(self, tier)


def build_rate_limiters(settings, clock: Callable[[], float] = time.monotonic) -> RateLimiters:
    """Create the four independent limiters from settings."""
    return RateLimiters(
        api=SlidingWindowRateLimiter(
            "api",
            settings.rate_limit_api_window,
            settings.rate_limit_api_requests,
            "Too many requests from this IP, please try again later.",
            clock,
        ),
        auth=SlidingWindowRateLimiter(
            "auth",
            settings.rate_limit_auth_window,
            settings.rate_limit_auth_requests,
            "Too many authentication attempts from this IP, please try again later.",
            clock,
        ),
        upload=SlidingWindowRateLimiter(
            "upload",
            settings.rate_limit_upload_window,
            settings.rate_limit_upload_requests,
            "Too many upload requests from this IP, please try again later.",
            clock,
        ),
        strict=SlidingWindowRateLimiter(
            "strict",
            settings.rate_limit_strict_window,
            settings.rate_limit_strict_requests,
            "Too many requests for this operation, please try again later.",
            clock,
        ),
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies the `api` limiter to every request under /api except stored
    image fetches (`files_url_prefix`), which a gallery page makes in bulk.

    Rejections are rendered by the shared error formatter, since exceptions
    raised here would bypass the app's exception handlers.
    """

    PREFIX = "/api"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path != self.PREFIX and not path.startswith(self.PREFIX + "/"):
            return await call_next(request)
        if path.startswith(settings.files_url_prefix.rstrip("/") + "/"):
            return await call_next(request)

        limiters: RateLimiters = request.app.state.rate_limiters
        try:
            limiters.api.check(client_ip(request))
        except RateLimitExceededError as exc:
            return render_error(exc)
        return await call_next(request)


def rate_limit(tier: str) -> Callable[[Request], None]:
    """Route dependency enforcing one limiter tier (auth, upload, strict)."""

    def dependency(request: Request) -> None:
        limiters: RateLimiters = request.app.state.rate_limiters
        limiters.get(tier).check(client_ip(request))

    dependency.__name__ = f"rate_limit_{tier}"
    return dependency
