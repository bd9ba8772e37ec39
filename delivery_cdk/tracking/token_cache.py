"""
OAuth bearer token cache.
Holds one token per adapter and coalesces concurrent refreshes.
"""

import asyncio
import math
import time
from typing import Any, Awaitable, Callable, Optional
from loguru import logger

from delivery_cdk.exceptions import ConfigError
from delivery_cdk.models import CachedToken


DEFAULT_TTL = 3600  # seconds, used when the auth response omits expires_in


class TokenCache:
    """
    Single-slot token cache with single-flight refresh.

    Features:
    - Reuses the cached token until its computed expiry
    - At most one refresh request in flight; concurrent callers share it
    - Failed refreshes cache nothing, so the next call retries
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[dict[str, Any]]],
        *,
        name: str = "oauth",
        min_ttl: int = 0,
        safety_margin: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            fetch: Coroutine function performing the token request and
                returning the decoded auth response
            name: Label used in log and error messages
            min_ttl: Floor applied to the declared expires_in
            safety_margin: Seconds subtracted so a token never expires mid-request
            clock: Monotonic time source
        """
        self._fetch = fetch
        self._name = name
        self._min_ttl = min_ttl
        self._safety_margin = safety_margin
        self._clock = clock

        self._cached: Optional[CachedToken] = None
        self._inflight: Optional[asyncio.Future] = None

    @property
    def cached(self) -> Optional[CachedToken]:
        return self._cached

    async def get_token(self) -> str:
        """Return a valid bearer token, refreshing it at most once concurrently."""
        if self._cached and self._cached.is_valid(self._clock()):
            return self._cached.token

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh())

        # Shielded so one cancelled caller does not cancel the shared refresh
        return await asyncio.shield(self._inflight)

    def invalidate(self):
        """Drop the cached token so the next call refreshes."""
        self._cached = None

    async def _refresh(self) -> str:
        try:
            logger.debug(f"Requesting {self._name} token")
            payload = await self._fetch()

            token = payload.get("access_token") if isinstance(payload, dict) else None
            if not isinstance(token, str) or not token:
                raise ConfigError(f"{self._name} auth response has no access_token")

            ttl = max(_parse_ttl(payload.get("expires_in")), self._min_ttl)
            self._cached = CachedToken(
                token=token,
                expires_at=self._clock() + ttl - self._safety_margin,
            )
            logger.info(f"{self._name} token refreshed (expires in {ttl}s)")
            return token
        finally:
            self._inflight = None


def _parse_ttl(value: Any) -> float:
    try:
        ttl = float(value)
    except (TypeError, ValueError):
        return DEFAULT_TTL
    return ttl if math.isfinite(ttl) else DEFAULT_TTL
