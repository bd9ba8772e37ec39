"""
Base class for carrier adapters.
Shared session handling, input validation and response decoding.
"""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from typing import Annotated, Any, Optional
import aiohttp
from loguru import logger
from pydantic import BaseModel, BeforeValidator, ValidationError, model_validator

from delivery_cdk.tracking.token_cache import TokenCache

from delivery_cdk.exceptions import InvalidInputError, TrackingError, UpstreamError
from delivery_cdk.models import CarrierCode, TrackingResult


MAX_TRACKING_NUMBER_LENGTH = 50


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value]
    return []


# Carrier lists are sometimes null or a bare object when there is one entry
RawList = Annotated[list[Any], BeforeValidator(_as_list)]


class CarrierPayload(BaseModel):
    """
    Base for carrier response structures.

    Every field is optional and unknown keys are ignored. Fields with the
    wrong shape are dropped and the rest of the record is kept.
    """

    class Config:
        extra = "ignore"
        populate_by_name = True
        coerce_numbers_to_str = True

    @model_validator(mode="wrap")
    @classmethod
    def _drop_malformed_fields(cls, data: Any, handler):
        try:
            return handler(data)
        except ValidationError as e:
            if not isinstance(data, dict):
                raise
            bad = {err["loc"][0] for err in e.errors() if err["loc"]}
            kept = {key: value for key, value in data.items() if key not in bad}
            if len(kept) == len(data):
                raise
            logger.warning(f"{cls.__name__}: dropped malformed fields {sorted(map(str, bad))}")
            return handler(kept)

    @classmethod
    def decode(cls, raw: Any):
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, dict):
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Malformed {cls.__name__} ignored ({e.error_count()} errors)")
            return cls()


class Carrier(ABC):
    """Base class for carrier adapters."""

    code: CarrierCode
    name: str

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: int = 30,
    ):
        """
        Args:
            session: Shared HTTP session. When omitted the adapter opens
                its own on first use and closes it in close().
            timeout: Total timeout for each outbound request, in seconds
        """
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    @abstractmethod
    async def track(self, tracking_number: str) -> TrackingResult:
        """Look up a tracking number and return the normalized result."""
        pass

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure HTTP session is created."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self):
        """Close HTTP session if this adapter opened it."""
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    def validate_tracking_number(self, tracking_number: str) -> str:
        """Reject empty and over-long tracking numbers."""
        if not tracking_number or len(tracking_number) > MAX_TRACKING_NUMBER_LENGTH:
            raise InvalidInputError(
                f"Invalid {self.name} tracking number: {tracking_number!r}"
            )
        return tracking_number

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        what: str,
        error_cls: type[TrackingError] = UpstreamError,
        **kwargs,
    ) -> Any:
        """
        Perform one request and decode its JSON body.

        Args:
            method: HTTP method
            url: Absolute URL
            what: Label for error messages, e.g. "FedEx tracking"
            error_cls: Exception raised on any failure

        Returns:
            Decoded JSON body
        """
        session = await self._ensure_session()

        try:
            async with session.request(method, url, **kwargs) as resp:
                if resp.status < 200 or resp.status >= 300:
                    error = await resp.text()
                    logger.warning(f"{what} failed: {resp.status} - {error[:200]}")
                    raise error_cls(
                        f"{what} failed: {resp.status} {error[:200]}".rstrip(),
                        status=resp.status,
                    )

                try:
                    return await resp.json(content_type=None)
                except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
                    raise error_cls(f"{what} returned invalid JSON: {e}") from e

        except aiohttp.ClientError as e:
            logger.error(f"{what} network error: {e}")
            raise error_cls(f"{what} request error: {e}") from e
        except asyncio.TimeoutError as e:
            logger.error(f"{what} timed out")
            raise error_cls(f"{what} timed out") from e


class OAuthCarrier(Carrier):
    """
    Carrier authenticated with an OAuth client-credentials bearer token.

    Each instance owns its own TokenCache, so two adapters configured with
    different credentials never share a token.
    """

    TOKEN_MIN_TTL = 0
    TOKEN_SAFETY_MARGIN = 60

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: int = 30,
        clock=time.monotonic,
    ):
        super().__init__(session=session, timeout=timeout)
        self.client_id = client_id
        self.client_secret = client_secret
        self._tokens = TokenCache(
            self._fetch_token,
            name=self.name,
            min_ttl=self.TOKEN_MIN_TTL,
            safety_margin=self.TOKEN_SAFETY_MARGIN,
            clock=clock,
        )

    @property
    def token_cache(self) -> TokenCache:
        return self._tokens

    @abstractmethod
    async def _fetch_token(self) -> dict[str, Any]:
        """Request a new token; raise AuthError on failure."""
        pass

    async def _get_access_token(self) -> str:
        return await self._tokens.get_token()

    async def _authorized_request(self, method: str, url: str, **kwargs) -> Any:
        """Send a tracking request with the bearer token attached."""
        token = await self._get_access_token()
        headers = {"Authorization": f"Bearer {token}", **kwargs.pop("headers", {})}

        try:
            return await self._request_json(
                method, url, what=f"{self.name} tracking", headers=headers, **kwargs
            )
        except UpstreamError as e:
            cached = self._tokens.cached
            if e.status == 401 and cached and cached.token == token:
                # Revoked before its expiry; the next call fetches a new one
                self._tokens.invalidate()
            raise
