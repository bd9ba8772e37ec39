"""
Data models for delivery-cdk.
Defines the carrier-agnostic tracking shapes every adapter returns.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class CarrierCode(str, Enum):
    """Known carriers. DHL and USPS are reserved and have no adapter yet."""
    FEDEX = "fedex"
    UPS = "ups"
    DHL = "dhl"
    USPS = "usps"
    NOVA_POSHTA = "nova_poshta"


class TrackingStatus(str, Enum):
    """Shared lifecycle stage of a shipment."""
    PENDING = "pending"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    EXCEPTION = "exception"
    UNKNOWN = "unknown"  # Fallback for any unrecognized carrier code


class TrackingEvent(BaseModel):
    """One scan/activity record."""

    timestamp: str = ""
    status: TrackingStatus = TrackingStatus.UNKNOWN
    location: str = ""
    description: str = ""

    class Config:
        use_enum_values = True


class TrackingResult(BaseModel):
    """Unified response for one tracking query."""

    carrier: CarrierCode
    tracking_number: str = Field(alias="trackingNumber")
    status: TrackingStatus
    estimated_delivery: Optional[str] = Field(default=None, alias="estimatedDelivery")

    # Carrier-native order, not necessarily chronological
    events: list[TrackingEvent] = Field(default_factory=list)

    class Config:
        use_enum_values = True
        populate_by_name = True

    def to_response(self) -> dict[str, Any]:
        """Serialize with the camelCase keys of the public API."""
        return self.model_dump(mode="json", by_alias=True)


class CachedToken(BaseModel):
    """OAuth bearer token owned by a single adapter."""

    token: str
    expires_at: float  # Clock seconds, see TokenCache

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


def join_location(*parts: Optional[str]) -> str:
    """Join address parts with ', ', dropping empty ones."""
    return ", ".join(str(part) for part in parts if part)
