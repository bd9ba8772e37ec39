"""
UPS Tracking API integration.

Requires UPS Developer credentials:
- Client ID
- Client Secret
"""

import uuid
from typing import Any, Optional
from urllib.parse import quote
import aiohttp
from pydantic import alias_generators

from delivery_cdk.exceptions import AuthError, NotFoundError
from delivery_cdk.models import (
    CarrierCode,
    TrackingEvent,
    TrackingResult,
    TrackingStatus,
    join_location,
)
from delivery_cdk.tracking.base import CarrierPayload, OAuthCarrier, RawList


UPS_API_BASE = "https://onlinetools.ups.com"

# Activity status type, checked first
UPS_TYPE_MAP = {
    "D": TrackingStatus.DELIVERED,
    "I": TrackingStatus.IN_TRANSIT,
    "P": TrackingStatus.PICKED_UP,
    "M": TrackingStatus.PENDING,  # Manifest / label created
    "O": TrackingStatus.OUT_FOR_DELIVERY,
    "X": TrackingStatus.EXCEPTION,
}

# Activity status code, used when the type is absent or unrecognized
UPS_CODE_MAP = {
    "SR": TrackingStatus.PENDING,
    "MP": TrackingStatus.PENDING,
    "DP": TrackingStatus.IN_TRANSIT,
    "AR": TrackingStatus.IN_TRANSIT,
    "IT": TrackingStatus.IN_TRANSIT,
    "OT": TrackingStatus.OUT_FOR_DELIVERY,
    "DL": TrackingStatus.DELIVERED,
    "RS": TrackingStatus.EXCEPTION,
    "DN": TrackingStatus.EXCEPTION,
    "NA": TrackingStatus.EXCEPTION,
}


def map_ups_status(status_code: Optional[str], status_type: Optional[str] = None) -> TrackingStatus:
    status = UPS_TYPE_MAP.get((status_type or "").strip().upper())
    if status is not None:
        return status
    return UPS_CODE_MAP.get((status_code or "").strip().upper(), TrackingStatus.UNKNOWN)


def format_ups_timestamp(date: Optional[str], time: Optional[str]) -> str:
    """
    Format UPS YYYYMMDD / HHMMSS into YYYY-MM-DDTHH:MM:SS.

    A date that is not 8 digits is returned unchanged. A valid date with a
    malformed time yields the date part only.
    """
    date = date or ""
    if len(date) != 8 or not date.isdigit():
        return date

    formatted = f"{date[0:4]}-{date[4:6]}-{date[6:8]}"

    time = time or ""
    if len(time) != 6 or not time.isdigit():
        return formatted

    return f"{formatted}T{time[0:2]}:{time[2:4]}:{time[4:6]}"


# ===== Response structures =====

class _UPSPayload(CarrierPayload):
    class Config:
        alias_generator = alias_generators.to_camel


class UPSStatus(_UPSPayload):
    type: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None


class UPSAddress(_UPSPayload):
    city: Optional[str] = None
    state_province: Optional[str] = None
    country_code: Optional[str] = None


class UPSLocation(_UPSPayload):
    address: Optional[UPSAddress] = None


class UPSActivity(_UPSPayload):
    date: Optional[str] = None
    time: Optional[str] = None
    status: Optional[UPSStatus] = None
    location: Optional[UPSLocation] = None


class UPSDeliveryDate(_UPSPayload):
    type: Optional[str] = None
    date: Optional[str] = None


class UPSPackage(_UPSPayload):
    tracking_number: Optional[str] = None
    current_status: Optional[UPSStatus] = None
    delivery_date: RawList = []
    activity: RawList = []


class UPSShipment(_UPSPayload):
    package: RawList = []
    delivery_date: RawList = []


class UPSTrackResponseBody(_UPSPayload):
    shipment: RawList = []


class UPSTrackResponse(_UPSPayload):
    track_response: Optional[UPSTrackResponseBody] = None


def _first_delivery_date(entries: list[Any]) -> Optional[str]:
    if not entries:
        return None
    return UPSDeliveryDate.decode(entries[0]).date or None


# ===== Parsing =====

def parse_ups_events(activities: list[Any]) -> list[TrackingEvent]:
    """Transform UPS package activities into tracking events."""
    events = []

    for raw in activities or []:
        activity = UPSActivity.decode(raw)
        status = activity.status or UPSStatus()
        address = (activity.location.address if activity.location else None) or UPSAddress()

        events.append(TrackingEvent(
            timestamp=format_ups_timestamp(activity.date, activity.time),
            status=map_ups_status(status.code, status.type),
            location=join_location(address.city, address.state_province, address.country_code),
            description=status.description or "",
        ))

    return events


class UPSCarrier(OAuthCarrier):
    """UPS Tracking API adapter."""

    code = CarrierCode.UPS
    name = "UPS"

    # UPS tokens are never trusted for less than two minutes
    TOKEN_MIN_TTL = 120

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str = UPS_API_BASE,
        transaction_src: str = "delivery-cdk",
        **kwargs,
    ):
        super().__init__(client_id, client_secret, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.transaction_src = transaction_src

    async def _fetch_token(self) -> dict[str, Any]:
        """Request a token with HTTP Basic client credentials."""
        return await self._request_json(
            "POST",
            f"{self.base_url}/security/v1/oauth/token",
            what="UPS auth",
            error_cls=AuthError,
            data={"grant_type": "client_credentials"},
            auth=aiohttp.BasicAuth(self.client_id, self.client_secret),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    async def track(self, tracking_number: str) -> TrackingResult:
        """Get tracking information from UPS."""
        self.validate_tracking_number(tracking_number)

        headers = {
            "transId": uuid.uuid4().hex,  # UPS allows at most 32 characters
            "transactionSrc": self.transaction_src,
        }
        url = f"{self.base_url}/api/track/v1/details/{quote(tracking_number, safe='')}"

        data = await self._authorized_request("GET", url, headers=headers)

        body = UPSTrackResponse.decode(data).track_response
        shipment = UPSShipment.decode(body.shipment[0]) if body and body.shipment else None
        if shipment is None or not shipment.package:
            raise NotFoundError(f"No tracking data found for {tracking_number}")

        package = UPSPackage.decode(shipment.package[0])
        events = parse_ups_events(package.activity)

        current = package.current_status
        if current is None and package.activity:
            current = UPSActivity.decode(package.activity[0]).status
        current = current or UPSStatus()

        return TrackingResult(
            carrier=self.code,
            tracking_number=tracking_number,
            status=map_ups_status(current.code, current.type),
            estimated_delivery=(
                _first_delivery_date(package.delivery_date)
                or _first_delivery_date(shipment.delivery_date)
            ),
            events=events,
        )
