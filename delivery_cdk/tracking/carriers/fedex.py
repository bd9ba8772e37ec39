"""
FedEx Track API integration.

Requires FedEx Developer credentials:
- Client ID
- Client Secret
"""

from typing import Any, Optional
from loguru import logger
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


FEDEX_API_BASE = "https://apis.fedex.com"

# FedEx derived status codes
FEDEX_STATUS_MAP = {
    "OC": TrackingStatus.PENDING,  # Label created
    "IN": TrackingStatus.PENDING,  # Initiated
    "PU": TrackingStatus.PICKED_UP,
    "IT": TrackingStatus.IN_TRANSIT,
    "AR": TrackingStatus.IN_TRANSIT,
    "AF": TrackingStatus.IN_TRANSIT,
    "DP": TrackingStatus.IN_TRANSIT,
    "CC": TrackingStatus.IN_TRANSIT,  # Cleared customs
    "FD": TrackingStatus.IN_TRANSIT,
    "OD": TrackingStatus.OUT_FOR_DELIVERY,
    "DL": TrackingStatus.DELIVERED,
    "DE": TrackingStatus.EXCEPTION,
    "SE": TrackingStatus.EXCEPTION,
    "DY": TrackingStatus.EXCEPTION,
    "CA": TrackingStatus.EXCEPTION,
}


def map_fedex_status(status_code: Optional[str]) -> TrackingStatus:
    return FEDEX_STATUS_MAP.get((status_code or "").strip().upper(), TrackingStatus.UNKNOWN)


# ===== Response structures =====

class _FedExPayload(CarrierPayload):
    class Config:
        alias_generator = alias_generators.to_camel


class FedExLocation(_FedExPayload):
    city: Optional[str] = None
    state_or_province_code: Optional[str] = None
    country_code: Optional[str] = None


class FedExScanEvent(_FedExPayload):
    date: Optional[str] = None
    event_timestamp: Optional[str] = None
    date_time: Optional[str] = None  # dateAndTimes entries
    derived_status_code: Optional[str] = None
    event_type: Optional[str] = None
    type: Optional[str] = None
    event_description: Optional[str] = None
    description: Optional[str] = None
    scan_location: Optional[FedExLocation] = None


class FedExStatusDetail(_FedExPayload):
    derived_code: Optional[str] = None
    code: Optional[str] = None
    status_code: Optional[str] = None
    description: Optional[str] = None


class FedExWindow(_FedExPayload):
    begins: Optional[str] = None
    ends: Optional[str] = None


class FedExTimeWindow(_FedExPayload):
    window: Optional[FedExWindow] = None


class FedExError(_FedExPayload):
    code: Optional[str] = None
    message: Optional[str] = None


class FedExTrackResult(_FedExPayload):
    latest_status_detail: Optional[FedExStatusDetail] = None
    estimated_delivery_time_window: Optional[FedExTimeWindow] = None
    scan_events: Optional[RawList] = None
    date_and_times: Optional[RawList] = None
    error: Optional[FedExError] = None


class FedExCompleteTrackResult(_FedExPayload):
    track_results: RawList = []


class FedExOutput(_FedExPayload):
    complete_track_results: RawList = []


class FedExTrackResponse(_FedExPayload):
    output: Optional[FedExOutput] = None

    def first_result(self) -> Optional[FedExTrackResult]:
        if not self.output:
            return None
        for complete in self.output.complete_track_results:
            results = FedExCompleteTrackResult.decode(complete).track_results
            if results:
                return FedExTrackResult.decode(results[0])
        return None


# ===== Parsing =====

def parse_fedex_events(scan_events: list[Any]) -> list[TrackingEvent]:
    """Transform FedEx scanEvents (or dateAndTimes) into tracking events."""
    events = []

    for raw in scan_events or []:
        event = FedExScanEvent.decode(raw)
        location = event.scan_location or FedExLocation()

        events.append(TrackingEvent(
            timestamp=event.date or event.event_timestamp or event.date_time or "",
            status=map_fedex_status(event.derived_status_code or event.event_type or ""),
            location=join_location(
                location.city,
                location.state_or_province_code,
                location.country_code,
            ),
            description=event.event_description or event.description or event.type or "",
        ))

    return events


def _current_status(result: FedExTrackResult, events: list[TrackingEvent]) -> TrackingStatus:
    detail = result.latest_status_detail
    if detail:
        code = detail.derived_code or detail.code or detail.status_code
        if code:
            return map_fedex_status(code)

    # Newest scan comes first
    if events:
        return TrackingStatus(events[0].status)
    return TrackingStatus.UNKNOWN


def _estimated_delivery(result: FedExTrackResult) -> Optional[str]:
    window = result.estimated_delivery_time_window
    if window and window.window and window.window.ends:
        return window.window.ends

    for raw in result.date_and_times or []:
        entry = FedExScanEvent.decode(raw)
        if entry.type == "ESTIMATED_DELIVERY" and entry.date_time:
            return entry.date_time

    return None


class FedExCarrier(OAuthCarrier):
    """FedEx Track API adapter."""

    code = CarrierCode.FEDEX
    name = "FedEx"

    def __init__(self, client_id: str, client_secret: str, base_url: str = FEDEX_API_BASE, **kwargs):
        super().__init__(client_id, client_secret, **kwargs)
        self.base_url = base_url.rstrip("/")

    async def _fetch_token(self) -> dict[str, Any]:
        """Request a token with the credentials in the form body."""
        data = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }

        return await self._request_json(
            "POST",
            f"{self.base_url}/oauth/token",
            what="FedEx auth",
            error_cls=AuthError,
            data=data,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    async def track(self, tracking_number: str) -> TrackingResult:
        """Get tracking information from FedEx."""
        self.validate_tracking_number(tracking_number)

        payload = {
            "includeDetailedScans": True,
            "trackingInfo": [
                {
                    "trackingNumberInfo": {
                        "trackingNumber": tracking_number
                    }
                }
            ]
        }

        data = await self._authorized_request(
            "POST",
            f"{self.base_url}/track/v1/trackingnumbers",
            json=payload,
            headers={"Content-Type": "application/json", "X-locale": "en_US"},
        )

        result = FedExTrackResponse.decode(data).first_result()
        if result is None:
            raise NotFoundError(f"No tracking data found for {tracking_number}")

        if result.error and not result.latest_status_detail:
            message = result.error.message or result.error.code or "unknown error"
            logger.warning(f"FedEx returned error for {tracking_number}: {message}")
            raise NotFoundError(f"No tracking data found for {tracking_number}: {message}")

        events = parse_fedex_events(
            result.scan_events if result.scan_events is not None else result.date_and_times or []
        )

        return TrackingResult(
            carrier=self.code,
            tracking_number=tracking_number,
            status=_current_status(result, events),
            estimated_delivery=_estimated_delivery(result),
            events=events,
        )
