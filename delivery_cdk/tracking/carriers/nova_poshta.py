"""
Nova Poshta tracking integration.
Authenticates with a static API key sent in the request body.
"""

from typing import Any, Optional, Union
from pydantic import alias_generators

from delivery_cdk.exceptions import NotFoundError, UpstreamError
from delivery_cdk.models import (
    CarrierCode,
    TrackingEvent,
    TrackingResult,
    TrackingStatus,
    join_location,
)
from delivery_cdk.tracking.base import Carrier, CarrierPayload, RawList


NOVA_POSHTA_API = "https://api.novaposhta.ua/v2.0/json/"

# Ordered rules, first match wins: exact codes, then inclusive ranges
NOVA_POSHTA_EXACT = {
    1: TrackingStatus.PENDING,  # Awaiting sender handover
    2: TrackingStatus.EXCEPTION,  # Deleted
    3: TrackingStatus.UNKNOWN,  # Number not found
    41: TrackingStatus.IN_TRANSIT,
    101: TrackingStatus.OUT_FOR_DELIVERY,
    102: TrackingStatus.EXCEPTION,  # Refused by recipient
    103: TrackingStatus.EXCEPTION,
    104: TrackingStatus.IN_TRANSIT,  # Address changed
    105: TrackingStatus.EXCEPTION,  # Storage stopped
    106: TrackingStatus.EXCEPTION,
    111: TrackingStatus.EXCEPTION,  # Delivery failed
    112: TrackingStatus.IN_TRANSIT,  # Delivery date moved
}

NOVA_POSHTA_RANGES = [
    (4, 8, TrackingStatus.IN_TRANSIT),
    (9, 12, TrackingStatus.DELIVERED),
]


def map_nova_poshta_status(status_code: Union[int, str, None]) -> TrackingStatus:
    try:
        code = int(str(status_code).strip())
    except (TypeError, ValueError):
        return TrackingStatus.UNKNOWN

    if code in NOVA_POSHTA_EXACT:
        return NOVA_POSHTA_EXACT[code]

    for low, high, status in NOVA_POSHTA_RANGES:
        if low <= code <= high:
            return status

    return TrackingStatus.UNKNOWN


# ===== Response structures =====

class NovaPoshtaDocument(CarrierPayload):
    class Config:
        alias_generator = alias_generators.to_pascal

    number: Optional[str] = None
    status_code: Optional[str] = None
    status: Optional[str] = None
    tracking_update_date: Optional[str] = None
    date_scan: Optional[str] = None
    date_created: Optional[str] = None
    city_recipient: Optional[str] = None
    warehouse_recipient: Optional[str] = None
    scheduled_delivery_date: Optional[str] = None


class NovaPoshtaResponse(CarrierPayload):
    success: bool = False
    data: RawList = []
    errors: RawList = []


# ===== Parsing =====

def parse_nova_poshta_event(document: NovaPoshtaDocument) -> TrackingEvent:
    """Build the single event Nova Poshta's status document describes."""
    return TrackingEvent(
        timestamp=(
            document.tracking_update_date
            or document.date_scan
            or document.date_created
            or ""
        ),
        status=map_nova_poshta_status(document.status_code),
        location=join_location(document.city_recipient, document.warehouse_recipient),
        description=document.status or "",
    )


class NovaPoshtaCarrier(Carrier):
    """Nova Poshta TrackingDocument adapter."""

    code = CarrierCode.NOVA_POSHTA
    name = "Nova Poshta"

    def __init__(self, api_key: str, api_url: str = NOVA_POSHTA_API, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.api_url = api_url

    async def track(self, tracking_number: str) -> TrackingResult:
        """Get tracking information from Nova Poshta."""
        self.validate_tracking_number(tracking_number)

        payload = {
            "apiKey": self.api_key,
            "modelName": "TrackingDocument",
            "calledMethod": "getStatusDocuments",
            "methodProperties": {
                "Documents": [{"DocumentNumber": tracking_number}],
            },
        }

        data: Any = await self._request_json(
            "POST",
            self.api_url,
            what="Nova Poshta API request",
            json=payload,
            headers={"Content-Type": "application/json"},
        )

        response = NovaPoshtaResponse.decode(data)
        if not response.success:
            errors = ", ".join(str(e) for e in response.errors if e)
            raise UpstreamError(f"Nova Poshta API error: {errors or 'unknown error'}")

        if not response.data:
            raise NotFoundError(f"No tracking data found for {tracking_number}")

        document = NovaPoshtaDocument.decode(response.data[0])
        event = parse_nova_poshta_event(document)

        return TrackingResult(
            carrier=self.code,
            tracking_number=tracking_number,
            status=event.status,
            estimated_delivery=document.scheduled_delivery_date or None,
            events=[event],
        )
