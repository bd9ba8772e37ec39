"""
Tracking integration module.
Pulls tracking information from FedEx, UPS and Nova Poshta.
"""

from delivery_cdk.tracking.base import Carrier, OAuthCarrier
from delivery_cdk.tracking.carriers import FedExCarrier, NovaPoshtaCarrier, UPSCarrier
from delivery_cdk.tracking.registry import CarrierRegistry, build_registry
from delivery_cdk.tracking.token_cache import TokenCache

__all__ = [
    "Carrier",
    "OAuthCarrier",
    "FedExCarrier",
    "UPSCarrier",
    "NovaPoshtaCarrier",
    "CarrierRegistry",
    "build_registry",
    "TokenCache",
]
