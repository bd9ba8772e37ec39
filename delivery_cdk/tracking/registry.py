"""
Carrier Registry.
Maps carrier codes to the adapters configured at startup.
"""

from typing import Optional, Union
from loguru import logger

from delivery_cdk.config import DeliveryConfig
from delivery_cdk.models import CarrierCode
from delivery_cdk.tracking.base import Carrier
from delivery_cdk.tracking.carriers import FedExCarrier, NovaPoshtaCarrier, UPSCarrier


class CarrierRegistry:
    """
    Registry of carrier adapters.

    Populated once at startup, then only read. Registering a second
    adapter for the same code replaces the first.
    """

    def __init__(self):
        self._carriers: dict[CarrierCode, Carrier] = {}

    def register(self, carrier: Carrier) -> None:
        code = CarrierCode(carrier.code)
        if code in self._carriers:
            logger.debug(f"Replacing adapter for {code.value}")
        self._carriers[code] = carrier

    def get(self, code: Union[CarrierCode, str]) -> Optional[Carrier]:
        """Look up an adapter; unknown or unregistered codes return None."""
        try:
            return self._carriers.get(CarrierCode(code))
        except ValueError:
            return None

    def list(self) -> list[CarrierCode]:
        """Registered carrier codes, in registration order."""
        return list(self._carriers)

    async def close(self):
        """Close the HTTP sessions held by registered adapters."""
        for carrier in self._carriers.values():
            await carrier.close()


def build_registry(config: DeliveryConfig) -> CarrierRegistry:
    """Register an adapter for every carrier with a full credential set."""
    registry = CarrierRegistry()
    timeout = config.request_timeout

    # FedEx
    if config.has_fedex():
        registry.register(FedExCarrier(
            client_id=config.fedex_client_id,
            client_secret=config.fedex_client_secret,
            timeout=timeout,
        ))
        logger.info("FedEx API configured")

    # UPS
    if config.has_ups():
        registry.register(UPSCarrier(
            client_id=config.ups_client_id,
            client_secret=config.ups_client_secret,
            transaction_src=config.ups_transaction_src,
            timeout=timeout,
        ))
        logger.info("UPS API configured")

    # Nova Poshta
    if config.has_nova_poshta():
        registry.register(NovaPoshtaCarrier(
            api_key=config.nova_poshta_api_key,
            timeout=timeout,
        ))
        logger.info("Nova Poshta API configured")

    if not registry.list():
        logger.warning("No carrier credentials configured - every lookup will 404")

    return registry
