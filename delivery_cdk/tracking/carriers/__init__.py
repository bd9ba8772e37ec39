"""
Carrier adapters.
One module per carrier: status mapper, event parser and adapter.
"""

from delivery_cdk.tracking.carriers.fedex import FedExCarrier
from delivery_cdk.tracking.carriers.ups import UPSCarrier
from delivery_cdk.tracking.carriers.nova_poshta import NovaPoshtaCarrier

__all__ = ["FedExCarrier", "UPSCarrier", "NovaPoshtaCarrier"]
