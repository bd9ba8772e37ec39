"""
delivery-cdk: one tracking API over FedEx, UPS and Nova Poshta.
"""

__version__ = "1.0.0"
