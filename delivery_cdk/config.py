"""
Configuration management for delivery-cdk.
Loads carrier credentials and service settings from environment variables.
"""

import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass
from dotenv import load_dotenv


@dataclass
class DeliveryConfig:
    """Main configuration class for the tracking service."""

    # === Carrier API Credentials ===
    # FedEx
    fedex_client_id: str = ""
    fedex_client_secret: str = ""

    # UPS
    ups_client_id: str = ""
    ups_client_secret: str = ""
    ups_transaction_src: str = "delivery-cdk"

    # Nova Poshta
    nova_poshta_api_key: str = ""

    # === HTTP Service ===
    host: str = "0.0.0.0"
    port: int = 3000
    request_timeout: int = 30  # seconds, outbound carrier calls

    # Logging
    log_level: str = "INFO"
    log_file: str = ""  # Empty = console only

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "DeliveryConfig":
        """Load configuration from environment variables."""

        # Try to load from .env file
        if env_file:
            load_dotenv(env_file)
        else:
            # Try common locations
            for env_path in ["config.env", ".env", "../config.env"]:
                if Path(env_path).exists():
                    load_dotenv(env_path)
                    break

        return cls(
            # FedEx
            fedex_client_id=os.getenv("FEDEX_CLIENT_ID", ""),
            fedex_client_secret=os.getenv("FEDEX_CLIENT_SECRET", ""),

            # UPS
            ups_client_id=os.getenv("UPS_CLIENT_ID", ""),
            ups_client_secret=os.getenv("UPS_CLIENT_SECRET", ""),
            ups_transaction_src=os.getenv("UPS_TRANSACTION_SRC", "delivery-cdk"),

            # Nova Poshta
            nova_poshta_api_key=os.getenv("NOVA_POSHTA_API_KEY", ""),

            # HTTP Service
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            request_timeout=int(os.getenv("REQUEST_TIMEOUT", "30")),

            # Logging
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", ""),
        )

    def has_fedex(self) -> bool:
        return bool(self.fedex_client_id and self.fedex_client_secret)

    def has_ups(self) -> bool:
        return bool(self.ups_client_id and self.ups_client_secret)

    def has_nova_poshta(self) -> bool:
        return bool(self.nova_poshta_api_key)

    def validate(self) -> list[str]:
        """Validate configuration and return list of warnings."""
        errors = []

        if self.fedex_client_id and not self.fedex_client_secret:
            errors.append("Warning: FEDEX_CLIENT_SECRET missing - FedEx disabled")
        if self.ups_client_id and not self.ups_client_secret:
            errors.append("Warning: UPS_CLIENT_SECRET missing - UPS disabled")

        if not (self.has_fedex() or self.has_ups() or self.has_nova_poshta()):
            errors.append("Warning: no carrier credentials configured")

        if not 0 < self.port < 65536:
            errors.append(f"PORT out of range: {self.port}")

        return errors


# Global config instance
_config: Optional[DeliveryConfig] = None


def get_config() -> DeliveryConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = DeliveryConfig.from_env()
    return _config


def init_config(env_file: Optional[str] = None) -> DeliveryConfig:
    """Initialize configuration from environment."""
    global _config
    _config = DeliveryConfig.from_env(env_file)
    return _config
