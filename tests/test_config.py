"""Tests for configuration loading."""

import pytest

from delivery_cdk.config import DeliveryConfig, init_config


pytestmark = pytest.mark.usefixtures("clean_env")


class TestDeliveryConfig:
    """Tests for DeliveryConfig."""

    def test_defaults(self):
        config = DeliveryConfig.from_env()

        assert config.port == 3000
        assert config.host == "0.0.0.0"
        assert config.ups_transaction_src == "delivery-cdk"
        assert not config.has_fedex()
        assert not config.has_ups()
        assert not config.has_nova_poshta()

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("FEDEX_CLIENT_ID", "fid")
        monkeypatch.setenv("FEDEX_CLIENT_SECRET", "fsecret")
        monkeypatch.setenv("NOVA_POSHTA_API_KEY", "np")
        monkeypatch.setenv("PORT", "8080")

        config = DeliveryConfig.from_env()

        assert config.has_fedex()
        assert config.has_nova_poshta()
        assert not config.has_ups()
        assert config.port == 8080

    def test_env_file(self, tmp_path):
        env_file = tmp_path / "tracking.env"
        env_file.write_text("UPS_CLIENT_ID=uid\nUPS_CLIENT_SECRET=usecret\nREQUEST_TIMEOUT=5\n")

        config = init_config(str(env_file))

        assert config.has_ups()
        assert config.request_timeout == 5

    def test_partial_credentials_warned(self):
        config = DeliveryConfig(fedex_client_id="fid", nova_poshta_api_key="np")

        warnings = config.validate()

        assert any("FEDEX_CLIENT_SECRET" in w for w in warnings)
        assert not any("no carrier" in w for w in warnings)

    def test_nothing_configured_warned(self):
        warnings = DeliveryConfig().validate()

        assert any("no carrier credentials" in w for w in warnings)
