"""Tests for environment-driven engine configuration."""

from decimal import Decimal

import pytest

from revshare import SettlementProcessor
from revshare.config import EngineConfig, FeeRates


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()
        assert config.fees == FeeRates()
        assert config.split_tolerance == Decimal("0.01")
        assert config.roi_investment == Decimal("1000")

    def test_from_empty_env(self):
        assert EngineConfig.from_env({}) == EngineConfig()

    def test_from_env_overrides(self):
        config = EngineConfig.from_env({
            "REVSHARE_PLATFORM_FEE_RATE": "0.07",
            "REVSHARE_TAX_RATE": "0",
            "REVSHARE_SPLIT_TOLERANCE": "0.5",
            "REVSHARE_ROI_INVESTMENT": "2500",
        })
        assert config.fees.platform_fee_rate == Decimal("0.07")
        assert config.fees.processing_fee_rate == Decimal("0.029")
        assert config.fees.tax_rate == Decimal("0")
        assert config.split_tolerance == Decimal("0.5")
        assert config.roi_investment == Decimal("2500")

    def test_blank_value_uses_default(self):
        assert EngineConfig.from_env({"REVSHARE_TAX_RATE": ""}).fees.tax_rate == Decimal("0.10")

    @pytest.mark.parametrize("name,value", [
        ("REVSHARE_TAX_RATE", "ten percent"),
        ("REVSHARE_PLATFORM_FEE_RATE", "Infinity"),
        ("REVSHARE_PROCESSING_FEE_RATE", "2"),
        ("REVSHARE_ROI_INVESTMENT", "0"),
        ("REVSHARE_SPLIT_TOLERANCE", "-1"),
    ])
    def test_invalid_values(self, name, value):
        with pytest.raises(ValueError):
            EngineConfig.from_env({name: value})

    def test_config_reaches_calculation(self, collaboration_data):
        """Tax 0, platform 10%: $1,000 → fees 100 + 29, net 871"""
        config = EngineConfig(fees=FeeRates(platform_fee_rate=Decimal("0.10"), tax_rate=Decimal("0")))
        processor = SettlementProcessor(config=config)
        collab = processor.create_collaboration_from_dict(collaboration_data())
        assert processor.calculate_from_dict(collab["id"], {"gross_revenue": 1000})["net_distribution"] == 871.0
