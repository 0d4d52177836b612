"""
Engine Configuration

Fee rates, split tolerance and the ROI baseline. Defaults mirror the
platform's published fee schedule; every value can be overridden through
environment variables for a given deployment.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

ENV_PREFIX = "REVSHARE_"


@dataclass(frozen=True)
class FeeRates:
    """Rates applied to gross revenue. All values are fractions (0.05 = 5%)."""

    platform_fee_rate: Decimal = Decimal("0.05")
    processing_fee_rate: Decimal = Decimal("0.029")
    tax_rate: Decimal = Decimal("0.10")  # flat stand-in, not jurisdiction aware

    def __post_init__(self):
        for name in ("platform_fee_rate", "processing_fee_rate", "tax_rate"):
            value = getattr(self, name)
            if not (0 <= value <= 1):
                raise ValueError(f"{name} must be between 0 and 1, got: {value}")

    @property
    def total_rate(self) -> Decimal:
        return self.platform_fee_rate + self.processing_fee_rate + self.tax_rate


@dataclass(frozen=True)
class EngineConfig:
    """Top-level configuration shared by the calculators, registry and tracker."""

    fees: FeeRates = field(default_factory=FeeRates)
    split_tolerance: Decimal = Decimal("0.01")
    roi_investment: Decimal = Decimal("1000")

    def __post_init__(self):
        if self.split_tolerance < 0:
            raise ValueError(f"split_tolerance cannot be negative, got: {self.split_tolerance}")
        if self.roi_investment <= 0:
            raise ValueError(f"roi_investment must be positive, got: {self.roi_investment}")

    @classmethod
    def from_env(cls, environ=None) -> "EngineConfig":
        """Build a config from REVSHARE_* variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()

        fees = FeeRates(
            platform_fee_rate=_decimal_env(env, "PLATFORM_FEE_RATE", defaults.fees.platform_fee_rate),
            processing_fee_rate=_decimal_env(env, "PROCESSING_FEE_RATE", defaults.fees.processing_fee_rate),
            tax_rate=_decimal_env(env, "TAX_RATE", defaults.fees.tax_rate),
        )
        return cls(
            fees=fees,
            split_tolerance=_decimal_env(env, "SPLIT_TOLERANCE", defaults.split_tolerance),
            roi_investment=_decimal_env(env, "ROI_INVESTMENT", defaults.roi_investment),
        )


def _decimal_env(env, name: str, default: Decimal) -> Decimal:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got: {raw!r}")
    if not value.is_finite():
        raise ValueError(f"{ENV_PREFIX}{name} must be finite, got: {raw!r}")
    return value
