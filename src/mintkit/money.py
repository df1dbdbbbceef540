"""Exact-precision monetary amounts tagged with their currency."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import ROUND_DOWN, Decimal
from fractions import Fraction
from typing import Any, Union

from .constants import NATIVE_DECIMALS, NATIVE_SYMBOLS, ZERO_ADDRESS
from .errors import CurrencyMismatchError, InvalidInputError

Scalar = Union[int, float, str, Decimal, Fraction]

_CENTS = Decimal("0.01")


def format_units(value: int, decimals: int) -> str:
    """Format a raw integer amount as a decimal string.

    Trailing zeros are stripped but at least one fractional digit is kept,
    e.g. ``format_units(1500000, 6) == "1.5"`` and ``format_units(0, 18) == "0.0"``.
    """
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{sign}{whole}.{frac_str or '0'}"


def calculate_usd_value(amount: int, decimals: int, rate: Decimal | float | str) -> str:
    """Convert a raw amount into a USD string with two decimal places (truncated)."""
    rate_dec = Decimal(str(rate))
    if rate_dec <= 0:
        return "0.00"
    units = Decimal(amount) / (Decimal(10) ** decimals)
    return str((units * rate_dec).quantize(_CENTS, rounding=ROUND_DOWN))


def _to_fraction(scalar: Scalar) -> Fraction:
    if isinstance(scalar, bool):
        raise InvalidInputError(f"Invalid multiplier: {scalar!r}")
    if isinstance(scalar, (int, Fraction)):
        return Fraction(scalar)
    if isinstance(scalar, Decimal):
        if not scalar.is_finite():
            raise InvalidInputError(f"Invalid multiplier: {scalar}")
        return Fraction(scalar)
    try:
        # str() keeps the decimal the caller wrote (0.1 -> "0.1"), not its binary expansion
        return Fraction(str(scalar))
    except (ValueError, ZeroDivisionError) as e:
        raise InvalidInputError(f"Invalid multiplier: {scalar!r}") from e


def _scale_usd(usd: str | None, factor: Fraction) -> str | None:
    if usd is None:
        return None
    scaled = Decimal(usd) * Decimal(factor.numerator) / Decimal(factor.denominator)
    return str(scaled.quantize(_CENTS, rounding=ROUND_DOWN))


@dataclass(frozen=True)
class Money:
    """Immutable amount of a native or ERC-20 currency on a given network.

    ``value`` is the raw on-chain integer; ``decimals`` its scale. Two
    amounts share a currency when their token address (case-insensitive)
    and network match. Arithmetic and comparisons across currencies raise
    ``CurrencyMismatchError``; they never coerce.
    """

    value: int
    decimals: int
    address: str
    symbol: str
    network_id: int
    formatted_usd: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidInputError(f"Money value must be an integer, got {self.value!r}")
        if self.value < 0:
            raise InvalidInputError(f"Money value cannot be negative: {self.value}")
        if self.decimals < 0:
            raise InvalidInputError(f"Invalid decimals: {self.decimals}")

    # --- constructors ---

    @classmethod
    def native(
        cls, value: int, network_id: int, formatted_usd: str | None = None
    ) -> Money:
        return cls(
            value=value,
            decimals=NATIVE_DECIMALS,
            address=ZERO_ADDRESS,
            symbol=NATIVE_SYMBOLS.get(network_id, "ETH"),
            network_id=network_id,
            formatted_usd=formatted_usd,
        )

    @classmethod
    def zero(
        cls, decimals: int, address: str, symbol: str, network_id: int
    ) -> Money:
        return cls(
            value=0,
            decimals=decimals,
            address=address,
            symbol=symbol,
            network_id=network_id,
        )

    @classmethod
    def zero_like(cls, other: Money) -> Money:
        """A zero amount in the same currency as ``other``."""
        return replace(other, value=0, formatted_usd=None)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Money:
        """Rebuild a Money from ``to_dict()`` output."""
        try:
            return cls(
                value=int(data["value"]),
                decimals=int(data["decimals"]),
                address=str(data["address"]),
                symbol=str(data["symbol"]),
                network_id=int(data["network_id"]),
                formatted_usd=data.get("formatted_usd"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidInputError(f"Cannot deserialize Money from {data!r}") from e

    # --- identity ---

    @property
    def formatted(self) -> str:
        return format_units(self.value, self.decimals)

    @property
    def raw(self) -> int:
        return self.value

    def is_native(self) -> bool:
        return self.address.lower() == ZERO_ADDRESS

    def is_erc20(self) -> bool:
        return not self.is_native()

    def is_same_currency(self, other: Money) -> bool:
        return (
            self.address.lower() == other.address.lower()
            and self.network_id == other.network_id
            and self.decimals == other.decimals
        )

    @property
    def currency_key(self) -> tuple[int, str, int]:
        return (self.network_id, self.address.lower(), self.decimals)

    def _require_same_currency(self, other: Money, operation: str) -> None:
        if not self.is_same_currency(other):
            raise CurrencyMismatchError(
                f"Cannot {operation} different currencies: "
                f"{self.symbol} on {self.network_id} and {other.symbol} on {other.network_id}",
                details={
                    "left": {
                        "address": self.address,
                        "network_id": self.network_id,
                        "decimals": self.decimals,
                    },
                    "right": {
                        "address": other.address,
                        "network_id": other.network_id,
                        "decimals": other.decimals,
                    },
                },
            )

    # --- arithmetic ---

    def add(self, other: Money) -> Money:
        self._require_same_currency(other, "add")
        if self.formatted_usd is not None and other.formatted_usd is not None:
            usd: str | None = str(
                (Decimal(self.formatted_usd) + Decimal(other.formatted_usd)).quantize(_CENTS)
            )
        else:
            usd = self.formatted_usd or other.formatted_usd
        return replace(self, value=self.value + other.value, formatted_usd=usd)

    def subtract(self, other: Money) -> Money:
        self._require_same_currency(other, "subtract")
        if other.value > self.value:
            raise InvalidInputError(
                f"Cannot subtract {other.formatted} from {self.formatted} - would result in negative"
            )
        usd = None
        if self.formatted_usd is not None and other.formatted_usd is not None:
            diff = Decimal(self.formatted_usd) - Decimal(other.formatted_usd)
            usd = str(max(diff, Decimal(0)).quantize(_CENTS))
        return replace(self, value=self.value - other.value, formatted_usd=usd)

    def multiply(self, scalar: Scalar) -> Money:
        """Multiply by a (possibly fractional) scalar, truncating to the original scale."""
        factor = _to_fraction(scalar)
        if factor < 0:
            raise InvalidInputError(f"Multiplier cannot be negative: {scalar}")
        value = self.value * factor.numerator // factor.denominator
        return replace(
            self, value=value, formatted_usd=_scale_usd(self.formatted_usd, factor)
        )

    def multiply_int(self, scalar: int) -> Money:
        if isinstance(scalar, bool) or not isinstance(scalar, int) or scalar < 0:
            raise InvalidInputError(f"Multiplier must be a non-negative integer, got {scalar!r}")
        return replace(
            self,
            value=self.value * scalar,
            formatted_usd=_scale_usd(self.formatted_usd, Fraction(scalar)),
        )

    def divide_int(self, divisor: int) -> Money:
        """Divide by a positive integer, flooring to avoid fractional units."""
        if isinstance(divisor, bool) or not isinstance(divisor, int) or divisor <= 0:
            raise InvalidInputError(f"Divisor must be a positive integer, received {divisor!r}")
        return replace(
            self,
            value=self.value // divisor,
            formatted_usd=_scale_usd(self.formatted_usd, Fraction(1, divisor)),
        )

    # --- comparison ---

    def compare_to(self, other: Money) -> int:
        """Return -1, 0 or 1 as this amount is less than, equal to or greater than ``other``."""
        self._require_same_currency(other, "compare")
        if self.value < other.value:
            return -1
        if self.value > other.value:
            return 1
        return 0

    def is_equal_to(self, other: Money) -> bool:
        return self.compare_to(other) == 0

    def is_greater_than(self, other: Money) -> bool:
        return self.compare_to(other) > 0

    def is_greater_than_or_equal(self, other: Money) -> bool:
        return self.compare_to(other) >= 0

    def is_less_than(self, other: Money) -> bool:
        return self.compare_to(other) < 0

    def is_less_than_or_equal(self, other: Money) -> bool:
        return self.compare_to(other) <= 0

    def is_zero(self) -> bool:
        return self.value == 0

    def is_positive(self) -> bool:
        return self.value > 0

    # --- presentation ---

    def with_usd(self, formatted_usd: str | None) -> Money:
        return replace(self, formatted_usd=formatted_usd)

    def to_display_string(self, include_usd: bool = False) -> str:
        base = f"{self.formatted} {self.symbol}"
        if include_usd and self.formatted_usd is not None:
            return f"{base} (${self.formatted_usd})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Serialize losslessly; the raw value is emitted as a decimal string."""
        return {
            "value": str(self.value),
            "decimals": self.decimals,
            "address": self.address,
            "symbol": self.symbol,
            "network_id": self.network_id,
            "formatted": self.formatted,
            "formatted_usd": self.formatted_usd,
        }

    def __str__(self) -> str:
        return self.to_display_string()
