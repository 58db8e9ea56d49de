# residency_forms/fees.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from types import MappingProxyType
from typing import Any, Iterable, Mapping

CENT = Decimal("0.01")


def parse_number_or_zero(raw: Any) -> Decimal:
    """
    Lenient parse for the free-text "other appliance" cost.
    Blank, garbage, NaN and infinity all count as zero.
    """
    if raw is None:
        return Decimal("0")
    t = str(raw).replace(",", "").strip()
    if not t:
        return Decimal("0")
    try:
        d = Decimal(t)
    except InvalidOperation:
        return Decimal("0")
    if not d.is_finite():
        return Decimal("0")
    return d


def money_str(x: Decimal) -> str:
    return f"{x.quantize(CENT, rounding=ROUND_HALF_UP):,.2f}"


@dataclass(frozen=True)
class FeeTable:
    """Appliance key -> fee for one academic term."""

    term: str
    fees: Mapping[str, int]

    @classmethod
    def from_json(cls, term: str, j: Mapping[str, Any]) -> "FeeTable":
        out: dict[str, int] = {}
        for key, val in (j or {}).items():
            fee = int(val)
            if fee <= 0:
                raise ValueError(f"Fee for {key!r} in term {term!r} must be positive, got {val!r}")
            out[str(key)] = fee
        return cls(term=term, fees=MappingProxyType(out))

    def fee_for(self, key: str) -> int:
        # Unknown keys are free so the appliance list can grow without breaking old submissions.
        return self.fees.get(key, 0)

    def __contains__(self, key: object) -> bool:
        return key in self.fees


def total_fee(selected_keys: Iterable[str], other_cost: Any, fee_table: FeeTable) -> Decimal:
    total = Decimal(sum(fee_table.fee_for(k) for k in set(selected_keys or ())))
    total += max(Decimal("0"), parse_number_or_zero(other_cost))
    return total
