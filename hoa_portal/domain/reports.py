from decimal import Decimal
from typing import Any, Dict, List, Mapping, Tuple

from .dues import to_money


def percent_of_total(amount: Any, total: Any) -> float:
    total_value = to_money(total)
    if total_value <= 0:
        return 0.0
    share = to_money(amount) / total_value * 100
    return float(share.quantize(Decimal("0.1")))


def breakdown_rows(breakdown: Mapping[str, Any], total: Any) -> List[Tuple[str, Decimal, float]]:
    """(label, amount, percent) rows, largest first."""
    rows = [(label, to_money(amount), percent_of_total(amount, total)) for label, amount in breakdown.items()]
    return sorted(rows, key=lambda row: row[1], reverse=True)


def cash_position_shares(cash_position: Mapping[str, Any]) -> Dict[str, float]:
    total = sum((to_money(value) for value in cash_position.values()), Decimal("0"))
    return {channel: percent_of_total(value, total) for channel, value in cash_position.items()}
