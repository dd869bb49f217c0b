from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Tuple

from ..constants import LEGACY_PROJECT_REFERENCE_PREFIX, LEGACY_PROJECT_REFERENCE_SEPARATOR
from .dues import field, to_money


@dataclass(frozen=True)
class ProjectProgress:
    budget: Decimal
    funds_allocated: Decimal
    funds_spent: Decimal
    percent_spent: float
    percent_allocated: float

    @property
    def remaining_budget(self) -> Decimal:
        return self.budget - self.funds_spent


def _capped_percent(part: Decimal, whole: Decimal) -> float:
    if whole <= 0:
        return 0.0
    return float(min(part / whole * 100, Decimal("100")))


def project_progress(project: Any) -> ProjectProgress:
    budget = to_money(field(project, "budget"))
    allocated = to_money(field(project, "funds_allocated"))
    spent = to_money(field(project, "funds_spent"))
    return ProjectProgress(
        budget=budget,
        funds_allocated=allocated,
        funds_spent=spent,
        percent_spent=_capped_percent(spent, budget),
        percent_allocated=_capped_percent(allocated, budget),
    )


def is_legacy_contribution_reference(reference: Optional[str]) -> bool:
    return str(reference or "").startswith(LEGACY_PROJECT_REFERENCE_PREFIX)


def parse_legacy_contribution_reference(reference: str) -> Tuple[str, str]:
    """Split ``PROJ::<project_id>::<user_id>::<timestamp>`` into (project_id, user_id)."""
    parts = str(reference).split(LEGACY_PROJECT_REFERENCE_SEPARATOR)
    if len(parts) < 3 or parts[0] != LEGACY_PROJECT_REFERENCE_PREFIX or not parts[1] or not parts[2]:
        raise ValueError("Invalid Project Payment ID format.")
    return parts[1], parts[2]
