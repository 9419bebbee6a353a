from dataclasses import dataclass
from typing import List

from app.schemas.strategy import AssetAllocation

TARGET_TOTAL = 100.0
DEFAULT_TOLERANCE = 0.5


@dataclass
class AllocationSummary:
    items: List[AssetAllocation]
    reported_total: float  # sum of the percentages as generated
    renormalized: bool


def summarize_allocation(
    allocations: List[AssetAllocation],
    renormalize: bool = True,
    tolerance: float = DEFAULT_TOLERANCE,
) -> AllocationSummary:
    """Check generated allocation percentages and optionally rescale them to 100.

    Negative percentages are clamped to zero. When the clamped total is off by
    more than ``tolerance`` points, every item is scaled proportionally and the
    rounding residue goes to the largest item.
    """
    reported_total = sum(a.percentage for a in allocations)
    if not renormalize or not allocations:
        return AllocationSummary(items=list(allocations), reported_total=reported_total, renormalized=False)

    clamped = [max(0.0, a.percentage) for a in allocations]
    clamped_total = sum(clamped)
    any_clamped = any(a.percentage < 0 for a in allocations)

    if clamped_total <= 0:
        items = [a.model_copy(update={"percentage": p}) for a, p in zip(allocations, clamped)]
        return AllocationSummary(items=items, reported_total=reported_total, renormalized=any_clamped)

    if not any_clamped and abs(clamped_total - TARGET_TOTAL) <= tolerance:
        return AllocationSummary(items=list(allocations), reported_total=reported_total, renormalized=False)

    scaled = [round(p * TARGET_TOTAL / clamped_total, 2) for p in clamped]
    residue = round(TARGET_TOTAL - sum(scaled), 2)
    if residue:
        largest = max(range(len(scaled)), key=lambda i: scaled[i])
        scaled[largest] = round(scaled[largest] + residue, 2)

    items = [a.model_copy(update={"percentage": p}) for a, p in zip(allocations, scaled)]
    return AllocationSummary(items=items, reported_total=reported_total, renormalized=True)


class InvalidAllocation(ValueError):
    """Allocation percentages that cannot be stored as a strategy."""


def check_allocation(allocations: List[AssetAllocation], tolerance: float = DEFAULT_TOLERANCE) -> None:
    if any(a.percentage < 0 for a in allocations):
        raise InvalidAllocation("Allocation percentages cannot be negative.")
    total = sum(a.percentage for a in allocations)
    if abs(total - TARGET_TOTAL) > tolerance:
        raise InvalidAllocation(f"Allocation percentages must add up to 100 (got {total:g}).")
