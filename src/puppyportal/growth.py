"""Puppy growth tracking: week numbers, milestones and a rough adult-weight projection."""

from datetime import (
    date,
    datetime,
    timezone,
)
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Sequence,
)

from pydantic import BaseModel

OUNCES_PER_POUND = 16

MILESTONES = {
    1: "Newborn care, nursing, sleep. Handle with care.",
    2: "Eyes begin to open (10-14 days); senses developing.",
    3: "Hearing improves; first steps and wobbly walking.",
    4: "Play increases; begin gentle socialization.",
    5: "Introduce soft foods; curiosity and interaction grow.",
    6: "Weaning progressing; first vet visit & deworming typical.",
    7: "Confident play; basic crate/potty habits start forming.",
    8: "Ready for new home; vaccines/checks per schedule.",
}


class Milestone(BaseModel):
    week: int
    text: str
    done: bool = False
    note: Optional[str] = None


class GrowthReport(BaseModel):
    """What the "my puppy" view shows about a puppy's growth."""

    puppy_id: str
    name: Optional[str] = None
    dob: Optional[str] = None
    weights: List[Dict[str, Any]]
    current_week: Optional[int] = None
    projected_adult_weight_lb: Optional[float] = None
    milestones: List[Milestone]


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def derive_week(dob: Any, measured_at: Any) -> int:
    """Whole weeks between birth and a measurement; 0 when either date is unknown."""
    born = _to_datetime(dob)
    when = _to_datetime(measured_at)
    if born is None or when is None:
        return 0
    return max(0, (when - born).days // 7)


def _week_multiplier(week: int) -> float:
    # Rule-of-thumb multipliers for small breeds, approximate.
    if week <= 5:
        return 4.5
    if week == 6:
        return 4.0
    if week == 7:
        return 3.5
    return 3.0


def projected_adult_weight(dob: Any, weights: Sequence[Dict[str, Any]]) -> Optional[float]:
    """
    Estimate adult weight in pounds from the latest weigh-in.

    The latest row's ``week`` is used when present, otherwise the week is derived from *dob* and
    ``measured_at``.  Returns *None* when there is no dob, no weights, or no positive estimate.
    """
    if not dob or not weights:
        return None

    last = weights[-1]
    week = last.get("week")
    if week is None:
        week = derive_week(dob, last.get("measured_at"))

    try:
        pounds = float(last.get("ounces") or 0) / OUNCES_PER_POUND
        estimate = pounds * _week_multiplier(int(week))
    except (TypeError, ValueError):
        return None
    return round(estimate, 1) if estimate > 0 else None


def milestone_text(week: int) -> str:
    return MILESTONES.get(week, "Puppy milestone.")


def merge_milestones(rows: Sequence[Dict[str, Any]]) -> List[Milestone]:
    """
    Lay recorded milestone rows over the default weeks 1-8.

    A row replaces the ``done``/``note`` of its week; rows for weeks past 8 are added with the
    generic text.  Rows without a usable integer week are skipped.
    """
    merged = {week: Milestone(week=week, text=milestone_text(week)) for week in MILESTONES}
    for row in rows:
        try:
            week = int(row.get("week"))
        except (TypeError, ValueError):
            continue
        base = merged.get(week) or Milestone(week=week, text=milestone_text(week))
        merged[week] = base.model_copy(
            update={"done": bool(row.get("done")), "note": row.get("note") or None}
        )
    return [merged[week] for week in sorted(merged)]


def build_growth_report(
    puppy: Dict[str, Any],
    weights: Sequence[Dict[str, Any]],
    milestones: Sequence[Dict[str, Any]] = (),
) -> GrowthReport:
    dob = puppy.get("dob")
    current_week = derive_week(dob, datetime.now(timezone.utc)) if dob else None
    return GrowthReport(
        puppy_id=str(puppy.get("id")),
        name=puppy.get("name"),
        dob=str(dob) if dob else None,
        weights=list(weights),
        current_week=current_week,
        projected_adult_weight_lb=projected_adult_weight(dob, weights),
        milestones=merge_milestones(milestones),
    )
