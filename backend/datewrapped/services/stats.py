"""
Stats aggregation over a user's dating entries

Pure functions: the result only depends on the multiset of entries, never on
their order, and is recomputed from the full list every time.
"""
import math
from collections import Counter
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

RATING_BUCKETS = (1, 2, 3, 4, 5)
COST_CHART_SIZE = 8
RELATIONSHIP_OUTCOME = "Relationship"


@dataclass
class FlagCount:
    text: str
    count: int


@dataclass
class ReportCard:
    """Scores in [0, 1]"""
    rating_score: float
    success_rate: float
    dating_frequency: float


@dataclass
class DatingStats:
    total_dates: int
    total_people: int
    total_spent: float
    avg_rating: float
    avg_cost_per_date: float
    platform_counts: Dict[str, int] = field(default_factory=dict)
    outcome_counts: Dict[str, int] = field(default_factory=dict)
    rating_counts: Dict[str, int] = field(default_factory=dict)
    red_flags: List[FlagCount] = field(default_factory=list)
    green_flags: List[FlagCount] = field(default_factory=list)
    cost_per_person: List[Dict[str, Any]] = field(default_factory=list)
    report_card: Optional[ReportCard] = None
    timeline: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _get(entry, name: str, default=None):
    if isinstance(entry, dict):
        value = entry.get(name, default)
    else:
        value = getattr(entry, name, default)
    return default if value is None else value


def _as_datetime(value) -> Optional[datetime]:
    """Naive UTC datetime from a datetime or ISO string"""
    if isinstance(value, str) and value:
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _round(value: float) -> float:
    return round(float(value), 2)


def count_by(entries: Iterable, name: str) -> Dict[str, int]:
    """Frequency table of one column, most frequent first"""
    counter = Counter(str(_get(e, name, "Unknown")) for e in entries)
    return dict(sorted(counter.items(), key=lambda kv: (-kv[1], kv[0])))


def rating_distribution(entries: Iterable) -> Dict[str, int]:
    counter = Counter(int(_get(e, "rating", 0)) for e in entries)
    buckets = {str(r): counter.get(r, 0) for r in RATING_BUCKETS}
    for rating, count in sorted(counter.items()):
        if rating not in RATING_BUCKETS:
            buckets[str(rating)] = count
    return buckets


def flag_frequencies(entries: Iterable, name: str) -> List[FlagCount]:
    """Flatten one flag column across entries and count each tag"""
    counter: Counter = Counter()
    for entry in entries:
        counter.update(_get(entry, name, []) or [])
    return [
        FlagCount(text=text, count=count)
        for text, count in sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))
    ]


def cost_per_person(entries: List, limit: int = COST_CHART_SIZE) -> List[Dict[str, Any]]:
    """Average cost per date for the newest `limit` people"""
    newest = sorted(
        entries,
        key=lambda e: (
            _as_datetime(_get(e, "created_at")) or datetime.min,
            str(_get(e, "id", "")),
            str(_get(e, "person_name", "")),
            int(_get(e, "num_dates", 0)),
            float(_get(e, "total_cost", 0.0)),
        ),
        reverse=True,
    )[:limit]
    result = []
    for entry in newest:
        num_dates = int(_get(entry, "num_dates", 0))
        cost = float(_get(entry, "total_cost", 0.0))
        result.append({
            "name": _get(entry, "person_name", ""),
            "value": _round(cost / num_dates) if num_dates > 0 else 0.0,
        })
    return result


def monthly_timeline(entries: Iterable) -> Dict[str, int]:
    counter = Counter()
    for entry in entries:
        created = _as_datetime(_get(entry, "created_at"))
        if created is not None:
            counter[created.strftime("%Y-%m")] += 1
    return dict(sorted(counter.items()))


def compute_stats(entries: Iterable) -> DatingStats:
    entries = list(entries)
    total_people = len(entries)
    total_dates = sum(int(_get(e, "num_dates", 0)) for e in entries)
    total_spent = math.fsum(float(_get(e, "total_cost", 0.0)) for e in entries)
    rating_sum = sum(int(_get(e, "rating", 0)) for e in entries)

    avg_rating = rating_sum / total_people if total_people else 0.0
    avg_cost_per_date = total_spent / total_dates if total_dates > 0 else 0.0

    outcome_counts = count_by(entries, "outcome")
    relationships = outcome_counts.get(RELATIONSHIP_OUTCOME, 0)

    report_card = ReportCard(
        rating_score=_round(avg_rating / 5),
        success_rate=_round(relationships / total_people) if total_people else 0.0,
        dating_frequency=_round(min(total_dates / (total_people * 3), 1.0)) if total_people else 0.0,
    )

    return DatingStats(
        total_dates=total_dates,
        total_people=total_people,
        total_spent=_round(total_spent),
        avg_rating=_round(avg_rating),
        avg_cost_per_date=_round(avg_cost_per_date),
        platform_counts=count_by(entries, "platform"),
        outcome_counts=outcome_counts,
        rating_counts=rating_distribution(entries),
        red_flags=flag_frequencies(entries, "red_flags"),
        green_flags=flag_frequencies(entries, "green_flags"),
        cost_per_person=cost_per_person(entries),
        report_card=report_card,
        timeline=monthly_timeline(entries),
    )
