"""Pure reductions over rating data.

Everything here works on plain values already fetched from the database:
star values for summaries, ``(created_at, value)`` pairs for trends and
``(user_id, name, value)`` triples for reviewer tallies. Nothing touches the
session or the request, so the same inputs always give the same output.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from quantify.utils.error_handler import ValidationError

STAR_VALUES = (1, 2, 3, 4, 5)


def round_half_up(value, places=1):
    """Round like a person would: 4.25 -> 4.3, never banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def safe_average(total, count):
    """Mean rounded to one decimal; 0 for an empty set."""
    if not count:
        return 0.0
    quotient = Decimal(total) / Decimal(count)
    return float(quotient.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


def empty_distribution():
    return {star: 0 for star in STAR_VALUES}


def _check_star(value):
    if isinstance(value, bool) or value not in STAR_VALUES:
        raise ValidationError(f'Rating value {value!r} is outside 1-5')
    return value


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------

@dataclass
class RatingSummary:
    count: int
    average: float
    distribution: Dict[int, int]

    def percentages(self):
        """Share of each star as a whole percent."""
        return {
            star: int(round_half_up(n * 100 / self.count, 0)) if self.count else 0
            for star, n in self.distribution.items()
        }

    def distribution_list(self, with_percentage=False):
        percentages = self.percentages() if with_percentage else None
        rows = []
        for star in STAR_VALUES:
            row = {'rating': star, 'count': self.distribution[star]}
            if with_percentage:
                row['percentage'] = percentages[star]
            rows.append(row)
        return rows

    def to_dict(self):
        return {
            'count': self.count,
            'average': self.average,
            'distribution': dict(self.distribution),
        }


def summarize_ratings(values: Iterable[int]) -> RatingSummary:
    """Count, rounded average and per-star distribution of ``values``."""
    distribution = empty_distribution()
    total = 0
    count = 0
    for value in values:
        distribution[_check_star(value)] += 1
        total += value
        count += 1
    return RatingSummary(count=count, average=safe_average(total, count), distribution=distribution)


# ---------------------------------------------------------------------------
# Trend binner
# ---------------------------------------------------------------------------

class TrendUnit(Enum):
    DAY = 'day'
    MONTH = 'month'


@dataclass
class TrendBucket:
    label: str
    count: int = 0
    total: int = 0

    @property
    def average(self):
        return safe_average(self.total, self.count)

    def add(self, value):
        self.count += 1
        self.total += value

    def to_dict(self):
        return {'label': self.label, 'count': self.count, 'average': self.average}


def shift_month(year, month, delta):
    """Move ``delta`` calendar months from ``year``/``month``."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def bucket_label(moment, unit):
    if unit is TrendUnit.DAY:
        return moment.strftime('%Y-%m-%d')
    return moment.strftime('%Y-%m')


def trend_window(unit: TrendUnit, span: int, now: datetime) -> Tuple[datetime, List[str]]:
    """Start of the lookback window and every bucket label in it, oldest first.

    Days cover ``[now - span days, now]``, one label per calendar date touched.
    Months cover the ``span`` calendar months ending with the current one.
    """
    if span < 1:
        raise ValidationError('Trend window must cover at least one period')

    if unit is TrendUnit.DAY:
        start = now - timedelta(days=span)
        labels = []
        current = start.date()
        while current <= now.date():
            labels.append(current.strftime('%Y-%m-%d'))
            current += timedelta(days=1)
        return start, labels

    first_year, first_month = shift_month(now.year, now.month, -(span - 1))
    start = datetime(first_year, first_month, 1)
    labels = []
    for offset in range(span):
        year, month = shift_month(first_year, first_month, offset)
        labels.append(f'{year:04d}-{month:02d}')
    return start, labels


def bin_trend(points: Iterable[Tuple[datetime, int]], unit: TrendUnit, span: int,
              now: datetime) -> List[TrendBucket]:
    """Group ``(created_at, value)`` points into the buckets of the window."""
    start, labels = trend_window(unit, span, now)
    buckets = {label: TrendBucket(label) for label in labels}

    for created_at, value in points:
        if created_at is None:
            continue
        if isinstance(created_at, date) and not isinstance(created_at, datetime):
            created_at = datetime(created_at.year, created_at.month, created_at.day)
        if created_at < start:
            continue
        bucket = buckets.get(bucket_label(created_at, unit))
        if bucket is not None:
            bucket.add(_check_star(value))

    return [buckets[label] for label in labels]


# ---------------------------------------------------------------------------
# Top-N reducer
# ---------------------------------------------------------------------------

@dataclass
class ReviewerTally:
    """Running count and mean of one submitter's ratings."""

    user_id: int
    name: Optional[str] = None
    count: int = 0
    average: float = 0.0

    def fold(self, value):
        value = _check_star(value)
        self.average = (self.average * self.count + value) / (self.count + 1)
        self.count += 1
        return self

    def merge(self, other):
        """Combine two partial tallies of the same submitter, weighted by count."""
        if other.user_id != self.user_id:
            raise ValueError('Cannot merge tallies of different submitters')
        count = self.count + other.count
        average = (self.average * self.count + other.average * other.count) / count if count else 0.0
        return ReviewerTally(self.user_id, self.name or other.name, count, average)

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'name': self.name,
            'ratings_count': self.count,
            'average_rating': round_half_up(self.average),
        }


@dataclass
class ReviewerLedger:
    """Tallies keyed by submitter, remembering first-seen order."""

    tallies: Dict[int, ReviewerTally] = field(default_factory=dict)

    def fold(self, user_id, name, value):
        tally = self.tallies.get(user_id)
        if tally is None:
            tally = self.tallies[user_id] = ReviewerTally(user_id, name)
        tally.fold(value)
        return self

    def merge(self, other):
        """New ledger holding both sides; neither input is modified."""
        merged = ReviewerLedger({user_id: replace(tally) for user_id, tally in self.tallies.items()})
        for user_id, tally in other.tallies.items():
            if user_id in merged.tallies:
                merged.tallies[user_id] = merged.tallies[user_id].merge(tally)
            else:
                merged.tallies[user_id] = replace(tally)
        return merged

    def top(self, limit=5):
        # sorted() is stable, so equal counts keep first-seen order
        ranked = sorted(self.tallies.values(), key=lambda tally: tally.count, reverse=True)
        return ranked[:limit]


def tally_reviewers(entries: Iterable[Tuple[int, Optional[str], int]]) -> ReviewerLedger:
    ledger = ReviewerLedger()
    for user_id, name, value in entries:
        ledger.fold(user_id, name, value)
    return ledger


def top_reviewers(entries, limit=5) -> List[ReviewerTally]:
    """Top ``limit`` submitters by number of ratings."""
    if limit < 1:
        raise ValidationError('limit must be at least 1')
    return tally_reviewers(entries).top(limit)
