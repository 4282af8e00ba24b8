"""
Progress and insight calculators

Pure functions shared by the achievement and habit engines. Every function
accepts empty input and returns 0, [] or "stable" instead of raising.
"""

import math
from datetime import date, timedelta
from typing import Iterable, List, Mapping, Optional

from habitcore.utils.datetime_helpers import parse_date_key, shift_date_key, to_date, DateLike

# Consistency scoring
CONSISTENCY_MIN_COMPLETIONS = 7
CONSISTENCY_RECENT_DAYS = 30
CONSISTENCY_AVG_WEIGHT = 0.6
CONSISTENCY_MAX_WEIGHT = 0.4

# Trend detection
TREND_THRESHOLD = 2


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (2.5 -> 3)"""
    return int(math.floor(value + 0.5))


def _ratio(current: float, target: float) -> float:
    """Fraction of target reached, clamped to [0, 1]; zero target is 0"""
    if not target or target <= 0:
        return 0.0
    clamped = min(max(current or 0, 0), target)
    return clamped / target


def percentage_of_target(current: float, target: float) -> int:
    """
    Percentage of target reached, clamped to [0, 100]

    Examples:
        percentage_of_target(5, 10) -> 50
        percentage_of_target(15, 10) -> 100
        percentage_of_target(3, 0) -> 0
    """
    return round_half_up(100 * _ratio(current, target))


def requirement_percentage(requirement: Mapping[str, float], metrics: Mapping[str, float]) -> int:
    """
    Unweighted average of per-metric percentages for a requirement

    Missing metrics count as 0.
    """
    if not requirement:
        return 0
    total = sum(_ratio(metrics.get(name, 0), target) for name, target in requirement.items())
    return round_half_up(100 * total / len(requirement))


def meets_requirement(requirement: Mapping[str, float], metrics: Mapping[str, float]) -> bool:
    """True when every required metric meets or exceeds its threshold"""
    return all((metrics.get(name) or 0) >= threshold for name, threshold in requirement.items())


def count_in_window(date_keys: Iterable[str], end: DateLike, days: int) -> int:
    """
    Count date keys within the `days` calendar days ending at `end` (inclusive)
    """
    if days <= 0:
        return 0
    end_date = to_date(end)
    start_date = end_date - timedelta(days=days - 1)
    return sum(1 for key in set(date_keys) if start_date <= parse_date_key(key) <= end_date)


def completion_rate(date_keys: Iterable[str], end: DateLike, days: int = 30) -> int:
    """Percentage of the trailing window's days with a completion"""
    if days <= 0:
        return 0
    return min(100, round_half_up(100 * count_in_window(date_keys, end, days) / days))


def consecutive_runs(date_keys: Iterable[str]) -> List[int]:
    """
    Lengths of maximal consecutive-day runs, oldest run first

    Example:
        ["2024-01-01", "2024-01-02", "2024-01-05"] -> [2, 1]
    """
    days = sorted({parse_date_key(key) for key in date_keys})
    runs: List[int] = []
    previous: Optional[date] = None
    for day in days:
        if previous is not None and (day - previous).days == 1:
            runs[-1] += 1
        else:
            runs.append(1)
        previous = day
    return runs


def run_ending_at(date_keys: Iterable[str], end_key: str) -> int:
    """
    Length of the consecutive-day run that ends on end_key

    Later days are not counted; 0 if end_key itself is absent.

    Example:
        ["2024-01-01", "2024-01-02", "2024-01-03"], "2024-01-02" -> 2
    """
    days = set(date_keys)
    count = 0
    key = end_key
    while key in days:
        count += 1
        key = shift_date_key(key, -1)
    return count


def consistency_score(date_keys: Iterable[str]) -> int:
    """
    0-100 score favouring long, stable runs over fragmented ones

    Uses the most recent 30 completion days. Fewer than 7 completions in
    total scores 0.
    """
    keys = sorted(set(date_keys))
    if len(keys) < CONSISTENCY_MIN_COMPLETIONS:
        return 0

    runs = consecutive_runs(keys[-CONSISTENCY_RECENT_DAYS:])
    avg_run = sum(runs) / len(runs)
    max_run = max(runs)
    return min(100, round_half_up((avg_run * CONSISTENCY_AVG_WEIGHT + max_run * CONSISTENCY_MAX_WEIGHT) * 10))


def trend_direction(date_keys: Iterable[str], end: DateLike, days: int = 14) -> str:
    """
    Compare completions in the recent half of the window against the older half

    Returns 'improving', 'declining' or 'stable'.
    """
    keys = list(date_keys)
    if not keys or days < 2:
        return "stable"

    half = days // 2
    end_date = to_date(end)
    second_half = count_in_window(keys, end_date, half)
    first_half = count_in_window(keys, end_date - timedelta(days=half), days - half)

    difference = second_half - first_half
    if difference >= TREND_THRESHOLD:
        return "improving"
    if difference <= -TREND_THRESHOLD:
        return "declining"
    return "stable"
