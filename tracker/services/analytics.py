import math
from datetime import datetime, timedelta

from django.utils import timezone

ACCEPTED_VERDICT = 'OK'

RATING_BUCKETS = [
    ('0-999', 0, 1000),
    ('1000-1199', 1000, 1200),
    ('1200-1399', 1200, 1400),
    ('1400-1599', 1400, 1600),
    ('1600-1799', 1600, 1800),
    ('1800-1999', 1800, 2000),
    ('2000+', 2000, None),
]


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def window_start(days: int, now=None) -> datetime:
    """Local midnight of the day `days` days before now."""
    now = timezone.localtime(now or timezone.now())
    start = now - timedelta(days=days)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


def rating_bucket(rating: int) -> str:
    for label, low, high in RATING_BUCKETS:
        if rating >= low and (high is None or rating < high):
            return label
    return RATING_BUCKETS[0][0]


def _unique_solved(submissions, since):
    solved = {}
    for sub in submissions:
        if sub.verdict != ACCEPTED_VERDICT or sub.submission_time < since:
            continue
        key = (sub.contest_id, sub.problem_name)
        rating = sub.problem_rating or 0
        entry = solved.get(key)
        if entry is None:
            solved[key] = {
                'name': sub.problem_name,
                'rating': rating,
                'first_solved_at': sub.submission_time,
            }
            continue
        if rating > entry['rating']:
            entry['rating'] = rating
        if sub.submission_time < entry['first_solved_at']:
            entry['first_solved_at'] = sub.submission_time
    return list(solved.values())


def compute_problem_stats(submissions, days: int, now=None) -> dict:
    """
    Aggregates accepted submissions from the last `days` days.

    Problems are identified by (contest_id, problem_name); a problem solved
    several times is counted once, with the highest rating seen and the date
    of its first acceptance.
    """
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise ValueError("days must be a positive integer")

    problems = _unique_solved(submissions, window_start(days, now))
    total = len(problems)
    rated = [p for p in problems if p['rating'] > 0]

    average_rating = 0
    if rated:
        average_rating = int(_round_half_up(sum(p['rating'] for p in rated) / len(rated)))

    most_difficult = None
    for p in rated:
        if most_difficult is None or p['rating'] > most_difficult['rating']:
            most_difficult = {'name': p['name'], 'rating': p['rating']}

    distribution = {label: 0 for label, _, _ in RATING_BUCKETS}
    for p in rated:
        distribution[rating_bucket(p['rating'])] += 1

    heatmap = {}
    for p in problems:
        day = timezone.localtime(p['first_solved_at']).date().isoformat()
        heatmap[day] = heatmap.get(day, 0) + 1

    return {
        'totalProblems': total,
        'averageRating': average_rating,
        'averageProblemsPerDay': _round_half_up(total / days, 2),
        'mostDifficultProblem': most_difficult,
        'ratingDistribution': distribution,
        'submissionHeatmap': heatmap,
    }
