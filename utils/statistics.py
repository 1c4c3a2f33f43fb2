# utils/statistics.py
"""
Utility functions for census volunteer statistics
"""

# Default CPS Volunteer Supplement (September 2023) field keys
VOLUNTEER_FIELD = 'PES1'
CHILDREN_FIELD = 'PES3'
ONLINE_FIELD = 'PES5'
HOURS_FIELD = 'PES4'

YES = '1'
NO = '2'

# Online involvement scale, from all in-person to all online
ONLINE_WEIGHTS = {
    '1': 0,
    '2': 1,
    '3': 2,
    '4': 3,
    '5': 4,
}
MAX_ONLINE_WEIGHT = 4

MIN_HOURS = 1
MAX_HOURS = 500


def aggregate_responses(rows):
    """
    Count occurrences of each response code

    Args:
        rows: Sequence of rows whose first column is the response code

    Returns:
        Dictionary mapping response codes to counts
    """
    counts = {}

    for row in rows:
        code = str(row[0])
        counts[code] = counts.get(code, 0) + 1

    return counts


def _count(counts, code):
    return counts.get(str(code), 0)


def _yes_ratio(counts):
    yes = _count(counts, YES)
    no = _count(counts, NO)

    if yes + no == 0:
        return 0
    return yes / (yes + no)


def volunteer_frequency(counts):
    """Share of respondents who volunteered"""
    return _yes_ratio(counts)


def childrens_activity_frequency(counts):
    """Share of volunteers whose work involved children's activities"""
    return _yes_ratio(counts)


def online_frequency(counts):
    """
    Weighted online-ness score in [0, 1]

    All in-person answers only add to the denominator; all online answers
    carry the full weight.
    """
    weighted = sum(weight * _count(counts, code) for code, weight in ONLINE_WEIGHTS.items())
    total = sum(_count(counts, code) for code in ONLINE_WEIGHTS)

    if total == 0:
        return 0
    return weighted / MAX_ONLINE_WEIGHT / total


def _hour_counts(counts):
    for hour in range(MIN_HOURS, MAX_HOURS + 1):
        yield hour, _count(counts, hour)


def average_hours(counts):
    """Mean hours volunteered over answers between 1 and 500"""
    weighted = 0
    total = 0
    for hour, count in _hour_counts(counts):
        weighted += hour * count
        total += count

    if total == 0:
        return 0
    return weighted / total


def median_hours(counts):
    """
    Median hours volunteered from the frequency histogram

    Walks the hours upward, subtracting each count from half the population.
    The first hour that takes the running value below zero is the median;
    landing exactly on zero keeps walking.
    """
    total = sum(count for _, count in _hour_counts(counts))
    if total == 0:
        return 0

    remaining = total / 2
    for hour, count in _hour_counts(counts):
        remaining -= count
        if remaining < 0:
            return hour

    return 0


def get_statistics_summary(volunteer, children, online, hours):
    """
    Compute every metric from per-field counts

    Args:
        volunteer, children, online, hours: Response-code count mappings

    Returns:
        Dictionary with the five metrics
    """
    return {
        'volunteer_frequency': volunteer_frequency(volunteer),
        'childrens_activity_frequency': childrens_activity_frequency(children),
        'online_frequency': online_frequency(online),
        'average_hours': average_hours(hours),
        'median_hours': median_hours(hours),
    }
