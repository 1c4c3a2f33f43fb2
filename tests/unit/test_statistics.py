import pytest

from utils.statistics import (
    aggregate_responses,
    average_hours,
    childrens_activity_frequency,
    get_statistics_summary,
    median_hours,
    online_frequency,
    volunteer_frequency,
)


def test_aggregate_counts_first_column():
    rows = [["1"], ["2", "x"], ["1"], [-1], ["1"]]

    counts = aggregate_responses(rows)

    assert counts == {"1": 3, "2": 1, "-1": 1}
    assert sum(counts.values()) == len(rows)
    assert set(counts) <= {str(row[0]) for row in rows}


def test_aggregate_empty():
    assert aggregate_responses([]) == {}


def test_volunteer_frequency_ignores_other_codes():
    assert volunteer_frequency({"1": 3, "2": 1, "-1": 100}) == 0.75


def test_childrens_activity_frequency():
    assert childrens_activity_frequency({"1": 1, "2": 3}) == 0.25


@pytest.mark.parametrize("metric", [
    volunteer_frequency,
    childrens_activity_frequency,
    online_frequency,
    average_hours,
    median_hours,
])
def test_metrics_are_zero_without_data(metric):
    assert metric({}) == 0


def test_online_frequency_all_in_person():
    assert online_frequency({"1": 10, "2": 0, "3": 0, "4": 0, "5": 0}) == 0


def test_online_frequency_all_online():
    assert online_frequency({"5": 10}) == 1


def test_online_frequency_mixed():
    # (1*1 + 2*1 + 4*2) / 4 / 5
    assert online_frequency({"2": 1, "3": 1, "5": 2, "1": 1}) == pytest.approx(11 / 20)


def test_average_hours_scenario():
    assert average_hours({"1": 2, "5": 1, "10": 1}) == pytest.approx(4.25)


def test_median_hours_does_not_stop_on_exact_zero():
    # half of 4 is 2; hour 1 brings it to exactly 0, hour 5 takes it below
    assert median_hours({"1": 2, "5": 1, "10": 1}) == 5


def test_median_hours_single_answer():
    assert median_hours({"3": 1}) == 3


def test_hours_outside_range_are_ignored():
    counts = {"0": 50, "-1": 7, "501": 9, "20": 2}

    assert average_hours(counts) == 20
    assert median_hours(counts) == 20


def test_summary_has_every_metric():
    summary = get_statistics_summary(
        volunteer={"1": 1, "2": 1},
        children={},
        online={"5": 1},
        hours={"4": 2},
    )

    assert summary == {
        "volunteer_frequency": 0.5,
        "childrens_activity_frequency": 0,
        "online_frequency": 1,
        "average_hours": 4,
        "median_hours": 4,
    }
