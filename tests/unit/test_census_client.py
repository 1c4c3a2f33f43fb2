import logging

import pytest
import requests

from services.census import CensusClient, CensusFields, FieldResult


def test_fetch_field_strips_header_and_aggregates(census_api):
    client = CensusClient(http_get=census_api)

    result = client.fetch_field("PES1")

    assert result.available
    assert result.counts == {"1": 3, "2": 1, "-1": 4}


def test_fetch_field_is_cached(census_api):
    client = CensusClient(http_get=census_api)

    first = client.fetch_field("PES1")
    second = client.fetch_field("PES1")

    assert first.counts == second.counts
    assert census_api.calls == ["PES1"]
    assert client.is_cached("PES1")


def test_fetch_field_passes_key_as_query_parameter():
    seen = {}

    def fake_get(url, params=None, timeout=None):
        seen.update(url=url, params=params, timeout=timeout)
        raise requests.ConnectionError("offline")

    client = CensusClient(base_url="https://census.test/data", timeout=3, http_get=fake_get)
    client.fetch_field("PES4")

    assert seen == {"url": "https://census.test/data", "params": {"get": "PES4"}, "timeout": 3}


def test_error_status_is_unavailable_and_not_cached(make_census_api, make_response, caplog):
    api = make_census_api({"PES1": make_response(status_code=503)})
    client = CensusClient(http_get=api)

    with caplog.at_level(logging.WARNING, logger="services.census"):
        result = client.fetch_field("PES1")

    assert result == FieldResult.unavailable()
    assert not client.is_cached("PES1")
    assert "503" in caplog.text

    client.fetch_field("PES1")
    assert api.calls == ["PES1", "PES1"]


@pytest.mark.parametrize("failure", [requests.Timeout("slow"), requests.ConnectionError("down")])
def test_request_errors_are_unavailable(make_census_api, failure):
    client = CensusClient(http_get=make_census_api({"PES1": failure}))

    assert not client.fetch_field("PES1").available


def test_bad_json_is_unavailable(make_census_api, make_response):
    client = CensusClient(http_get=make_census_api({"PES1": make_response(ValueError("not json"))}))

    assert not client.fetch_field("PES1").available


@pytest.mark.parametrize("payload", [
    [["PES1"], 1, 2],
    [["PES1"], [], ["1"]],
    [5, ["1"]],
    [["PES1"], {"code": "1"}],
])
def test_malformed_rows_are_unavailable(make_census_api, make_response, payload):
    client = CensusClient(http_get=make_census_api({"PES1": make_response(payload)}))

    result = client.fetch_field("PES1")

    assert result == FieldResult.unavailable()
    assert not client.is_cached("PES1")


def test_summary_survives_malformed_rows(make_census_api, make_response):
    summary = CensusClient(http_get=make_census_api({"PES1": make_response([["PES1"], 1])})).summary()

    assert summary["volunteer_frequency"] == 0
    assert "PES1" in summary["unavailable"]


def test_cached_counts_are_not_shared_with_callers(census_api):
    client = CensusClient(http_get=census_api)

    client.fetch_field("PES1").counts["1"] = 1000
    client.fetch_field("PES1").counts.clear()

    assert client.fetch_field("PES1").counts == {"1": 3, "2": 1, "-1": 4}
    assert census_api.calls == ["PES1"]


def test_summary_computes_metrics(census_api):
    summary = CensusClient(http_get=census_api).summary()

    assert summary["volunteer_frequency"] == 0.75
    assert summary["childrens_activity_frequency"] == 0.25
    assert summary["online_frequency"] == 0.5
    assert summary["average_hours"] == pytest.approx(4.25)
    assert summary["median_hours"] == 5
    assert summary["unavailable"] == []


def test_summary_degrades_to_zero_when_api_is_down(make_census_api):
    summary = CensusClient(http_get=make_census_api()).summary()

    assert summary["volunteer_frequency"] == 0
    assert summary["childrens_activity_frequency"] == 0
    assert summary["online_frequency"] == 0
    assert summary["average_hours"] == 0
    assert summary["median_hours"] == 0
    assert summary["unavailable"] == ["PES1", "PES3", "PES5", "PES4"]


def test_summary_uses_configured_fields(make_census_api, make_response):
    api = make_census_api({"V1": make_response([["V1"], ["1"], ["1"]])})
    fields = CensusFields(volunteer="V1", children="C1", online="O1", hours="H1")

    summary = CensusClient(http_get=api).summary(fields)

    assert summary["volunteer_frequency"] == 1
    assert summary["unavailable"] == ["C1", "O1", "H1"]
