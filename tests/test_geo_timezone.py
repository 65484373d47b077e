from datetime import date, time

import pytest
import requests

from conftest import FakeAstrologyClient
from insights_api.errors import EndpointError, MissingCredentialError
from insights_api.services import astro_client, endpoints, geo
from insights_api.services.astro_client import AstrologyApiClient
from insights_api.services.geo import GeoResolver
from insights_api.services.timezone_offset import TimezoneOffsetResolver


def _geo_client(settings, reply):
    return FakeAstrologyClient(settings, replies={endpoints.GEO_DETAILS: reply})


def test_first_candidate_is_authoritative(settings):
    client = FakeAstrologyClient(settings)
    details = GeoResolver(client, settings).resolve("Hyderabad")

    assert details.latitude == 17.385
    assert details.timezone_id == "Asia/Kolkata"
    assert details.defaults_used is False
    assert client.called(endpoints.GEO_DETAILS) == [{"location": "Hyderabad"}]


@pytest.mark.parametrize(
    "reply",
    [
        {"statusCode": 200, "output": []},
        {"statusCode": 200, "output": [{"latitude": "north", "longitude": 10}]},
        {"statusCode": 200, "output": [{"latitude": 120.0, "longitude": 10.0, "timezone": "UTC"}]},
        "unexpected",
    ],
)
def test_empty_or_bad_geocode_uses_default_place(settings, reply):
    details = GeoResolver(_geo_client(settings, reply), settings).resolve("Nowhere")

    assert details.defaults_used is True
    assert (details.latitude, details.longitude) == (28.6139, 77.2090)
    assert details.timezone_id == "Asia/Kolkata"
    assert details.timezone_offset_hours == 5.5


def test_geocode_failure_uses_default_place(settings):
    client = FakeAstrologyClient(settings, failing=[endpoints.GEO_DETAILS])
    details = GeoResolver(client, settings).resolve("Hyderabad")
    assert details.defaults_used is True


def test_missing_timezone_is_inferred(settings, monkeypatch):
    monkeypatch.setattr(geo, "infer_tz", lambda lat, lon: "Europe/Paris")
    reply = {"output": [{"latitude": 48.8566, "longitude": 2.3522, "timezone_offset": 1.0}]}
    details = GeoResolver(_geo_client(settings, reply), settings).resolve("Paris")

    assert details.timezone_id == "Europe/Paris"
    assert details.timezone_offset_hours == 1.0
    assert details.defaults_used is False


def test_uninferable_timezone_takes_default_zone_and_offset(settings, monkeypatch):
    monkeypatch.setattr(geo, "infer_tz", lambda lat, lon: None)
    reply = {"output": [{"latitude": 0.0, "longitude": -150.0, "timezone_offset": -10.0}]}
    details = GeoResolver(_geo_client(settings, reply), settings).resolve("Mid Pacific")

    assert details.latitude == 0.0
    assert details.timezone_id == "Asia/Kolkata"
    assert details.timezone_offset_hours == 5.5


@pytest.mark.parametrize(
    "reply,expected",
    [
        ({"statusCode": 200, "output": -4.0}, -4.0),
        ({"timezone_offset": 5.75}, 5.75),
        ({"output": {"offset": "9.5"}}, 9.5),
        ({"output": 42}, 5.5),
        ({"output": "soon"}, 5.5),
        ({"statusCode": 200}, 5.5),
    ],
)
def test_timezone_offset_extraction(settings, reply, expected):
    client = FakeAstrologyClient(settings, replies={endpoints.TIMEZONE_WITH_DST: reply})
    offset = TimezoneOffsetResolver(client, settings).resolve(
        "America/New_York", date(2020, 7, 1), time(9, 30)
    )
    assert offset == expected


def test_timezone_request_carries_local_date_and_time(settings):
    client = FakeAstrologyClient(settings)
    TimezoneOffsetResolver(client, settings).resolve("America/New_York", date(2020, 7, 1), time(9, 30))
    assert client.called(endpoints.TIMEZONE_WITH_DST) == [
        {"timezone": "America/New_York", "year": 2020, "month": 7, "date": 1, "hours": 9, "minutes": 30}
    ]


def test_timezone_failure_uses_default_offset(settings):
    client = FakeAstrologyClient(settings, failing=[endpoints.TIMEZONE_WITH_DST])
    offset = TimezoneOffsetResolver(client, settings).resolve("Asia/Tokyo", date(2020, 1, 1), time(0, 0))
    assert offset == 5.5


class _Response:
    def __init__(self, status_code=200, payload=None, text_only=False):
        self.status_code = status_code
        self._payload = payload
        self._text_only = text_only

    def json(self):
        if self._text_only:
            raise ValueError("no json")
        return self._payload


def _patch_post(monkeypatch, response=None, error=None):
    seen = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        seen.update(url=url, json=json, headers=headers, timeout=timeout)
        if error is not None:
            raise error
        return response

    monkeypatch.setattr(astro_client.requests, "post", fake_post)
    return seen


def test_client_posts_with_key_header(settings, monkeypatch):
    seen = _patch_post(monkeypatch, _Response(payload={"statusCode": 200, "output": 1}))
    result = AstrologyApiClient(settings).post("planets", {"year": 1990})

    assert result == {"statusCode": 200, "output": 1}
    assert seen["url"] == "https://json.freeastrologyapi.com/planets"
    assert seen["headers"]["x-api-key"] == "test-key"
    assert seen["timeout"] == settings.astrology_api_timeout


@pytest.mark.parametrize(
    "response,error",
    [
        (_Response(status_code=500), None),
        (_Response(status_code=200, text_only=True), None),
        (_Response(payload={"statusCode": 403, "message": "Forbidden"}), None),
        (None, requests.ConnectionError("refused")),
        (None, requests.Timeout("slow")),
    ],
)
def test_client_failures_become_endpoint_errors(settings, monkeypatch, response, error):
    _patch_post(monkeypatch, response, error)
    with pytest.raises(EndpointError) as excinfo:
        AstrologyApiClient(settings).post("planets", {})
    assert excinfo.value.endpoint == "planets"


def test_placeholder_key_counts_as_missing(settings):
    from dataclasses import replace

    client = AstrologyApiClient(replace(settings, astrology_api_key="PLACEHOLDER_API_KEY"))
    with pytest.raises(MissingCredentialError):
        client.require_key()


@pytest.mark.parametrize("reply", [None, {"statusCode": 200, "output": "n/a"}])
def test_timezone_lookup_reports_failure_as_none(settings, reply):
    replies = {} if reply is None else {endpoints.TIMEZONE_WITH_DST: reply}
    client = FakeAstrologyClient(settings, replies=replies)
    assert TimezoneOffsetResolver(client, settings).lookup("Asia/Tokyo", date(2020, 1, 1), time(0, 0)) is None
