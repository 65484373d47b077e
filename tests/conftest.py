import threading
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest

from insights_api.config import Settings
from insights_api.errors import EndpointError, LLMUnavailableError
from insights_api.services import endpoints
from insights_api.services.astro_client import AstrologyApiClient


CORE_REPLY = {
    "statusCode": 200,
    "output": [
        {
            "0": {"name": "Ascendant", "fullDegree": 130.5, "normDegree": 10.5, "current_sign": 5, "isRetro": "false"},
            "1": {"name": "Sun", "fullDegree": 121.2, "normDegree": 1.2, "current_sign": 5, "isRetro": "false"},
            "2": {"name": "Moon", "fullDegree": 45.0, "normDegree": 15.0, "current_sign": 2, "isRetro": "false"},
            "3": {"name": "Saturn", "fullDegree": 300.0, "normDegree": 0.0, "current_sign": 11, "isRetro": "true"},
        },
        {"debug": {"observation_point": "topocentric", "ayanamsa": "lahiri"}},
    ],
}

ALMANAC_REPLY = {
    "statusCode": 200,
    "output": {
        "nakshatra": {"name": "Rohini", "number": 4},
        "tithi": {"name": "Shukla Panchami"},
        "yoga": {"name": "Siddhi"},
    },
}

EXTENDED_REPLY = {
    "statusCode": 200,
    "output": {
        "Ascendant": {"zodiac_sign_name": "Leo", "nakshatra_name": "Magha", "nakshatra_pada": 4},
        "Moon": {
            "zodiac_sign_name": "Gemini",
            "zodiac_sign_lord": "Mercury",
            "nakshatra_name": "Mrigashira",
            "nakshatra_pada": 3,
            "nakshatra_vimsottari_lord": "Mars",
            "house_number": 11,
        },
        "Sun": {"zodiac_sign_name": "Leo", "house_number": 1},
    },
}

DASHA_REPLY = {
    "statusCode": 200,
    "output": (
        '{"Venus": {"Venus": {"start_time": "2015-01-01 00:00:00", "end_time": "2018-05-01 00:00:00"},'
        ' "Sun": {"start_time": "2018-05-01 00:00:00", "end_time": "2019-05-01 00:00:00"}}}'
    ),
}

STRENGTH_REPLY = {"statusCode": 200, "output": {"Sun": 1.21, "Moon": 0.94}}

YOGAS_REPLY = {"statusCode": 200, "output": {"yogas": [{"yoga_name": "Gaja Kesari"}, "Budha Aditya"]}}

DIVISIONAL_REPLY = {
    "statusCode": 200,
    "output": {
        "0": {"name": "Ascendant", "current_sign": 3},
        "1": {"name": "Sun", "current_sign": 9},
        "2": {"name": "Moon", "current_sign": 12},
    },
}

GEO_REPLY = {
    "statusCode": 200,
    "output": [
        {
            "latitude": 17.385,
            "longitude": 78.4867,
            "timezone": "Asia/Kolkata",
            "timezone_offset": 5.5,
            "complete_name": "Hyderabad, Telangana, India",
        },
        {"latitude": 40.0, "longitude": -80.0, "timezone": "America/New_York"},
    ],
}

TIMEZONE_REPLY = {"statusCode": 200, "output": 5.5}


def default_replies() -> Dict[str, Any]:
    replies = {
        endpoints.GEO_DETAILS: GEO_REPLY,
        endpoints.TIMEZONE_WITH_DST: TIMEZONE_REPLY,
        endpoints.CORE_PLANETS: CORE_REPLY,
        endpoints.ALMANAC: ALMANAC_REPLY,
        endpoints.EXTENDED_PLANETS: EXTENDED_REPLY,
        endpoints.DASHA_PERIODS: DASHA_REPLY,
        endpoints.STRENGTH: STRENGTH_REPLY,
        endpoints.YOGAS: YOGAS_REPLY,
    }
    for endpoint in endpoints.DIVISIONAL_CHARTS.values():
        replies[endpoint] = DIVISIONAL_REPLY
    return replies


class FakeAstrologyClient(AstrologyApiClient):
    """Serves canned replies by endpoint; listed endpoints fail like a 500.

    ``delays`` maps an endpoint to seconds slept before it answers.
    """

    def __init__(
        self,
        settings: Settings,
        replies: Optional[Dict[str, Any]] = None,
        failing: Iterable[str] = (),
        delays: Optional[Dict[str, float]] = None,
    ) -> None:
        super().__init__(settings)
        self.replies = default_replies() if replies is None else replies
        self.failing = set(failing)
        self.delays = dict(delays or {})
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self._lock = threading.Lock()

    def post(self, endpoint, body, timeout=None):
        with self._lock:
            self.calls.append((endpoint, body))
        if endpoint in self.delays:
            time.sleep(self.delays[endpoint])
        if endpoint in self.failing or endpoint not in self.replies:
            raise EndpointError(endpoint, "HTTP 500", 500)
        return self.replies[endpoint]

    def called(self, endpoint: str) -> List[Dict[str, Any]]:
        return [body for name, body in self.calls if name == endpoint]


class FakeProvider:
    """Stands in for an LLM provider; raises when ``error`` is set."""

    def __init__(self, answer: str = "", error: Optional[Exception] = None, name: str = "fake") -> None:
        self.answer = answer
        self.error = error
        self.name = name
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.answer


def failing_provider(message: str = "provider down") -> FakeProvider:
    return FakeProvider(error=LLMUnavailableError(message))


@pytest.fixture
def settings() -> Settings:
    return Settings(astrology_api_key="test-key", astrology_api_timeout=2.0)


@pytest.fixture
def fake_client(settings):
    return FakeAstrologyClient(settings)
