import asyncio
import json

import pytest

from conftest import FakeProvider
from insights_api.errors import CriticalDependencyError, InputValidationError
from insights_api.schemas import AstroProfile, SessionProfile
from insights_api.services import onboarding
from insights_api.services.insight_generator import SAFE_INSIGHTS
from test_insight_generator import VALID


PROFILE = AstroProfile(
    ascendant_sign="Leo",
    moon_sign="Taurus",
    timezone_id="Asia/Kolkata",
    timezone_offset_hours=5.5,
)


@pytest.fixture
def chart_calls(monkeypatch):
    calls = []

    async def fake_resolve(date, time, place, **kwargs):
        calls.append((date, time, place))
        return PROFILE

    monkeypatch.setattr(onboarding, "resolve_astro_profile", fake_resolve)
    return calls


def _session(**overrides):
    data = {
        "name": "Asha",
        "birth_date": "1990-08-18",
        "birth_time": "14:32",
        "birth_place": "Hyderabad, India",
        "birth_precision": "Exact",
        "interests": ["Self", "Job"],
    }
    data.update(overrides)
    return SessionProfile(**data)


def _run(session, provider, settings):
    return asyncio.run(onboarding.run_onboarding(session, provider=provider, settings=settings))


def test_evolve_returns_next_version_and_keeps_prior_value():
    first = _session()
    second = first.evolve(name="Asha R")

    assert second.version == first.version + 1
    assert second.name == "Asha R"
    assert first.name == "Asha"


def test_evolve_ignores_explicit_version():
    assert _session().evolve(version=99).version == 2


def test_session_is_immutable():
    with pytest.raises(Exception):
        _session().name = "other"


def test_exact_precision_uses_real_time(chart_calls, settings):
    provider = FakeProvider(json.dumps(VALID))
    result = _run(_session(), provider, settings)

    assert chart_calls == [("1990-08-18", "14:32", "Hyderabad, India")]
    assert result.astro_profile == PROFILE
    assert result.insights.life_phase_analysis.headline == "Venus Phase"
    assert result.version == 2
    assert "Ascendant: Leo" in provider.calls[0]["user_prompt"]


@pytest.mark.parametrize("precision", ["Approximate", "DateOnly"])
def test_imprecise_time_uses_noon(chart_calls, settings, precision):
    _run(_session(birth_precision=precision, birth_time=None), FakeProvider(json.dumps(VALID)), settings)
    assert chart_calls == [("1990-08-18", "12:00", "Hyderabad, India")]


def test_no_precision_skips_chart(chart_calls, settings):
    session = _session(
        birth_precision="None",
        birth_date=None,
        birth_time=None,
        questionnaire_answers={"type": "Patterns", "data": {"mornings": "slow"}},
    )
    provider = FakeProvider(json.dumps(VALID))
    result = _run(session, provider, settings)

    assert chart_calls == []
    assert result.astro_profile is None
    assert "No Birth Time" in provider.calls[0]["user_prompt"]


def test_unknown_interests_are_dropped(chart_calls, settings):
    result = _run(_session(interests=["Job", "Lottery"]), FakeProvider(json.dumps(VALID)), settings)
    assert result.interests == ["Job"]


def test_insight_degradation_still_completes(chart_calls, settings):
    result = _run(_session(), FakeProvider("not json"), settings)
    assert result.insights == SAFE_INSIGHTS
    assert result.astro_profile == PROFILE


def test_fatal_chart_error_propagates(monkeypatch, settings):
    async def failing_resolve(*args, **kwargs):
        raise CriticalDependencyError("planets", "HTTP 500")

    monkeypatch.setattr(onboarding, "resolve_astro_profile", failing_resolve)
    with pytest.raises(CriticalDependencyError):
        _run(_session(), FakeProvider(json.dumps(VALID)), settings)


def test_exact_without_time_is_rejected(chart_calls, settings):
    with pytest.raises(InputValidationError):
        _run(_session(birth_time=None), FakeProvider("{}"), settings)
    assert chart_calls == []
