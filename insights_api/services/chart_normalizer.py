"""Reconcile the chart endpoints' reply shapes into canonical records.

Core positions arrive as an array of index-keyed objects, extended
attributes and divisional charts as maps keyed by body name, and signs may
be numeric codes or names. Everything untyped stops here: callers only ever
see ``PlanetRecord`` lists and an ``AstroProfile``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from ..errors import CriticalDependencyError
from ..schemas.profile import AstroProfile, GeoDetails, PlanetRecord
from . import endpoints
from .chart_fetch import ChartBundle
from .constants import UNKNOWN, sign_lord, sign_name_from_code, sign_name_from_lon
from .vedic import NAKSHATRA_LORDS, NAKSHATRAS, nakshatra_from_lon_sidereal

logger = logging.getLogger(__name__)

_SIGN_NAME_KEYS = ("zodiac_sign_name", "sign_name", "sign")
_SIGN_CODE_KEYS = ("current_sign", "sign_num", "sign_number")
_RETRO_KEYS = ("isRetro", "is_retro", "retro", "isRetrograde")
_FULL_DEGREE_KEYS = ("fullDegree", "full_degree", "longitude")
_NORM_DEGREE_KEYS = ("normDegree", "normalizedDegree", "norm_degree", "degree")


def unwrap_output(raw: Any) -> Any:
    """Strip the ``{"statusCode", "output"}`` envelope; ``output`` may be JSON text."""

    data = raw
    if isinstance(data, Mapping) and "output" in data:
        data = data["output"]
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except ValueError:
            return None
    return data


def _first(data: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> Optional[int]:
    number = _as_float(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "yes", "r", "1"):
            return True
        if text in ("false", "no", "d", "0"):
            return False
    if isinstance(value, (int, float)):
        return bool(value)
    return None


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    if isinstance(value, Mapping):
        return _text(value.get("name"))
    return None


def _looks_like_body(data: Mapping[str, Any]) -> bool:
    return any(key in data for key in (*_SIGN_NAME_KEYS, *_SIGN_CODE_KEYS, *_FULL_DEGREE_KEYS))


def _iter_named(data: Any) -> Iterator[Tuple[str, Mapping[str, Any]]]:
    """Yield (body name, attributes) from any of the observed reply layouts."""

    if isinstance(data, list):
        for item in data:
            yield from _iter_named(item)
        return
    if not isinstance(data, Mapping):
        return

    own_name = _text(data.get("name"))
    if own_name:
        yield own_name, data
        return

    for key, value in data.items():
        if not isinstance(value, Mapping):
            continue
        if isinstance(key, str) and key.isdigit():
            # {"0": {"name": "Ascendant", ...}, "1": {...}}
            yield from _iter_named(value)
        elif _text(value.get("name")):
            yield _text(value.get("name")), value
        elif _looks_like_body(value):
            # {"Sun": {"current_sign": 5, ...}}
            yield str(key), value


def record_from_mapping(name: str, data: Mapping[str, Any]) -> PlanetRecord:
    sign = UNKNOWN
    raw_sign = _first(data, _SIGN_NAME_KEYS)
    if raw_sign is not None:
        sign = sign_name_from_code(raw_sign)
    if sign == UNKNOWN:
        sign = sign_name_from_code(_first(data, _SIGN_CODE_KEYS))

    full_degree = _as_float(_first(data, _FULL_DEGREE_KEYS))
    if sign == UNKNOWN and full_degree is not None:
        sign = sign_name_from_lon(full_degree)

    return PlanetRecord(
        name=name.strip(),
        sign_name=sign,
        sign_lord=_text(_first(data, ("zodiac_sign_lord", "sign_lord"))),
        nakshatra=_text(_first(data, ("nakshatra_name", "nakshatra"))),
        nakshatra_lord=_text(_first(data, ("nakshatra_vimsottari_lord", "nakshatra_lord"))),
        nakshatra_pada=_as_int(_first(data, ("nakshatra_pada", "pada"))),
        house_number=_as_int(_first(data, ("house_number", "house"))),
        is_retrograde=_as_bool(_first(data, _RETRO_KEYS)),
        full_degree=full_degree,
        normalized_degree=_as_float(_first(data, _NORM_DEGREE_KEYS)),
    )


def parse_planet_records(raw: Any) -> Dict[str, PlanetRecord]:
    """Records keyed by lower-cased body name, in reply order. Malformed entries are skipped."""

    records: Dict[str, PlanetRecord] = {}
    for name, attrs in _iter_named(unwrap_output(raw)):
        if not name.strip():
            continue
        record = record_from_mapping(name, attrs)
        records.setdefault(record.key, record)
    return records


# Fields whose value is derived from another field of the same record
_DERIVED_FIELDS = {
    "sign_name": ("sign_lord",),
    "nakshatra": ("nakshatra_pada", "nakshatra_lord"),
}


def _nakshatra_lord(name: str) -> Optional[str]:
    for idx, candidate in enumerate(NAKSHATRAS):
        if candidate.lower() == name.strip().lower():
            return NAKSHATRA_LORDS[idx % 9]
    return None


def _gap_fill(record: PlanetRecord) -> PlanetRecord:
    updates: Dict[str, Any] = {}
    if record.sign_lord is None and record.sign_name != UNKNOWN:
        updates["sign_lord"] = sign_lord(record.sign_name)
    if record.nakshatra is None and record.full_degree is not None:
        nak = nakshatra_from_lon_sidereal(record.full_degree % 360.0)
        updates.update(
            nakshatra=nak["name"],
            nakshatra_pada=record.nakshatra_pada or nak["pada"],
            nakshatra_lord=record.nakshatra_lord or nak["lord"],
        )
    elif record.nakshatra is not None:
        if record.nakshatra_lord is None:
            lord = _nakshatra_lord(record.nakshatra)
            if lord is not None:
                updates["nakshatra_lord"] = lord
        if record.nakshatra_pada is None and record.full_degree is not None:
            nak = nakshatra_from_lon_sidereal(record.full_degree % 360.0)
            # a degree pointing elsewhere says nothing about this nakshatra's pada
            if nak["name"].lower() == record.nakshatra.strip().lower():
                updates["nakshatra_pada"] = nak["pada"]
    return record.model_copy(update=updates) if updates else record


def merge_planet_records(
    basic: Mapping[str, PlanetRecord], extended: Mapping[str, PlanetRecord]
) -> List[PlanetRecord]:
    """Extended values win where both sources have one; basic values fill the rest.

    When the extended source changes a sign or nakshatra, the basic values
    derived from the old one are dropped and re-derived.
    """

    merged: List[PlanetRecord] = []
    order = list(basic.keys()) + [key for key in extended.keys() if key not in basic]
    for key in order:
        base = basic.get(key)
        ext = extended.get(key)
        if base is None or ext is None:
            merged.append(_gap_fill(base or ext))
            continue
        fields = base.model_dump()
        ext_fields = ext.model_dump()
        for field_name, value in ext_fields.items():
            if field_name == "name" or value is None:
                continue
            if field_name == "sign_name" and value == UNKNOWN:
                continue
            if value != fields[field_name]:
                for derived in _DERIVED_FIELDS.get(field_name, ()):
                    if ext_fields[derived] is None:
                        fields[derived] = None
            fields[field_name] = value
        merged.append(_gap_fill(PlanetRecord(**fields)))
    return merged


def divisional_table(raw_by_variant: Mapping[str, Any]) -> Dict[str, List[PlanetRecord]]:
    """Variant label -> placements. Empty or malformed variants are left out."""

    table: Dict[str, List[PlanetRecord]] = {}
    for variant, raw in raw_by_variant.items():
        try:
            records = list(parse_planet_records(raw).values())
        except (TypeError, ValueError, AttributeError):
            logger.warning("divisional_chart_malformed", extra={"variant": variant})
            continue
        if not records:
            logger.info("divisional_chart_empty", extra={"variant": variant})
            continue
        table[variant] = records
    return table


def _parse_when(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed.replace(tzinfo=None)


def _window(data: Mapping[str, Any]) -> Tuple[Optional[datetime], Optional[datetime]]:
    start = _parse_when(_first(data, ("start_time", "start", "startDate")))
    end = _parse_when(_first(data, ("end_time", "end", "endDate")))
    return start, end


def _contains(data: Mapping[str, Any], now: datetime) -> bool:
    start, end = _window(data)
    return start is not None and end is not None and start <= now < end


def current_periods(raw: Any, now: datetime) -> Tuple[str, str]:
    """(major period lord, sub period lord) active at ``now``; ``Unknown`` when not derivable."""

    data = unwrap_output(raw)
    major, sub = UNKNOWN, UNKNOWN

    if isinstance(data, list):
        # [{"level": 1, "lord": "Venus", "start": ..., "end": ...}, {"level": 2, "parent": ...}]
        for item in data:
            if not isinstance(item, Mapping) or not _contains(item, now):
                continue
            lord = _text(_first(item, ("lord", "planet")))
            if lord and item.get("level") in (1, "1", None) and major == UNKNOWN:
                major = lord
            elif lord and item.get("level") in (2, "2"):
                sub = lord
        return major, sub

    if not isinstance(data, Mapping):
        return major, sub

    if "mahadasha" in data or "antardasha" in data:
        maha = data.get("mahadasha") or []
        antar = data.get("antardasha") or []
        major = _pick_listed(maha, now)
        sub = _pick_listed(antar, now)
        return major, sub

    # {"Venus": {"Venus": {"start_time": ..., "end_time": ...}, "Sun": {...}}, ...}
    for maha_lord, antars in data.items():
        if not isinstance(antars, Mapping):
            continue
        if _contains(antars, now):
            major = str(maha_lord)
        for antar_lord, window in antars.items():
            if isinstance(window, Mapping) and _contains(window, now):
                return str(maha_lord), str(antar_lord)
    return major, sub


def _pick_listed(items: Any, now: datetime) -> str:
    if not isinstance(items, list) or not items:
        return UNKNOWN
    for item in items:
        if isinstance(item, Mapping) and _contains(item, now):
            return _text(_first(item, ("planet", "lord"))) or UNKNOWN
    first = items[0]
    if isinstance(first, Mapping):
        return _text(_first(first, ("planet", "lord"))) or UNKNOWN
    return _text(first) or UNKNOWN


def yoga_names(raw: Any) -> List[str]:
    data = unwrap_output(raw)
    if isinstance(data, Mapping) and isinstance(data.get("yogas"), list):
        data = data["yogas"]
    names: List[str] = []
    if isinstance(data, list):
        for item in data:
            name = _text(item) or (_text(item.get("yoga_name")) if isinstance(item, Mapping) else None)
            if name:
                names.append(name)
    elif isinstance(data, Mapping):
        for key, value in data.items():
            if not isinstance(value, Mapping):
                names.append(str(key))
                continue
            if _as_bool(value.get("present", True)) is False:
                continue
            names.append(_text(value.get("name")) or str(key))
    return names


def almanac_nakshatra(almanac: Mapping[str, Any]) -> Optional[str]:
    return _text(almanac.get("nakshatra"))


def build_astro_profile(
    bundle: ChartBundle, geo: GeoDetails, now: Optional[datetime] = None
) -> AstroProfile:
    now = now or datetime.now()

    basic = parse_planet_records(bundle.core)
    if "ascendant" not in basic or "moon" not in basic:
        raise CriticalDependencyError(endpoints.CORE_PLANETS, "reply is missing Ascendant or Moon")
    almanac = unwrap_output(bundle.almanac)
    if not isinstance(almanac, Mapping):
        raise CriticalDependencyError(endpoints.ALMANAC, "reply is not an object")

    extended: Dict[str, PlanetRecord] = {}
    if bundle.extended is not None:
        try:
            extended = parse_planet_records(bundle.extended)
        except (TypeError, ValueError, AttributeError):
            logger.warning("extended_planets_malformed")
    planets = merge_planet_records(basic, extended)
    by_key = {p.key: p for p in planets}
    moon = by_key["moon"]

    major, sub = UNKNOWN, UNKNOWN
    if endpoints.DASHA_PERIODS in bundle.optional:
        major, sub = current_periods(bundle.optional[endpoints.DASHA_PERIODS], now)

    strength = None
    if endpoints.STRENGTH in bundle.optional:
        strength = unwrap_output(bundle.optional[endpoints.STRENGTH])
    yogas: List[str] = []
    if endpoints.YOGAS in bundle.optional:
        yogas = yoga_names(bundle.optional[endpoints.YOGAS])

    return AstroProfile(
        ascendant_sign=by_key["ascendant"].sign_name,
        moon_sign=moon.sign_name,
        moon_nakshatra=moon.nakshatra or almanac_nakshatra(almanac) or UNKNOWN,
        current_major_period=major,
        current_sub_period=sub,
        planetary_positions={p.name: p.sign_name for p in planets if p.key != "ascendant"},
        planets=planets,
        extended_available=bool(extended),
        strength=strength,
        yogas=yogas,
        almanac=dict(almanac),
        divisional_charts=divisional_table(bundle.divisional()),
        timezone_id=geo.timezone_id,
        timezone_offset_hours=geo.timezone_offset_hours,
        latitude=geo.latitude,
        longitude=geo.longitude,
        place_label=geo.label,
    )
