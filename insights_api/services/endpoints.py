"""Endpoint names on the chart-computation service."""

from typing import Dict, List

GEO_DETAILS = "geo-details"
TIMEZONE_WITH_DST = "timezone-with-dst"

# Critical path: a failure here aborts profile resolution
CORE_PLANETS = "planets"
ALMANAC = "complete-panchang"
CRITICAL = (CORE_PLANETS, ALMANAC)

EXTENDED_PLANETS = "planets/extended"
DASHA_PERIODS = "vimsottari/maha-dasas-and-antar-dasas"
STRENGTH = "shadbala/summary"
YOGAS = "yoga-details"

# Variant label -> endpoint
DIVISIONAL_CHARTS: Dict[str, str] = {
    "D2": "d2-chart-info",
    "D3": "d3-chart-info",
    "D4": "d4-chart-info",
    "D6": "d6-chart-info",
    "D7": "d7-chart-info",
    "D8": "d8-chart-info",
    "D9": "navamsa-chart-info",
    "D10": "d10-chart-info",
    "D11": "d11-chart-info",
    "D12": "d12-chart-info",
    "D16": "d16-chart-info",
    "D20": "d20-chart-info",
    "D24": "d24-chart-info",
    "D27": "d27-chart-info",
    "D30": "d30-chart-info",
    "D40": "d40-chart-info",
    "D45": "d45-chart-info",
    "D60": "d60-chart-info",
}

OPTIONAL: List[str] = [EXTENDED_PLANETS, DASHA_PERIODS, STRENGTH, YOGAS, *DIVISIONAL_CHARTS.values()]


def all_chart_endpoints() -> List[str]:
    return [*CRITICAL, *OPTIONAL]
