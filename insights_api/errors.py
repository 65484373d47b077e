"""Exception taxonomy for the profile pipeline.

Only ``InputValidationError``, ``MissingCredentialError`` and
``CriticalDependencyError`` ever leave the pipeline. ``EndpointError`` and
``LLMUnavailableError`` are raised by the transport layers and absorbed by
the orchestrator, the insight generator and the chat advisor.
"""

from __future__ import annotations

from typing import Optional


class InsightsError(Exception):
    """Base class for all pipeline errors."""

    code = "insights_error"


class InputValidationError(InsightsError):
    """Raised when a birth query is malformed; no network call is made."""

    code = "invalid_input"


class MissingCredentialError(InsightsError):
    """Raised when a required service credential is not configured."""

    code = "missing_credential"


class CriticalDependencyError(InsightsError):
    """Raised when the core planets or almanac call fails."""

    code = "critical_dependency_failed"

    def __init__(self, endpoint: str, reason: str) -> None:
        super().__init__(f"{endpoint} failed: {reason}")
        self.endpoint = endpoint
        self.reason = reason


class EndpointError(InsightsError):
    """Raised for a single failed chart/geo/timezone endpoint call."""

    code = "endpoint_failed"

    def __init__(self, endpoint: str, reason: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{endpoint}: {reason}")
        self.endpoint = endpoint
        self.reason = reason
        self.status_code = status_code


class LLMUnavailableError(InsightsError):
    """Raised when an AI provider cannot be reached or returns nothing usable."""

    code = "llm_unavailable"
