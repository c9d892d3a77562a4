from __future__ import annotations

from typing import Optional


LOOKUP_FAILURE_DETAILS = (
    "Error occurred while fetching property information from "
    "Massachusetts Property Information site."
)


class PropertyLookupError(Exception):
    """Base class for failures surfaced to API callers as JSON."""

    status_code = 500

    def __init__(self, message: str, *, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else LOOKUP_FAILURE_DETAILS

    def to_payload(self) -> dict:
        return {"error": self.message, "details": self.details}


class ValidationError(PropertyLookupError):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, details="")

    def to_payload(self) -> dict:
        return {"error": self.message}


class ResolutionError(PropertyLookupError):
    pass


class OptionNotFoundError(PropertyLookupError):
    def __init__(self, role: str, target: str):
        super().__init__(f"Could not find {role} option for: {target}")
        self.role = role
        self.target = target


class NavigationTimeoutError(PropertyLookupError):
    pass
