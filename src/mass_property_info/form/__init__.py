"""Cascading form automation: role resolution, option matching, driving."""

from .driver import CascadingFormDriver
from .matching import OptionMatch, match_option
from .roles import ResolvedControls, resolve_controls
from .waiting import poll_until

__all__ = [
    "CascadingFormDriver",
    "OptionMatch",
    "ResolvedControls",
    "match_option",
    "poll_until",
    "resolve_controls",
]
