from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from mass_property_info.errors import ResolutionError
from mass_property_info.schema import ControlDescriptor


REGION = "region"
STREET = "street"
ADDRESS = "address"

# Dependency order of the cascading form.
ROLE_ORDER: Tuple[str, ...] = (REGION, STREET, ADDRESS)


@dataclass(frozen=True)
class ResolvedControls:
    region: ControlDescriptor
    street: ControlDescriptor
    address: ControlDescriptor

    def in_order(self) -> List[Tuple[str, ControlDescriptor]]:
        return [(role, getattr(self, role)) for role in ROLE_ORDER]


def _keywords(*words: str) -> Callable[[ControlDescriptor], bool]:
    def predicate(control: ControlDescriptor) -> bool:
        haystacks = (control.identifier.lower(), control.name.lower())
        return any(w in h for w in words for h in haystacks)

    return predicate


# Evaluated top to bottom for each control; a control takes the first
# unassigned role whose predicate matches.
ROLE_RULES: List[Tuple[str, Callable[[ControlDescriptor], bool]]] = [
    (REGION, _keywords("region", "city", "town")),
    (STREET, _keywords("street")),
    (ADDRESS, _keywords("address", "number")),
]

# Positional convention used for roles no keyword rule claimed.
POSITIONAL_RULE: Dict[str, int] = {REGION: 0, STREET: 1, ADDRESS: 2}


def classify_by_keywords(controls: Sequence[ControlDescriptor]) -> Dict[str, int]:
    assigned: Dict[str, int] = {}
    for idx, control in enumerate(controls):
        for role, predicate in ROLE_RULES:
            if role in assigned:
                continue
            if predicate(control):
                assigned[role] = idx
                break
    return assigned


def _first_unclaimed(claimed: set, count: int) -> Optional[int]:
    for idx in range(count):
        if idx not in claimed:
            return idx
    return None


def resolve_controls(controls: Sequence[ControlDescriptor]) -> ResolvedControls:
    """Assign the region, street and address roles to the page's selects."""

    controls = list(controls)
    if len(controls) < len(ROLE_ORDER):
        raise ResolutionError(
            f"Could not find all required dropdowns. Found {len(controls)} selects."
        )

    assigned = classify_by_keywords(controls)
    claimed = set(assigned.values())
    for role in ROLE_ORDER:
        if role in assigned:
            continue
        idx = POSITIONAL_RULE[role]
        if idx in claimed:
            idx = _first_unclaimed(claimed, len(controls))
        if idx is None:
            raise ResolutionError(f"Could not resolve the {role} dropdown.")
        assigned[role] = idx
        claimed.add(idx)

    return ResolvedControls(**{role: controls[idx] for role, idx in assigned.items()})
