from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence, Tuple

from mass_property_info.errors import OptionNotFoundError
from mass_property_info.schema import SelectOption


logger = logging.getLogger("mpi.form")

FALLBACK_RULE = "first-available"


@dataclass(frozen=True)
class OptionMatch:
    value: str
    label: str
    rule: str

    @property
    def fallback(self) -> bool:
        return self.rule == FALLBACK_RULE


def _fold(s: str) -> str:
    return " ".join((s or "").split()).casefold()


def _exact_label(target: str, opt: SelectOption) -> bool:
    return _fold(opt.label) == target


def _exact_value(target: str, opt: SelectOption) -> bool:
    return _fold(opt.value) == target


def _label_contains(target: str, opt: SelectOption) -> bool:
    return target in _fold(opt.label)


def _target_contains(target: str, opt: SelectOption) -> bool:
    label = _fold(opt.label)
    return bool(label) and label in target


# Precedence is the list order; the first rule with any hit wins.
MATCH_RULES: List[Tuple[str, Callable[[str, SelectOption], bool]]] = [
    ("exact-label", _exact_label),
    ("exact-value", _exact_value),
    ("label-contains", _label_contains),
    ("target-contains", _target_contains),
]


def normalize_target(target: str) -> str:
    return _fold(target)


def match_option(target: str, options: Iterable[SelectOption], *, role: str = "option") -> OptionMatch:
    """Pick the option to select for `target`.

    Placeholder options (empty value) are never selected. When no rule hits,
    the first selectable option is returned with `rule == "first-available"`.
    """

    candidates: Sequence[SelectOption] = [o for o in options if o.value]
    if not candidates:
        raise OptionNotFoundError(role, target)

    needle = normalize_target(target)
    if needle:
        for rule_name, predicate in MATCH_RULES:
            for opt in candidates:
                if predicate(needle, opt):
                    return OptionMatch(value=opt.value, label=opt.label, rule=rule_name)

    first = candidates[0]
    logger.warning(
        "no %s option matched %r; falling back to first available option %r",
        role,
        target,
        first.label or first.value,
    )
    return OptionMatch(value=first.value, label=first.label, rule=FALLBACK_RULE)
