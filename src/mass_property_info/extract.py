"""Best-effort extraction of an assessor record from the results page.

The results page has no stable schema: labels and values are spread across
table rows and cells in whatever shape the source renders that day. Rules
are tried in table order against every `table tr` / `table td` that does not
wrap another table, the cell's own text first and its parent's text second.
The first rule to produce a
value for a field owns it; page-wide regexes only fill fields still unset.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

from mass_property_info.schema import PropertyRecord


logger = logging.getLogger("mpi.extract")

CURRENCY = re.compile(r"\$[\d,]+")
ACREAGE = re.compile(r"[\d.]+\s*Acres?")
COMPACT_DATE = re.compile(r"\d{8}")


def norm_ws(value) -> str:
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


@dataclass(frozen=True)
class LabelRule:
    field: str
    label: str
    patterns: Tuple[Tuple[re.Pattern, int], ...] = ()
    kind: str = "value"
    trigger: Optional[re.Pattern] = None
    use_parent: bool = True

    def triggered_by(self, text: str) -> bool:
        if self.trigger is not None:
            return bool(self.trigger.search(text))
        return self.label in text


LABEL_RULES: List[LabelRule] = [
    LabelRule("owner", "Owner:", kind="text"),
    LabelRule("owner_address", "Owner Address:", kind="multi_cell"),
    LabelRule("building_value", "Building Value:", ((CURRENCY, 0),)),
    LabelRule("land_value", "Land Value:", ((CURRENCY, 0),)),
    LabelRule("other_value", "Other Value:", ((CURRENCY, 0),)),
    LabelRule("total_value", "Total Value:", ((CURRENCY, 0),)),
    LabelRule(
        "assessment_year",
        "Assessment data from",
        ((re.compile(r"FY\s+\d{4}"), 0), (re.compile(r"\d{4}"), 0)),
        kind="whole_cell",
        trigger=re.compile(r"Assessment data from|\bFY\b"),
        use_parent=False,
    ),
    LabelRule("lot_size", "Lot Size:", ((ACREAGE, 0),)),
    LabelRule("last_sale_price", "Last Sale Price:", ((CURRENCY, 0),)),
    LabelRule("last_sale_date", "Last Sale Date:", ((COMPACT_DATE, 0),)),
    LabelRule("use_code", "Use Code:", ((re.compile(r"^\s*(\d+)"), 1),)),
    LabelRule("year_built", "Year Built:", ((re.compile(r"^\s*(\d{4})"), 1),)),
]

KNOWN_LABELS = tuple(rule.label for rule in LABEL_RULES)

OWNER_ADDRESS_STOP = "Building Value"

# (field, pattern, prefix) run against the whole page text.
PAGE_FALLBACKS: List[Tuple[str, re.Pattern, str]] = [
    ("year_built", re.compile(r"Year Built[:\s]+(\d{4})", re.I), ""),
    ("total_value", re.compile(r"Total Value[:\s]+\$?([\d,]+)", re.I), "$"),
    ("lot_size", re.compile(r"Lot Size[:\s]+([\d.]+\s*Acres?)", re.I), ""),
]


def segment_after(text: str, label: str) -> Optional[str]:
    """Text following `label`, cut at the next known label."""

    idx = text.find(label)
    if idx < 0:
        return None
    rest = text[idx + len(label):]
    cut = len(rest)
    for other in KNOWN_LABELS:
        pos = rest.find(other)
        if 0 <= pos < cut:
            cut = pos
    return rest[:cut].strip()


def _first_match(patterns, text: str) -> str:
    for pattern, group in patterns:
        m = pattern.search(text)
        if m:
            return m.group(group).strip()
    return ""


def _cell_text(node) -> str:
    return norm_ws(node.get_text(" ")) if node is not None else ""


def _apply_rule(rule: LabelRule, node, text: str, parent_text: str) -> str:
    if rule.kind == "whole_cell":
        return _first_match(rule.patterns, text)

    if rule.kind == "multi_cell":
        # Address lines live in the cells after the label cell, so only the
        # label cell itself can start the collection.
        if node.name != "td" or rule.label not in text:
            return ""
        lines = []
        inline = segment_after(text, rule.label)
        if inline:
            lines.append(inline)
        for sibling in node.find_next_siblings(["td", "div", "span"]):
            sibling_text = _cell_text(sibling)
            if not sibling_text or OWNER_ADDRESS_STOP in sibling_text:
                break
            lines.append(sibling_text)
        return ", ".join(lines)

    sources = [text, parent_text] if rule.use_parent else [text]
    for position, source in enumerate(sources):
        segment = segment_after(source, rule.label)
        if segment is None:
            continue
        if rule.kind == "text":
            if segment:
                return segment
            if position == 0:
                value = _cell_text(node.find_next_sibling(["td", "th"]))
                if value and not any(label in value for label in KNOWN_LABELS):
                    return value
            continue
        value = _first_match(rule.patterns, segment)
        if value:
            return value
    return ""


def scan_tables(soup) -> Dict[str, str]:
    found: Dict[str, str] = {}
    for node in soup.select("table tr, table td"):
        # Layout wrappers carry the text of every nested row; only the inner
        # rows and cells are specific enough to own a value.
        if node.find("table") is not None:
            continue
        text = _cell_text(node)
        if not text:
            continue
        parent_text = _cell_text(node.parent)
        for rule in LABEL_RULES:
            if rule.field in found:
                continue
            if not (rule.triggered_by(text) or (rule.use_parent and rule.triggered_by(parent_text))):
                continue
            try:
                value = _apply_rule(rule, node, text, parent_text)
            except Exception:
                logger.debug("rule %s failed on cell %r", rule.field, text[:80], exc_info=True)
                continue
            if value:
                found[rule.field] = value
    return found


def apply_page_fallbacks(page_text: str, found: Dict[str, str]) -> Dict[str, str]:
    for field, pattern, prefix in PAGE_FALLBACKS:
        if found.get(field):
            continue
        m = pattern.search(page_text)
        if m:
            found[field] = prefix + m.group(1).strip()
    return found


def extract_property_record(html: Optional[str]) -> PropertyRecord:
    soup = BeautifulSoup(html or "", "html.parser")
    found = scan_tables(soup)
    body = soup.body if soup.body is not None else soup
    apply_page_fallbacks(_cell_text(body), found)
    logger.info("extracted %d of %d fields", len(found), len(LABEL_RULES))
    return PropertyRecord(**found)
