from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Tuple

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from mass_property_info.config import Settings, to_ms
from mass_property_info.errors import NavigationTimeoutError
from mass_property_info.form.matching import OptionMatch, match_option
from mass_property_info.form.roles import ADDRESS, REGION, STREET, resolve_controls
from mass_property_info.form.waiting import poll_until
from mass_property_info.schema import (
    ControlDescriptor,
    PropertyQuery,
    SelectOption,
    options_from_dom,
)


logger = logging.getLogger("mpi.form")

SELECTS_JS = """
(selects) => selects.map((select, index) => ({
  index,
  id: select.id || "",
  name: select.name || "",
  options: Array.from(select.options).map((opt) => ({
    value: opt.value,
    text: (opt.text || "").trim(),
  })),
}))
"""

OPTIONS_JS = """
(select) => Array.from(select.options).map((opt) => ({
  value: opt.value,
  text: (opt.text || "").trim(),
}))
"""

SUBMIT_SELECTOR = (
    'input[type="submit"], button[type="submit"], '
    'input[value*="Get Information" i], input[value*="Submit" i]'
)

RESULTS_SELECTOR = 'table, .property-info, [class*="result"], [id*="result"]'


class CascadingFormDriver:
    """Fill the region -> street -> address selects and submit the form.

    Works against a Playwright `Page` (or anything exposing the same async
    calls). The option set of each control is re-read right before it is
    used, because every upstream selection repopulates it server-side.
    """

    def __init__(self, page, settings: Settings):
        self.page = page
        self.settings = settings
        self.selections: List[Tuple[str, OptionMatch]] = []

    async def run(self, query: PropertyQuery) -> str:
        controls = await self.read_controls()
        resolved = resolve_controls(controls)
        logger.debug(
            "resolved controls region=%s street=%s address=%s",
            resolved.region.selector,
            resolved.street.selector,
            resolved.address.selector,
        )

        targets = {
            REGION: query.region.upper(),
            STREET: query.street_name.upper(),
            ADDRESS: query.address_number,
        }
        chain = resolved.in_order()
        for step, (role, control) in enumerate(chain):
            await self.select(role, control, targets[role])
            if step + 1 < len(chain):
                next_role, next_control = chain[step + 1]
                await self.wait_for_repopulation(next_role, next_control)

        await self.submit()
        return await self.page.content()

    async def read_controls(self) -> List[ControlDescriptor]:
        try:
            await self.page.wait_for_selector(
                "select", timeout=to_ms(self.settings.form_ready_timeout_s)
            )
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeoutError("Timed out waiting for the lookup form to load") from exc
        raw = await self.page.eval_on_selector_all("select", SELECTS_JS)
        return [ControlDescriptor.from_dom(item, idx) for idx, item in enumerate(raw or [])]

    async def read_options(self, control: ControlDescriptor) -> Optional[Tuple[SelectOption, ...]]:
        handle = await self.page.query_selector(control.selector)
        if handle is None:
            return None
        return options_from_dom(await handle.evaluate(OPTIONS_JS))

    async def select(self, role: str, control: ControlDescriptor, target: str) -> OptionMatch:
        options = await self.read_options(control)
        if options is None:
            raise NavigationTimeoutError(f"{role.capitalize()} select element not found: {control.selector}")
        match = match_option(target, options, role=role)
        await self.page.select_option(control.selector, value=match.value)
        self.selections.append((role, match))
        logger.info("selected %s %r via %s", role, match.label or match.value, match.rule)
        return match

    async def wait_for_repopulation(self, role: str, control: ControlDescriptor) -> bool:
        async def populated() -> bool:
            try:
                options = await self.read_options(control)
            except PlaywrightError as exc:
                # Postbacks tear down the execution context mid-poll.
                logger.debug("%s options not readable yet: %s", role, exc)
                return False
            return options is not None and len(options) > 1

        ready = await poll_until(
            populated,
            timeout_s=self.settings.repopulate_timeout_s,
            interval_s=self.settings.poll_interval_s,
        )
        if not ready:
            logger.warning(
                "%s options did not repopulate within %.1fs; continuing after %.1fs",
                role,
                self.settings.repopulate_timeout_s,
                self.settings.grace_delay_s,
            )
            await asyncio.sleep(self.settings.grace_delay_s)
        return ready

    async def submit(self) -> None:
        await asyncio.sleep(self.settings.pre_submit_delay_s)
        button = await self.page.query_selector(SUBMIT_SELECTOR)
        if button is not None:
            await button.click()
        else:
            logger.info("no submit control found; pressing Enter")
            await self.page.keyboard.press("Enter")

        await asyncio.sleep(self.settings.settle_delay_s)

        async def results_visible() -> bool:
            try:
                return await self.page.query_selector(RESULTS_SELECTOR) is not None
            except PlaywrightError as exc:
                logger.debug("results not readable yet: %s", exc)
                return False

        found = await poll_until(
            results_visible,
            timeout_s=self.settings.results_timeout_s,
            interval_s=self.settings.poll_interval_s,
        )
        if not found:
            logger.warning("results container not found; extracting from current page")
