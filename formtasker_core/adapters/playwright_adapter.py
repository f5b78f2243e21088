"""
Playwright document adapter.

Implements the DocumentAdapter protocol against a live Playwright ``Page``.

Usage:
    async with open_page("https://example.com/form") as page:
        adapter = PlaywrightDocumentAdapter(page)
        fields = discover(await adapter.snapshot())
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

from ..config import config
from ..exceptions import AdapterError
from ..mapping import DocumentNode, Field, FieldType, Locator

logger = logging.getLogger(__name__)

SNAPSHOT_SCRIPT = """() => {
  const SKIP = new Set(['SCRIPT', 'STYLE', 'NOSCRIPT', 'TEMPLATE', 'SVG']);
  const serialize = (el) => {
    const attributes = {};
    for (const a of el.attributes) attributes[a.name] = a.value;
    let text = '';
    for (const n of el.childNodes) {
      if (n.nodeType === Node.TEXT_NODE) text += n.textContent;
    }
    const style = window.getComputedStyle(el);
    const visible = style.display !== 'none' && style.visibility !== 'hidden';
    const children = [];
    for (const c of el.children) {
      if (!SKIP.has(c.tagName.toUpperCase())) children.push(serialize(c));
    }
    return {tag: el.tagName.toLowerCase(), attributes, text, visible, children};
  };
  return serialize(document.body);
}"""

CLICK_OPTION_SCRIPT = """(args) => {
  const root = document.querySelector(args.sel);
  if (!root) return false;
  const wanted = String(args.value).trim();
  const candidates = root.querySelectorAll(
    "[role='radio'], [role='checkbox'], [role='option'], label, option, span[role='presentation']");
  for (const el of candidates) {
    const text = (el.textContent || '').trim() || el.getAttribute('aria-label') || el.getAttribute('data-value') || '';
    if (text.trim() === wanted) {
      el.click();
      return true;
    }
  }
  return false;
}"""

CLICK_GRID_CELL_SCRIPT = """(args) => {
  const root = document.querySelector(args.sel);
  if (!root) return false;
  const rows = Array.from(root.querySelectorAll("[role='row']")).filter(
    (r) => r.querySelector("[role='radio'], [role='checkbox']"));
  const row = rows[args.row];
  if (!row) return false;
  const cells = row.querySelectorAll("[role='radio'], [role='checkbox']");
  const cell = cells[args.col];
  if (!cell) return false;
  cell.click();
  return true;
}"""

SET_VALUE_SCRIPT = """(args) => {
  const el = document.querySelector(args.sel);
  if (el) {
    el.value = args.val;
    el.dispatchEvent(new Event('input', {bubbles:true}));
    el.dispatchEvent(new Event('change', {bubbles:true}));
    el.blur();
  }
}"""

TRIGGER_EVENTS_SCRIPT = """(sel) => {
  const el = document.querySelector(sel);
  if (el) {
    el.dispatchEvent(new Event('input', {bubbles:true}));
    el.dispatchEvent(new Event('change', {bubbles:true}));
    el.blur();
  }
}"""

TEXT_INPUT_SELECTOR = "input:not([type='hidden']):not([type='radio']):not([type='checkbox']), textarea"


class PlaywrightDocumentAdapter:
    """DocumentAdapter over a Playwright page"""

    def __init__(self, page, settle_ms: Optional[int] = None, reset_settle_ms: Optional[int] = None,
                 field_timeout_ms: Optional[int] = None):
        self.page = page
        self.settle_ms = settle_ms if settle_ms is not None else config.submit_settle_ms
        self.reset_settle_ms = reset_settle_ms if reset_settle_ms is not None else config.reset_settle_ms
        self.field_timeout_ms = field_timeout_ms if field_timeout_ms is not None else config.field_timeout_ms

    async def snapshot(self) -> DocumentNode:
        data = await self.page.evaluate(SNAPSHOT_SCRIPT)
        return DocumentNode.from_dict(data or {"tag": "body"})

    async def read_attribute(self, locator: str, name: str) -> Optional[str]:
        return await self.page.get_attribute(locator, name, timeout=self.field_timeout_ms)

    async def read_text(self, locator: str) -> str:
        return (await self.page.inner_text(locator, timeout=self.field_timeout_ms)).strip()

    async def visible_text(self) -> str:
        return await self.page.inner_text("body")

    async def locate(self, chain: List[Locator]) -> Optional[str]:
        for locator in chain:
            try:
                if await self.page.locator(locator.expression).count() > 0:
                    return locator.expression
            except Exception as e:
                logger.debug(f"Locator {locator.expression!r} not usable: {e}")
        return None

    async def click(self, locator: str) -> None:
        try:
            await self.page.click(locator, timeout=self.field_timeout_ms)
        except Exception as e:
            raise AdapterError(f"Click failed on {locator}: {e}") from e

    async def write_value(self, field: Field, value: Any) -> None:
        """
        Write one value into a field.

        Text-like fields go through robust filling, choice fields click the
        option whose trimmed text equals the value, grids click one cell per
        row. File fields are never written.

        Raises:
            AdapterError: field not found or no strategy succeeded
        """
        if field.type == FieldType.FILE:
            return

        selector = await self.locate(field.locator_chain)
        if selector is None:
            raise AdapterError(f"Field not found in page: {field.id}", field_id=field.id)

        if field.type.is_grid:
            ok = await self._write_grid(field, selector, value)
        elif field.type.is_choice:
            ok = await self._write_choice(field, selector, str(value))
        else:
            ok = await self._write_text(selector, str(value))

        if not ok:
            raise AdapterError(f"Could not write {value!r} into {field.id}", field_id=field.id)

    async def _write_text(self, selector: str, value: str) -> bool:
        inner = self.page.locator(selector).locator(TEXT_INPUT_SELECTOR)
        target = selector
        if await inner.count() > 0:
            target = f"{selector} >> {TEXT_INPUT_SELECTOR} >> nth=0"
        return await robust_fill_field(self.page, target, value, self.field_timeout_ms)

    async def _write_choice(self, field: Field, selector: str, value: str) -> bool:
        native_select = self.page.locator(selector).locator("select")
        if field.type == FieldType.DROPDOWN and await native_select.count() > 0:
            try:
                await native_select.first.select_option(label=value, timeout=self.field_timeout_ms)
                return True
            except Exception as e:
                logger.debug(f"select_option failed for {field.id}: {e}")

        if field.type == FieldType.DROPDOWN:
            listbox = self.page.locator(selector).locator("[role='listbox']")
            if await listbox.count() > 0:
                await listbox.first.click(timeout=self.field_timeout_ms)
                await self.page.wait_for_timeout(300)
                option = self.page.locator("[role='option']").filter(has_text=value)
                if await option.count() > 0:
                    await option.last.click(timeout=self.field_timeout_ms)
                    return True

        return bool(await self.page.evaluate(CLICK_OPTION_SCRIPT, {"sel": selector, "value": value}))

    async def _write_grid(self, field: Field, selector: str, value: Any) -> bool:
        if not isinstance(value, dict):
            return False
        rows = list(field.grid_rows or [])
        columns = list(field.grid_columns or [])
        for row_label, column_label in value.items():
            if row_label not in rows or column_label not in columns:
                logger.debug(f"Grid value {row_label!r}={column_label!r} not in {field.id}")
                return False
            ok = await self.page.evaluate(
                CLICK_GRID_CELL_SCRIPT,
                {"sel": selector, "row": rows.index(row_label), "col": columns.index(column_label)},
            )
            if not ok:
                return False
        return True

    async def submit(self) -> None:
        buttons = self.page.locator("[role='button'], button, input[type='submit']")
        for i in range(await buttons.count()):
            button = buttons.nth(i)
            text = ((await button.inner_text()) or (await button.get_attribute("value")) or "").lower()
            if "submit" in text and "another" not in text:
                await button.click(timeout=self.field_timeout_ms)
                await self.page.wait_for_timeout(self.settle_ms)
                return
        raise AdapterError("Submit button not found")

    async def reset(self) -> None:
        link = self.page.locator("a").filter(has_text="another response")
        if await link.count() > 0:
            logger.debug("Following 'submit another response' link")
            await link.first.click(timeout=self.field_timeout_ms)
        else:
            logger.debug("No reset link found, reloading page")
            await self.page.reload(wait_until="domcontentloaded")
        await self.page.wait_for_timeout(self.reset_settle_ms)


async def robust_fill_field(page, selector: str, value: str, timeout: int = 3000) -> bool:
    """Robust field filling with multiple fallbacks and event triggering.

    Tries multiple strategies:
    1. page.fill (native Playwright)
    2. page.type (slower but more reliable)
    3. Direct DOM setValue via evaluate
    """
    try:
        await page.fill(selector, value, timeout=timeout)
        await _trigger_field_events(page, selector)
        return True
    except Exception as e:
        logger.debug(f"fill failed on {selector}: {e}")

    try:
        await page.locator(selector).clear(timeout=timeout)
        await page.type(selector, value, delay=20, timeout=timeout)
        await _trigger_field_events(page, selector)
        return True
    except Exception as e:
        logger.debug(f"type failed on {selector}: {e}")

    # Plain CSS only from here on
    css = selector.split(" >> ")[0]
    try:
        await page.evaluate(SET_VALUE_SCRIPT, {"sel": css, "val": value})
        return True
    except Exception as e:
        logger.debug(f"DOM setValue failed on {css}: {e}")
    return False


async def _trigger_field_events(page, selector: str) -> None:
    """Trigger input/change/blur events on a field to activate client-side validation."""
    await page.locator(selector).evaluate(
        """(el) => {
          el.dispatchEvent(new Event('input', {bubbles:true}));
          el.dispatchEvent(new Event('change', {bubbles:true}));
          el.blur();
        }"""
    )


@asynccontextmanager
async def open_page(url: str, headless: Optional[bool] = None) -> AsyncIterator[Any]:
    """Launch Chromium, open ``url`` and yield the page; closes everything on exit."""
    from playwright.async_api import async_playwright

    playwright = await async_playwright().start()
    browser = await playwright.chromium.launch(
        headless=config.headless if headless is None else headless,
        args=[
            "--no-sandbox",
            "--disable-dev-shm-usage",
        ],
    )
    try:
        page = await browser.new_page()
        logger.info(f"Opening {url}")
        await page.goto(url, wait_until="domcontentloaded", timeout=config.navigation_timeout_ms)
        yield page
    finally:
        await browser.close()
        await playwright.stop()
