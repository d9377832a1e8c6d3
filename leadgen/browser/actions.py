"""Page-level browser helpers: jittered waits, lazy-load scrolling, overlay dismissal.

All waits go through random_sleep so no two page visits are timed alike.
Overlay dismissal is best-effort: a missing target is an absence, not an error.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

MAX_SCROLL_ATTEMPTS = 5
SCROLL_DELAY_FLOOR = 0.5

_SCROLL_STEP_JS = "window.scrollBy(0, Math.max(window.innerHeight, 800))"

Detector = Callable[[Any], Awaitable[Any | None]]
Action = Callable[[Any, Any], Awaitable[None]]


async def random_sleep(min_s: float, max_s: float) -> float:
    """Wait a uniformly random time in [min_s, max_s] and return it.

    Negative bounds clamp to zero; an inverted range collapses to min_s.
    """
    low = max(min_s, 0.0)
    duration = random.uniform(low, max(max_s, low))
    await asyncio.sleep(duration)
    return duration


async def count_matches(page: Any, selectors: Sequence[str]) -> int:
    """Element count for the first selector that matches anything."""
    for selector in selectors:
        found = await page.query_selector_all(selector)
        if found:
            return len(found)
    return 0


async def scroll_until_stable(
    page: Any,
    *,
    card_selectors: Sequence[str],
    max_attempts: int = MAX_SCROLL_ATTEMPTS,
    scroll_delay_min: float = 0.5,
    scroll_delay_max: float = 1.5,
) -> int:
    """Scroll one viewport at a time until lazy-loaded postings stop appearing.

    Counts are taken at most ``max_attempts`` times; the loop ends early on
    the first scroll that adds nothing. The delay between scrolls never goes
    below SCROLL_DELAY_FLOOR. Returns the last count.
    """
    low = max(scroll_delay_min, SCROLL_DELAY_FLOOR)
    high = max(scroll_delay_max, low)

    count = await count_matches(page, card_selectors)
    for round_no in range(1, max_attempts):
        await page.evaluate(_SCROLL_STEP_JS)
        await random_sleep(low, high)
        new_count = await count_matches(page, card_selectors)
        logger.debug("Scroll round %d: %d -> %d postings", round_no, count, new_count)
        if new_count == count:
            break
        count = new_count
    return count


# --- Overlay dismissal ---


@dataclass(frozen=True)
class DismissStep:
    """One overlay-dismissal attempt: find a target, then act on it.

    ``detector`` returns the target (element, or the page itself) or None
    when the overlay is absent.
    """

    name: str
    detector: Detector
    action: Action
    settle_s: float = 0.5


def first_match(*selectors: str) -> Detector:
    """Detector returning the first element matching any selector, in order."""

    async def _detect(page: Any) -> Any | None:
        for selector in selectors:
            el = await page.query_selector(selector)
            if el is not None:
                return el
        return None

    return _detect


async def always_present(page: Any) -> Any:
    """Detector for steps that need no target (e.g. key presses)."""
    return page


async def click_target(page: Any, target: Any) -> None:
    await target.click()


def press_key(key: str) -> Action:
    """Action pressing a keyboard key on the page."""

    async def _press(page: Any, target: Any) -> None:
        await page.keyboard.press(key)

    return _press


async def dismiss_overlays(
    page: Any,
    steps: Sequence[DismissStep],
    *,
    timeout_s: float,
) -> list[str]:
    """Run dismissal steps in order, each capped at timeout_s.

    Returns the names of the steps that found a target and acted on it.
    Nothing raised by a step escapes; a timed-out or failing step is logged
    and the next one runs.
    """
    acted: list[str] = []
    for step in steps:
        try:
            did_act = await asyncio.wait_for(_run_step(page, step), timeout=timeout_s)
        except asyncio.TimeoutError:
            logger.debug("Overlay step '%s' timed out after %.1fs", step.name, timeout_s)
            continue
        except Exception:
            logger.debug("Overlay step '%s' failed, continuing", step.name, exc_info=True)
            continue
        if did_act:
            acted.append(step.name)
            await random_sleep(step.settle_s, step.settle_s * 2)
    if acted:
        logger.debug("Dismissed overlays: %s", ", ".join(acted))
    return acted


async def _run_step(page: Any, step: DismissStep) -> bool:
    target = await step.detector(page)
    if target is None:
        return False
    await step.action(page, target)
    return True
