"""Tests for browser actions: random_sleep, scroll_until_stable, dismiss_overlays."""

import asyncio
from collections.abc import Iterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from leadgen.browser.actions import (
    SCROLL_DELAY_FLOOR,
    DismissStep,
    always_present,
    click_target,
    count_matches,
    dismiss_overlays,
    first_match,
    press_key,
    random_sleep,
    scroll_until_stable,
)

_TEST_SELECTORS: tuple[str, ...] = ("li.test-card",)


@pytest.fixture()
def no_sleep() -> Iterator[AsyncMock]:
    with patch.object(asyncio, "sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


# ---------------------------------------------------------------------------
# TestRandomSleep
# ---------------------------------------------------------------------------


class TestRandomSleep:
    async def test_returns_duration_in_range(self, no_sleep: AsyncMock) -> None:
        duration = await random_sleep(0.0, 0.01)
        assert 0.0 <= duration <= 0.01

    async def test_max_below_min_is_clamped(self, no_sleep: AsyncMock) -> None:
        assert await random_sleep(5.0, 2.0) == 5.0

    async def test_negative_min_clamped_to_zero(self, no_sleep: AsyncMock) -> None:
        assert await random_sleep(-1.0, 0.5) >= 0.0

    async def test_actually_calls_asyncio_sleep(self, no_sleep: AsyncMock) -> None:
        await random_sleep(0.1, 0.2)
        no_sleep.assert_called_once()
        assert 0.1 <= no_sleep.call_args[0][0] <= 0.2


# ---------------------------------------------------------------------------
# TestScrollUntilStable
# ---------------------------------------------------------------------------


def _make_page_mock(card_counts: list[int]) -> AsyncMock:
    """Mock page whose query_selector_all returns the given counts in turn."""
    page = AsyncMock()
    call_idx = 0

    async def _query_selector_all(selector: str) -> list[object]:
        nonlocal call_idx
        count = card_counts[min(call_idx, len(card_counts) - 1)]
        call_idx += 1
        return [object() for _ in range(count)]

    page.query_selector_all = AsyncMock(side_effect=_query_selector_all)
    page.evaluate = AsyncMock(return_value=None)
    return page


class TestScrollUntilStable:
    async def test_cards_grow_then_stabilize(self, no_sleep: AsyncMock) -> None:
        page = _make_page_mock([14, 25, 25])
        count = await scroll_until_stable(page, card_selectors=_TEST_SELECTORS, max_attempts=5)
        assert count == 25

    async def test_zero_cards_stops(self, no_sleep: AsyncMock) -> None:
        page = _make_page_mock([0, 0])
        assert await scroll_until_stable(page, card_selectors=_TEST_SELECTORS) == 0

    async def test_scrolls_between_checks(self, no_sleep: AsyncMock) -> None:
        page = _make_page_mock([10, 20, 20])
        await scroll_until_stable(page, card_selectors=_TEST_SELECTORS, max_attempts=5)
        assert page.evaluate.call_count == 2

    async def test_max_attempts_respected(self, no_sleep: AsyncMock) -> None:
        page = _make_page_mock([5, 10, 15, 20, 25])
        await scroll_until_stable(page, card_selectors=_TEST_SELECTORS, max_attempts=3)
        assert page.query_selector_all.call_count == 3

    async def test_scroll_delay_floor_enforced(self) -> None:
        page = _make_page_mock([10, 20, 20])
        with patch("leadgen.browser.actions.random_sleep", new_callable=AsyncMock) as mock_rs:
            await scroll_until_stable(
                page, card_selectors=_TEST_SELECTORS,
                scroll_delay_min=0.1, scroll_delay_max=0.2,
            )
        for call in mock_rs.call_args_list:
            assert call[0][0] >= SCROLL_DELAY_FLOOR


class TestCountMatches:
    async def test_first_matching_selector_wins(self) -> None:
        found = {"a.detail": [object(), object()], "li.card": [object()]}
        page = MagicMock()
        page.query_selector_all = AsyncMock(side_effect=lambda sel: found.get(sel, []))

        assert await count_matches(page, ("a.missing", "a.detail", "li.card")) == 2
        assert await count_matches(page, ("a.missing",)) == 0


# ---------------------------------------------------------------------------
# TestDismissOverlays
# ---------------------------------------------------------------------------


def _page_with_elements(elements: dict[str, Any]) -> MagicMock:
    page = MagicMock()
    page.query_selector = AsyncMock(side_effect=lambda sel: elements.get(sel))
    page.keyboard.press = AsyncMock()
    return page


class TestDismissOverlays:
    async def test_clicks_present_targets_in_order(self, no_sleep: AsyncMock) -> None:
        button = MagicMock()
        button.click = AsyncMock()
        page = _page_with_elements({"button.ok": button})
        steps = [
            DismissStep("cookie", first_match("button.ok"), click_target),
            DismissStep("modal", first_match("button.close"), click_target),
            DismissStep("escape", always_present, press_key("Escape")),
        ]

        acted = await dismiss_overlays(page, steps, timeout_s=1.0)

        assert acted == ["cookie", "escape"]
        button.click.assert_awaited_once()
        page.keyboard.press.assert_awaited_once_with("Escape")

    async def test_first_match_tries_selectors_in_order(self) -> None:
        second = MagicMock()
        page = _page_with_elements({"b": second})
        assert await first_match("a", "b")(page) is second
        assert await first_match("x", "y")(page) is None

    async def test_failing_step_does_not_stop_later_steps(self, no_sleep: AsyncMock) -> None:
        button = MagicMock()
        button.click = AsyncMock(side_effect=RuntimeError("detached"))
        page = _page_with_elements({"button.ok": button})
        steps = [
            DismissStep("cookie", first_match("button.ok"), click_target),
            DismissStep("escape", always_present, press_key("Escape")),
        ]

        acted = await dismiss_overlays(page, steps, timeout_s=1.0)

        assert acted == ["escape"]

    async def test_slow_step_is_abandoned(self) -> None:
        async def _hang(page: Any) -> Any:
            await asyncio.sleep(10)
            return page

        page = _page_with_elements({})
        steps = [
            DismissStep("slow", _hang, click_target),
            DismissStep("escape", always_present, press_key("Escape"), settle_s=0.0),
        ]

        acted = await dismiss_overlays(page, steps, timeout_s=0.01)

        assert acted == ["escape"]

    async def test_no_overlays_present(self) -> None:
        page = _page_with_elements({})
        steps = [DismissStep("cookie", first_match("button.ok"), click_target)]
        assert await dismiss_overlays(page, steps, timeout_s=1.0) == []
