import pytest

from gym_availability_agent.config import Settings
from gym_availability_agent.dates import TargetDate
from gym_availability_agent.locator import HeuristicLocator
from gym_availability_agent.navigation import (
    InvalidTransition,
    NavigationPipeline,
    NavigationState,
    advance,
)

from tests.helpers import VOCABULARY, FakePage, page_html

LANDING_URL = "https://portal.example/web/homeIndex.html"
CATEGORY_URL = "https://portal.example/web/category.html"
TARGET = TargetDate.parse("2025-07-08")

LANDING = page_html('<a href="category.html">目的や人数から</a>')
SEARCH_FORM = page_html(
    '<table><tr><td><input type="checkbox" id="c1" name="sport" value="true"></td><td>バドミントン</td></tr></table>'
    '<input type="text" name="useDate" placeholder="年月日">'
    '<input type="submit" value="検索">'
)
CALENDAR = page_html(
    '<table class="calendar"><tr><td>7</td><td><a id="day8" href="javascript:selectDay(8)">8</a></td></tr></table>'
)


def make_pipeline(page: FakePage) -> NavigationPipeline:
    settings = Settings(portal_url=LANDING_URL, settle_max_seconds=None)
    return NavigationPipeline(page, HeuristicLocator(VOCABULARY), settings)


def test_advance_moves_forward_and_skips_steps():
    assert advance(NavigationState.LANDING, NavigationState.CATEGORY_CHOSEN) is NavigationState.CATEGORY_CHOSEN
    assert advance(NavigationState.LANDING, NavigationState.SPORT_SELECTED) is NavigationState.SPORT_SELECTED
    assert advance(NavigationState.DATE_ENTERED, NavigationState.FAILED) is NavigationState.FAILED


def test_advance_rejects_backwards_and_terminal_moves():
    with pytest.raises(InvalidTransition):
        advance(NavigationState.SEARCH_SUBMITTED, NavigationState.SPORT_SELECTED)
    with pytest.raises(InvalidTransition):
        advance(NavigationState.SPORT_SELECTED, NavigationState.SPORT_SELECTED)
    with pytest.raises(InvalidTransition):
        advance(NavigationState.RESULTS_READY, NavigationState.FAILED)
    with pytest.raises(InvalidTransition):
        advance(NavigationState.FAILED, NavigationState.RESULTS_READY)


@pytest.mark.asyncio
async def test_full_run_reaches_results():
    page = FakePage(
        routes={LANDING_URL: LANDING, CATEGORY_URL: SEARCH_FORM},
        on_click={'input[value="検索"]': CALENDAR},
    )
    pipeline = make_pipeline(page)

    outcome = await pipeline.run(TARGET)

    assert outcome.results_ready
    assert outcome.reason is None
    assert pipeline.state is NavigationState.RESULTS_READY
    assert [action[1] for action in page.calls("goto")] == [LANDING_URL, CATEGORY_URL]
    assert page.calls("fill") == [("fill", 'input[name="useDate"]', "2025/07/08")]
    assert page.calls("dispatch_event") == [("dispatch_event", 'input[name="useDate"]', "change")]
    assert page.calls("expect_navigation") == [
        ("expect_navigation", {"wait_until": "networkidle", "timeout": 30000})
    ]
    assert page.calls("click") == [
        ("click", '[id="c1"]'),
        ("click", 'input[value="検索"]'),
        ("click", '[id="day8"]'),
    ]
    assert page.calls("wait_for_timeout") == [("wait_for_timeout", 2000.0)]


@pytest.mark.asyncio
async def test_script_category_link_is_clicked():
    landing = page_html('<a id="cat" href="javascript:void(0)">目的や人数から</a>')
    page = FakePage(routes={LANDING_URL: landing}, on_click={'[id="cat"]': SEARCH_FORM})

    await make_pipeline(page).run(TARGET)

    assert page.calls("click")[0] == ("click", '[id="cat"]')
    assert page.calls("wait_for_load_state") == [("wait_for_load_state", "domcontentloaded")]
    assert len(page.calls("goto")) == 1


@pytest.mark.asyncio
async def test_missing_sport_is_degraded_failure():
    page = FakePage(routes={LANDING_URL: page_html("<p>お知らせ</p>")})
    pipeline = make_pipeline(page)

    outcome = await pipeline.run(TARGET)

    assert outcome.state is NavigationState.FAILED
    assert outcome.reason == "sport_not_found"
    assert not outcome.results_ready
    assert page.calls("click") == []
    assert page.calls("fill") == []


@pytest.mark.asyncio
async def test_missing_search_control_is_degraded_failure():
    form = page_html(
        '<table><tr><td><input type="checkbox" id="c1" value="true"></td><td>バドミントン</td></tr></table>'
    )
    page = FakePage(routes={LANDING_URL: form})

    outcome = await make_pipeline(page).run(TARGET)

    assert outcome.state is NavigationState.FAILED
    assert outcome.reason == "search_not_found"
    assert page.calls("click") == [("click", '[id="c1"]')]
    assert page.calls("expect_navigation") == []


@pytest.mark.asyncio
async def test_missing_date_field_and_day_are_skipped():
    form = page_html(
        '<label for="b1">バドミントン</label><input type="checkbox" id="b1" value="1">'
        '<button id="go">検索</button>'
    )
    page = FakePage(routes={LANDING_URL: form}, on_click={'[id="go"]': page_html("<p>結果</p>")})

    outcome = await make_pipeline(page).run(TARGET)

    assert outcome.results_ready
    assert page.calls("fill") == []
    assert page.calls("wait_for_timeout") == []
    assert page.calls("click") == [("click", '[id="b1"]'), ("click", '[id="go"]')]
