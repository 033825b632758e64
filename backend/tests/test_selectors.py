import asyncio

from bs4 import BeautifulSoup

from fakes import FakePage
from tiktok_ingest.extractors.selectors import CAPTION, RESULT_CARDS, SelectorChain


def test_first_match_respects_order():
    chain = SelectorChain.of("demo", "li.missing", "li.item", "li")
    soup = BeautifulSoup("<ul><li class='item'>a</li><li>b</li></ul>", "lxml")

    strategy, found = chain.first_match(soup)

    assert strategy.css == "li.item"
    assert [el.get_text() for el in found] == ["a"]


def test_first_match_without_hits():
    strategy, found = SelectorChain.of("demo", "table").first_match(BeautifulSoup("<p>x</p>", "lxml"))
    assert strategy is None
    assert found == []


def test_first_text_skips_empty_candidates():
    soup = BeautifulSoup(
        '<div><div data-e2e="search-card-desc">  </div><div class="caption-box">hello #tag</div></div>',
        "lxml",
    )
    assert CAPTION.first_text(soup) == "hello #tag"


def test_wait_for_any_returns_first_present_strategy():
    page = FakePage(matching={'div[data-e2e="search-card"]': 4, 'a[href*="/video/"]': 9})

    strategy = asyncio.run(RESULT_CARDS.wait_for_any(page, timeout_ms=10))

    assert strategy.css == 'div[data-e2e="search-card"]'


def test_wait_for_any_gives_up_after_every_candidate():
    assert asyncio.run(RESULT_CARDS.wait_for_any(FakePage(), timeout_ms=10)) is None
