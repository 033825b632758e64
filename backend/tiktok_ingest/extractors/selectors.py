"""Ordered CSS selector fallback chains for TikTok markup.

TikTok renames its classes and test ids often, so every lookup is an ordered
list of candidate selectors tried until one matches. The same chain runs
against a live Playwright page (waiting) and against a BeautifulSoup snapshot
of the rendered HTML (extraction).
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from bs4 import Tag
from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectorStrategy:
    name: str
    css: str

    def select(self, node: Tag) -> List[Tag]:
        return node.select(self.css)


class SelectorChain:
    """An ordered list of selector strategies for one piece of markup."""

    def __init__(self, name: str, strategies: List[SelectorStrategy]):
        self.name = name
        self.strategies = list(strategies)

    @classmethod
    def of(cls, name: str, *selectors: str) -> "SelectorChain":
        return cls(name, [SelectorStrategy(f"{name}#{idx}", css) for idx, css in enumerate(selectors)])

    def __iter__(self):
        return iter(self.strategies)

    def __len__(self) -> int:
        return len(self.strategies)

    def first_match(self, node: Tag) -> Tuple[Optional[SelectorStrategy], List[Tag]]:
        for strategy in self.strategies:
            found = strategy.select(node)
            if found:
                return strategy, found
        return None, []

    def first_text(self, node: Tag) -> str:
        for strategy in self.strategies:
            element = node.select_one(strategy.css)
            if element is None:
                continue
            text = element.get_text(strip=True)
            if text:
                return text
        return ""

    async def wait_for_any(self, page, timeout_ms: int) -> Optional[SelectorStrategy]:
        """Wait on each candidate in turn; return the first yielding at least one element."""
        for strategy in self.strategies:
            try:
                await page.wait_for_selector(strategy.css, timeout=timeout_ms)
                count = len(await page.query_selector_all(strategy.css))
            except PlaywrightError as exc:
                logger.debug("Selector %s not found: %s", strategy.css, exc)
                continue
            if count > 0:
                logger.info("Found %s elements with selector: %s", count, strategy.css)
                return strategy
        return None


RESULT_CARDS = SelectorChain.of(
    "result",
    '[data-e2e="search-card-video"]',
    '[data-testid="video-card"]',
    'div[data-e2e="search-card"]',
    'div[class*="DivItemContainer"]',
    'div[class*="video-card"]',
    'a[href*="/video/"]',
)

CREATOR_HANDLE = SelectorChain.of(
    "handle",
    '[data-e2e="search-card-user-unique-id"]',
    '[data-testid="user-unique-id"]',
    'p[data-e2e="search-card-user-unique-id"]',
    'a[href*="/@"]',
    'span[class*="username"]',
)

CAPTION = SelectorChain.of(
    "caption",
    '[data-e2e="search-card-desc"]',
    '[data-e2e="video-desc"]',
    '[data-testid="video-desc"]',
    'div[class*="caption"]',
    'div[class*="description"]',
)

VIEW_COUNT = SelectorChain.of(
    "views",
    '[data-e2e="video-views"]',
    '[data-testid="video-views"]',
    'strong[data-e2e="video-views"]',
    'div[class*="views"]',
)
