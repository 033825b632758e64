"""TikTok extractor powered by a shared Playwright Chromium."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Type
from urllib.parse import quote, quote_plus

from playwright.async_api import Error as PlaywrightError

from tiktok_ingest.errors import (
    ExtractionError,
    IngestError,
    InvalidUrlError,
    PageDataError,
)
from tiktok_ingest.extractors.base import BaseExtractor, SearchMode, VideoRecord
from tiktok_ingest.extractors.browser import BrowserManager
from tiktok_ingest.extractors.parsing import (
    find_video_detail,
    match_video_url,
    parse_search_results,
    parse_video_id,
    video_record_from_item,
)
from tiktok_ingest.extractors.selectors import RESULT_CARDS, SelectorChain

logger = logging.getLogger(__name__)


class TikTokExtractor(BaseExtractor):
    """Search listings and single-video pages on tiktok.com.

    Failures always surface as typed errors; no placeholder records are ever
    returned in place of real data.
    """

    platform_name = "tiktok"

    def __init__(self, browser: BrowserManager, config: Dict = None, result_selectors: SelectorChain = RESULT_CARDS):
        self.browser = browser
        self.config = config or {}
        self.result_selectors = result_selectors
        self.base_url = str(self.config.get("base_url", "https://www.tiktok.com")).rstrip("/")
        self.timeout_ms = int(self.config.get("timeout_ms", 60000))
        self.selector_timeout_ms = int(self.config.get("selector_timeout_ms", 5000))
        self.settle_seconds = float(self.config.get("settle_seconds", 3.0))
        self.scroll_cycles = max(0, int(self.config.get("scroll_cycles", 3)))
        self.scroll_wait_seconds = float(self.config.get("scroll_wait_seconds", 2.0))
        self.navigation_retries = max(0, int(self.config.get("navigation_retries", 2)))
        self.navigation_backoff_seconds = float(self.config.get("navigation_backoff_seconds", 1.5))

    async def search(
        self,
        mode: str,
        query: str,
        limit: int = 10,
    ) -> List[VideoRecord]:
        try:
            mode = SearchMode(mode)
        except ValueError as exc:
            raise ExtractionError(
                f"Unsupported search mode: {mode!r}",
                details={"modes": [m.value for m in SearchMode]},
            ) from exc
        query = (query or "").strip()
        if not query:
            raise ExtractionError("Search query is empty")
        limit = self.clamp_limit(limit)
        url = self.build_search_url(mode, query)
        logger.info("TikTok search start: mode=%s query=%s limit=%s url=%s", mode.value, query, limit, url)

        try:
            async with self.browser.page() as page:
                await self._goto(page, url, ExtractionError)
                await asyncio.sleep(self.settle_seconds)

                strategy = await self.result_selectors.wait_for_any(page, self.selector_timeout_ms)
                if strategy is None:
                    raise ExtractionError(
                        "No video elements found with any selector",
                        details={"url": url, "selectors": [s.css for s in self.result_selectors]},
                    )

                await self._scroll(page)
                html = await page.content()
        except PlaywrightError as exc:
            raise ExtractionError(f"Failed to scrape TikTok videos for \"{query}\": {exc}") from exc

        records = parse_search_results(html, strategy, limit, self.base_url)
        if not records:
            raise ExtractionError(
                f"No real TikTok videos found for \"{query}\"",
                details={"url": url, "selector": strategy.css},
            )
        logger.info("TikTok search done: %s videos for %s", len(records), query)
        return records

    async def extract_by_url(self, url: str) -> VideoRecord:
        match = match_video_url(url)
        if match is None:
            raise InvalidUrlError(f"Not a recognizable TikTok video URL: {url}", details={"url": url})
        url = url.strip()
        logger.info("TikTok extract start: url=%s pattern=%s", url, match.pattern)

        try:
            async with self.browser.page() as page:
                await self._goto(page, url, PageDataError)
                html = await page.content()
                final_url = page.url
        except PlaywrightError as exc:
            raise PageDataError(f"Failed to load TikTok video page: {exc}", details={"url": url}) from exc

        video_id = match.video_id
        if match.short:
            video_id = parse_video_id(final_url)
            if not video_id:
                raise PageDataError(
                    "Short link did not resolve to a TikTok video",
                    details={"url": url, "resolved_url": final_url},
                )
            logger.info("Resolved short link %s -> %s", url, final_url)

        item = find_video_detail(html, video_id)
        page_url = final_url if parse_video_id(final_url) == video_id else url
        record = video_record_from_item(item, video_id, page_url=page_url.split("?")[0])
        logger.info(
            "TikTok extract done: id=%s author=@%s media=%s",
            record.external_id,
            record.creator.handle,
            "yes" if record.media_url else "no",
        )
        return record

    def build_search_url(self, mode: SearchMode, query: str) -> str:
        if mode == SearchMode.HASHTAG:
            return f"{self.base_url}/tag/{quote(query.lstrip('#'), safe='')}"
        return f"{self.base_url}/search?q={quote_plus(query)}"

    async def _goto(self, page, url: str, error_cls: Type[IngestError]) -> None:
        """Navigate with bounded retries and exponential backoff."""
        attempts = self.navigation_retries + 1
        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
                return
            except PlaywrightError as exc:
                last_error = exc
                if attempt >= attempts:
                    break
                wait_time = self.navigation_backoff_seconds * (2 ** (attempt - 1))
                logger.warning(
                    "Navigation to %s failed (attempt %s/%s). Retrying in %.1fs. Error: %s",
                    url,
                    attempt,
                    attempts,
                    wait_time,
                    exc,
                )
                await asyncio.sleep(wait_time)
        raise error_cls(
            f"Navigation to {url} failed after {attempts} attempts: {last_error}",
            details={"url": url},
        ) from last_error

    async def _scroll(self, page) -> None:
        for idx in range(self.scroll_cycles):
            await page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
            await asyncio.sleep(self.scroll_wait_seconds)
            logger.debug("Scroll %s/%s completed", idx + 1, self.scroll_cycles)
