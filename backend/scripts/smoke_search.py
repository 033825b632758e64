"""Live TikTok search against tiktok.com; run by hand, not part of the test suite.

    python scripts/smoke_search.py [query] [--hashtag] [--limit N]
"""
import argparse
import asyncio

from tiktok_ingest.config import build_extractor_config, get_settings
from tiktok_ingest.errors import IngestError
from tiktok_ingest.extractors import BrowserManager, SearchMode, TikTokExtractor


async def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("query", nargs="?", default="deepseek")
    parser.add_argument("--hashtag", action="store_true")
    parser.add_argument("--limit", type=int, default=5)
    args = parser.parse_args()

    settings = get_settings()
    browser = BrowserManager.from_settings(settings)
    extractor = TikTokExtractor(browser, build_extractor_config(settings))
    mode = SearchMode.HASHTAG if args.hashtag else SearchMode.KEYWORD

    try:
        videos = await extractor.search(mode, args.query, args.limit)
    except IngestError as exc:
        print(f"Search failed [{exc.code}]: {exc.message}")
        return 1
    finally:
        await browser.shutdown()

    print(f"Found {len(videos)} videos for {mode.value} '{args.query}'.")
    for idx, video in enumerate(videos, start=1):
        caption = video.caption.replace("\n", " ").strip()
        if len(caption) > 120:
            caption = f"{caption[:117]}..."
        print(f"{idx}. {video.external_id} @{video.creator.handle} views={video.engagement.views} {video.page_url}")
        print(f"   caption: {caption or '[empty]'}")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
