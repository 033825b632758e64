"""TikTok search and import API"""
import logging
import random
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from tiktok_ingest.errors import IngestError, InvalidUrlError
from tiktok_ingest.extractors import BaseExtractor, SearchMode, VideoRecord
from tiktok_ingest.schemas import (
    ImportJobResponse,
    ImportListResponse,
    ImportOutcomeResponse,
    ImportRequest,
    SearchResponse,
    VideoResponse,
)
from tiktok_ingest.services import ImportOutcome, ImportService, Storage
from tiktok_ingest.api.deps import get_extractor, get_import_service, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()

TRENDING_QUERIES = ["viral", "fyp", "trending", "funny", "dance"]
SERVICE_UNAVAILABLE = "TikTok service temporarily unavailable"


def _search_response(query: str, mode: SearchMode, videos: List[VideoRecord]) -> SearchResponse:
    return SearchResponse(
        query=query,
        type=mode.value,
        count=len(videos),
        videos=[VideoResponse.model_validate(video) for video in videos],
    )


async def _run_search(extractor: BaseExtractor, mode: SearchMode, query: str, limit: int) -> SearchResponse:
    try:
        videos = await extractor.search(mode, query, limit)
    except IngestError as exc:
        logger.error("TikTok %s search for %r failed: %s", mode.value, query, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": SERVICE_UNAVAILABLE, "code": exc.code, "reason": exc.message},
        )
    return _search_response(query, mode, videos)


def _outcome_status(outcome: ImportOutcome) -> int:
    if outcome.success:
        return status.HTTP_201_CREATED
    if outcome.duplicate:
        return status.HTTP_409_CONFLICT
    if outcome.error_code == InvalidUrlError.default_code:
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_502_BAD_GATEWAY


@router.get("/search", response_model=SearchResponse)
async def search_videos(
    q: str = Query(..., min_length=1, description="Keyword or hashtag"),
    type: SearchMode = Query(default=SearchMode.KEYWORD),
    limit: int = Query(default=10, description="Clamped to 1..50"),
    extractor: BaseExtractor = Depends(get_extractor),
):
    """Keyword or hashtag search"""
    return await _run_search(extractor, type, q, limit)


@router.get("/trending", response_model=SearchResponse)
async def trending_videos(
    limit: int = Query(default=15),
    extractor: BaseExtractor = Depends(get_extractor),
):
    """Keyword search on a random popular term"""
    query = random.choice(TRENDING_QUERIES)
    return await _run_search(extractor, SearchMode.KEYWORD, query, limit)


@router.get("/hashtag/{tag}", response_model=SearchResponse)
async def hashtag_videos(
    tag: str,
    limit: int = Query(default=10),
    extractor: BaseExtractor = Depends(get_extractor),
):
    """Videos under a hashtag"""
    return await _run_search(extractor, SearchMode.HASHTAG, tag.lstrip("#"), limit)


@router.post("/admin/import", response_model=ImportOutcomeResponse)
async def import_video(
    payload: ImportRequest,
    response: Response,
    service: ImportService = Depends(get_import_service),
):
    """Import a single video into the platform"""
    outcome = await service.import_from_url(payload.url.strip())
    response.status_code = _outcome_status(outcome)
    return ImportOutcomeResponse.model_validate(outcome)


@router.get("/admin/imports", response_model=ImportListResponse)
async def list_imports(
    limit: int = Query(default=50, ge=1, le=200),
    storage: Storage = Depends(get_storage),
):
    """Import history, newest first"""
    jobs = await storage.list_imports(limit)
    return ImportListResponse(
        total=len(jobs),
        data=[ImportJobResponse.model_validate(job) for job in jobs],
    )
