import asyncio

import pytest
from fastapi.testclient import TestClient

from fakes import FakeExtractor, make_record
from tiktok_ingest.api import deps
from tiktok_ingest.api.tiktok import TRENDING_QUERIES
from tiktok_ingest.errors import BrowserNotInstalledError
from tiktok_ingest.extractors import SearchMode
from tiktok_ingest.main import app
from tiktok_ingest.models import ImportStatus
from tiktok_ingest.services.import_service import ImportOutcome, PostSummary, UserSummary

AUTH = {"Authorization": "Bearer test-key"}


class StubImportService:
    def __init__(self, outcome: ImportOutcome):
        self.outcome = outcome
        self.urls = []

    async def import_from_url(self, url):
        self.urls.append(url)
        return self.outcome


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def use_extractor(extractor):
    app.dependency_overrides[deps.get_extractor] = lambda: extractor
    return extractor


def use_import_outcome(outcome):
    service = StubImportService(outcome)
    app.dependency_overrides[deps.get_import_service] = lambda: service
    return service


def test_requires_api_key(client):
    assert client.get("/health").status_code == 401
    assert client.get("/health", headers={"Authorization": "Bearer wrong"}).status_code == 401


def test_health(client):
    response = client.get("/health", headers=AUTH)
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["browser"]["running"] is False


def test_search_returns_camel_case_videos(client):
    extractor = use_extractor(FakeExtractor(make_record(video_id="55")))

    response = client.get("/api/v1/tiktok/search", params={"q": "running", "limit": 3}, headers=AUTH)

    assert response.status_code == 200
    body = response.json()
    assert body["query"] == "running"
    assert body["type"] == "keyword"
    assert body["count"] == 1
    video = body["videos"][0]
    assert video["externalId"] == "55"
    assert video["creator"]["handle"] == "alice"
    assert video["creator"]["stats"]["followerCount"] == 1200
    assert extractor.searches == [(SearchMode.KEYWORD, "running", 3)]


def test_search_failure_is_service_unavailable(client):
    use_extractor(FakeExtractor(error=BrowserNotInstalledError("Chromium is not installed.")))

    response = client.get("/api/v1/tiktok/search", params={"q": "running"}, headers=AUTH)

    assert response.status_code == 503
    assert response.json()["detail"]["message"] == "TikTok service temporarily unavailable"
    assert response.json()["detail"]["code"] == "BROWSER_NOT_INSTALLED"


def test_trending_and_hashtag(client):
    extractor = use_extractor(FakeExtractor(make_record()))

    assert client.get("/api/v1/tiktok/trending", headers=AUTH).status_code == 200
    assert client.get("/api/v1/tiktok/hashtag/dance", params={"limit": 4}, headers=AUTH).status_code == 200

    (mode, query, limit), hashtag = extractor.searches
    assert mode == SearchMode.KEYWORD
    assert query in TRENDING_QUERIES
    assert limit == 15
    assert hashtag == (SearchMode.HASHTAG, "dance", 4)


@pytest.mark.parametrize(
    "outcome, status_code",
    [
        (ImportOutcome(success=False, message="Video 1 has already been imported", duplicate=True,
                       error="Video already exists", error_code="DUPLICATE_IMPORT"), 409),
        (ImportOutcome(success=False, message="Failed to import TikTok video: bad", error="bad",
                       error_code="INVALID_URL"), 400),
        (ImportOutcome(success=False, message="Failed to import TikTok video: 403", error="403",
                       error_code="DOWNLOAD_FAILED"), 502),
    ],
)
def test_import_failure_status_codes(client, outcome, status_code):
    use_import_outcome(outcome)

    response = client.post("/api/v1/tiktok/admin/import", json={"url": "https://x"}, headers=AUTH)

    assert response.status_code == status_code
    assert response.json()["errorCode"] == outcome.error_code


def test_import_success(client):
    service = use_import_outcome(
        ImportOutcome(
            success=True,
            message="Successfully imported video from @alice",
            account_created=True,
            post_created=True,
            user=UserSummary(id="u1", username="alice", display_name="Alice Runner"),
            post=PostSummary(id="p1", title="Morning run", video_url="https://media/tiktok_1.mp4"),
        )
    )

    response = client.post(
        "/api/v1/tiktok/admin/import",
        json={"url": " https://www.tiktok.com/@alice/video/1 "},
        headers=AUTH,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["accountCreated"] is True
    assert body["user"]["displayName"] == "Alice Runner"
    assert body["post"]["videoUrl"] == "https://media/tiktok_1.mp4"
    assert service.urls == ["https://www.tiktok.com/@alice/video/1"]


def test_import_requires_url(client):
    use_import_outcome(ImportOutcome(success=True, message="unused"))
    assert client.post("/api/v1/tiktok/admin/import", json={}, headers=AUTH).status_code == 422


def test_import_history(client, storage):
    account = asyncio.run(storage.create_account(handle="alice", display_name="Alice"))
    asyncio.run(
        storage.create_import(
            creator_account_id=account.id,
            external_video_id="123",
            source_url="https://www.tiktok.com/@alice/video/123",
            status=ImportStatus.FAILED,
            error_message="Downloaded video is empty",
        )
    )
    app.dependency_overrides[deps.get_storage] = lambda: storage

    response = client.get("/api/v1/tiktok/admin/imports", headers=AUTH)

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    job = body["data"][0]
    assert job["externalVideoId"] == "123"
    assert job["status"] == "failed"
    assert job["errorMessage"] == "Downloaded video is empty"
    assert job["creatorAccount"]["handle"] == "alice"


def test_import_dependencies_are_shared_across_requests():
    assert deps.get_media_transfer() is deps.get_media_transfer()
    assert deps.get_import_service() is deps.get_import_service()
    assert deps.get_import_service().media_transfer is deps.get_media_transfer()
    assert deps.get_import_service().storage is deps.get_storage()
