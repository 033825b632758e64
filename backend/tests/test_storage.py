import asyncio

import pytest

from tiktok_ingest.errors import DuplicateAccountError, DuplicateImportError
from tiktok_ingest.models import ImportStatus


def run(coro):
    return asyncio.run(coro)


def test_account_roundtrip_and_update(storage):
    account = run(storage.create_account(handle="alice", display_name="Alice"))
    assert account.id
    assert run(storage.find_account_by_handle("alice")).id == account.id
    assert run(storage.find_account_by_handle("nobody")) is None

    updated = run(storage.update_account(account.id, display_name="Alice R", verified=True, follower_count=7))

    assert updated.display_name == "Alice R"
    assert updated.verified is True
    assert updated.follower_count == 7


def test_duplicate_handle_is_reported(storage):
    run(storage.create_account(handle="alice"))

    with pytest.raises(DuplicateAccountError):
        run(storage.create_account(handle="alice"))


def test_duplicate_external_video_id_is_reported(storage):
    account = run(storage.create_account(handle="alice"))
    fields = dict(
        creator_account_id=account.id,
        external_video_id="123",
        source_url="https://www.tiktok.com/@alice/video/123",
        status=ImportStatus.PROCESSING,
    )
    run(storage.create_import(**fields))

    with pytest.raises(DuplicateImportError) as exc_info:
        run(storage.create_import(**fields))
    assert exc_info.value.external_video_id == "123"


def test_import_lifecycle_and_history(storage):
    account = run(storage.create_account(handle="alice", display_name="Alice"))
    user = run(storage.create_user(username="alice", email="alice@tiktok-import.local", password_hash="x"))
    run(storage.link_account_to_user(account.id, user.id))
    post = run(storage.create_post(user_id=user.id, content="hi", media_urls=["https://m/1.mp4"], hashtags=[]))
    job = run(
        storage.create_import(
            creator_account_id=account.id,
            external_video_id="123",
            source_url="https://www.tiktok.com/@alice/video/123",
            status=ImportStatus.PROCESSING,
        )
    )

    run(storage.update_import(job.id, status=ImportStatus.COMPLETED, resulting_post_id=post.id))

    found = run(storage.find_import_by_external_id("123"))
    assert found.status == ImportStatus.COMPLETED
    assert found.resulting_post_id == post.id
    assert run(storage.find_account_by_handle("alice")).app_user_id == user.id
    assert run(storage.find_user_by_username("alice")).id == user.id
    assert run(storage.find_user_by_id(user.id)).username == "alice"

    history = run(storage.list_imports(limit=10))
    assert [j.external_video_id for j in history] == ["123"]
    assert history[0].creator_account.handle == "alice"


def test_update_missing_row_returns_none(storage):
    assert run(storage.update_import("missing", status=ImportStatus.FAILED)) is None


def test_link_only_replaces_the_expected_user(storage):
    account = run(storage.create_account(handle="alice"))
    first = run(storage.create_user(username="alice", email="a@tiktok-import.local", password_hash="x"))
    second = run(storage.create_user(username="alice_1", email="a1@tiktok-import.local", password_hash="x"))

    assert run(storage.link_account_to_user(account.id, first.id)) is True
    assert run(storage.link_account_to_user(account.id, second.id)) is False
    assert run(storage.find_account_by_handle("alice")).app_user_id == first.id

    assert run(storage.link_account_to_user(account.id, second.id, expected_user_id=first.id)) is True
    assert run(storage.find_account_by_handle("alice")).app_user_id == second.id


def test_delete_user(storage):
    user = run(storage.create_user(username="alice", email="a@tiktok-import.local", password_hash="x"))

    run(storage.delete_user(user.id))

    assert run(storage.find_user_by_id(user.id)) is None
    assert run(storage.find_user_by_username("alice")) is None
