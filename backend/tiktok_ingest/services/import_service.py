"""Import a single TikTok video into platform state.

The import runs as a sequence of dependent steps: extract, dedup check,
resolve the creator account, open an import job, transfer media, resolve the
app user, create the post, close the job. Once the job row exists every
failure is recorded on it; the caller always gets an ImportOutcome back.
"""
import asyncio
import hashlib
import logging
import re
import secrets
from dataclasses import dataclass
from weakref import WeakValueDictionary
from typing import List, Optional, Tuple

from tiktok_ingest.errors import (
    AccountCreationError,
    DuplicateAccountError,
    DuplicateImportError,
    IncompleteVideoDataError,
    IngestError,
    UserCreationError,
    UsernameExhaustedError,
)
from tiktok_ingest.extractors.base import BaseExtractor, VideoRecord
from tiktok_ingest.models import AppUser, CreatorAccount, IMPORT_CATEGORY, ImportStatus, Post
from tiktok_ingest.services.media_transfer import MediaTransfer
from tiktok_ingest.services.storage import Storage

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 60
IMPORT_EMAIL_DOMAIN = "tiktok-import.local"
USER_LINK_ATTEMPTS = 3
_HASHTAG_RE = re.compile(r"#(\w+)")


@dataclass
class UserSummary:
    id: str
    username: str
    display_name: str


@dataclass
class PostSummary:
    id: str
    title: str
    video_url: str


@dataclass
class ImportOutcome:
    success: bool
    message: str
    account_created: Optional[bool] = None
    post_created: Optional[bool] = None
    duplicate: bool = False
    user: Optional[UserSummary] = None
    post: Optional[PostSummary] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


def extract_hashtags(caption: Optional[str]) -> List[str]:
    """``#word`` tokens in order of appearance, without the ``#``."""
    if not caption:
        return []
    return _HASHTAG_RE.findall(caption)


def fallback_content(handle: str) -> str:
    return f"Video by @{handle}"


def build_title(caption: Optional[str], handle: str) -> str:
    """First caption line, cut to 60 characters with ``...`` when cut."""
    caption = (caption or "").strip()
    if not caption:
        return fallback_content(handle)
    first_line = caption.splitlines()[0].strip()
    if len(first_line) > TITLE_MAX_LENGTH:
        return f"{first_line[:TITLE_MAX_LENGTH]}..."
    return first_line


def hash_password(password: str) -> str:
    salt = secrets.token_hex(8)
    digest = hashlib.sha256(f"{salt}{password}".encode()).hexdigest()
    return f"sha256${salt}${digest}"


class ImportService:
    """Orchestrates one TikTok import per call."""

    def __init__(
        self,
        extractor: BaseExtractor,
        storage: Storage,
        media_transfer: MediaTransfer,
        max_username_attempts: int = 1000,
    ):
        self.extractor = extractor
        self.storage = storage
        self.media_transfer = media_transfer
        self.max_username_attempts = max(1, int(max_username_attempts))
        self._user_locks: "WeakValueDictionary[str, asyncio.Lock]" = WeakValueDictionary()

    async def import_from_url(self, url: str) -> ImportOutcome:
        logger.info("Starting TikTok import for URL: %s", url)
        job = None
        try:
            # Step 1: extract
            record = await self.extractor.extract_by_url(url)
            self._require_natural_keys(record)
            handle = record.creator.handle
            logger.info("Extracted video data for @%s - ID: %s", handle, record.external_id)

            # Step 2: dedup
            if await self.storage.find_import_by_external_id(record.external_id):
                return self._duplicate_outcome(record.external_id)

            # Step 3: creator account
            account, account_created = await self._resolve_account(record)

            # Step 4: import ledger row
            try:
                job = await self.storage.create_import(
                    creator_account_id=account.id,
                    external_video_id=record.external_id,
                    source_url=url,
                    status=ImportStatus.PROCESSING,
                )
            except DuplicateImportError:
                logger.info("Concurrent import of %s detected; treating as duplicate", record.external_id)
                return self._duplicate_outcome(record.external_id)

            # Step 5: media
            logger.info("Downloading and uploading video %s", record.external_id)
            media_url = await self.media_transfer.transfer(record)

            # Step 6: app user
            user, user_created = await self._resolve_user(record, account)
            logger.info("User account ready: %s (%s, created=%s)", user.username, user.id, user_created)

            # Step 7: post
            post = await self._create_post(record, user, media_url)

            # Step 8: close the ledger row
            await self.storage.update_import(
                job.id,
                status=ImportStatus.COMPLETED,
                resulting_post_id=post.id,
                error_message=None,
            )
        except Exception as exc:
            return await self._failure_outcome(exc, job)

        logger.info("TikTok import completed: @%s video %s -> post %s", handle, record.external_id, post.id)
        return ImportOutcome(
            success=True,
            message=f"Successfully imported video from @{handle}",
            account_created=account_created,
            post_created=True,
            user=UserSummary(id=user.id, username=user.username, display_name=user.display_name),
            post=PostSummary(id=post.id, title=post.title or "", video_url=media_url),
        )

    async def synthesize_username(self, base: Optional[str]) -> str:
        """Return ``base``, or ``base_<n>`` with the smallest free n."""
        base = (base or "").strip() or f"tiktok_{secrets.token_hex(4)}"
        candidate = base
        for n in range(1, self.max_username_attempts + 1):
            if await self.storage.find_user_by_username(candidate) is None:
                return candidate
            candidate = f"{base}_{n}"
        raise UsernameExhaustedError(
            f"No free username derived from {base!r} after {self.max_username_attempts} attempts",
            details={"base": base},
        )

    @staticmethod
    def _require_natural_keys(record: VideoRecord) -> None:
        if not record.creator.handle:
            raise IncompleteVideoDataError("Could not extract TikTok user information")
        if not record.external_id:
            raise IncompleteVideoDataError("Could not extract TikTok video ID")

    async def _resolve_account(self, record: VideoRecord) -> Tuple[CreatorAccount, bool]:
        creator = record.creator
        account = await self.storage.find_account_by_handle(creator.handle)
        if account is None:
            logger.info("Creating new creator account for @%s", creator.handle)
            try:
                account = await self.storage.create_account(
                    handle=creator.handle,
                    external_user_id=creator.external_user_id,
                    display_name=creator.display_name or creator.handle,
                    avatar_url=creator.avatar_url,
                    verified=creator.verified,
                    **self._counter_fields(record),
                )
                return account, True
            except DuplicateAccountError:
                account = await self.storage.find_account_by_handle(creator.handle)
                if account is None:
                    raise AccountCreationError(f"Creator account @{creator.handle} vanished after duplicate insert")
                logger.info("Creator account @%s was created concurrently; reusing it", creator.handle)

        logger.info("Using existing creator account for @%s", creator.handle)
        updates = {
            "display_name": creator.display_name or account.display_name,
            "avatar_url": creator.avatar_url or account.avatar_url,
            "verified": creator.verified,
        }
        updates.update(self._counter_fields(record))
        updated = await self.storage.update_account(account.id, **updates)
        return updated or account, False

    @staticmethod
    def _counter_fields(record: VideoRecord) -> dict:
        stats = record.creator.stats
        if stats is None:
            return {}
        return {
            "follower_count": stats.follower_count,
            "following_count": stats.following_count,
            "likes_count": stats.likes_count,
            "video_count": stats.video_count,
        }

    async def _resolve_user(self, record: VideoRecord, account: CreatorAccount) -> Tuple[AppUser, bool]:
        """Reuse the account's linked user, or create one and link it.

        Imports in this process are serialized per handle. Across processes the
        link is a compare-and-set on ``app_user_id``; a loser drops the user it
        created and reuses the winner's.
        """
        lock = self._user_locks.get(account.handle)
        if lock is None:
            lock = asyncio.Lock()
            self._user_locks[account.handle] = lock

        async with lock:
            linked_id = await self._current_link(account)
            for _ in range(USER_LINK_ATTEMPTS):
                if linked_id:
                    user = await self.storage.find_user_by_id(linked_id)
                    if user is not None:
                        return user, False
                    logger.warning(
                        "Linked user %s for @%s not found; creating a new one",
                        linked_id,
                        account.handle,
                    )

                try:
                    user = await self._create_app_user(record)
                except UsernameExhaustedError:
                    raise
                except UserCreationError as exc:
                    logger.info("User creation for @%s collided (%s); re-reading account", account.handle, exc)
                    linked_id = await self._current_link(account)
                    continue

                if await self.storage.link_account_to_user(account.id, user.id, expected_user_id=linked_id):
                    return user, True

                logger.info("Another import linked a user to @%s first; dropping %s", account.handle, user.username)
                await self.storage.delete_user(user.id)
                linked_id = await self._current_link(account)

        raise UserCreationError(
            f"Could not link an app user to @{account.handle} after {USER_LINK_ATTEMPTS} attempts",
            details={"account_id": account.id},
        )

    async def _current_link(self, account: CreatorAccount) -> Optional[str]:
        fresh = await self.storage.find_account_by_handle(account.handle)
        return fresh.app_user_id if fresh is not None else None

    async def _create_app_user(self, record: VideoRecord) -> AppUser:
        creator = record.creator
        username = await self.synthesize_username(creator.handle)
        logger.info("Creating app user %s for @%s", username, creator.handle)
        user = await self.storage.create_user(
            username=username,
            email=f"{username}@{IMPORT_EMAIL_DOMAIN}",
            password_hash=hash_password(secrets.token_hex(16)),
            first_name=creator.display_name or creator.handle or "TikTok User",
            last_name="",
            profile_image=creator.avatar_url or None,
            bio=f"TikTok creator @{creator.handle}",
        )
        if user is None or not user.id:
            raise UserCreationError("Failed to create user - no user data returned")
        return user

    async def _create_post(self, record: VideoRecord, user: AppUser, media_url: str) -> Post:
        handle = record.creator.handle
        return await self.storage.create_post(
            user_id=user.id,
            type="video",
            content=record.caption or fallback_content(handle),
            title=build_title(record.caption, handle),
            description=record.caption or None,
            media_urls=[media_url],
            hashtags=extract_hashtags(record.caption),
            category=IMPORT_CATEGORY,
            visibility="public",
        )

    @staticmethod
    def _duplicate_outcome(external_id: str) -> ImportOutcome:
        error = DuplicateImportError(external_id)
        logger.info(error.message)
        return ImportOutcome(
            success=False,
            message=error.message,
            duplicate=True,
            error="Video already exists",
            error_code=error.code,
        )

    async def _failure_outcome(self, exc: Exception, job) -> ImportOutcome:
        if isinstance(exc, IngestError):
            logger.warning("TikTok import failed (%s): %s", exc.code, exc)
            error_message, error_code = exc.message, exc.code
        else:
            logger.exception("TikTok import failed unexpectedly")
            error_message, error_code = f"Unexpected error: {exc}", "UNEXPECTED_ERROR"

        if job is not None:
            try:
                await self.storage.update_import(
                    job.id,
                    status=ImportStatus.FAILED,
                    error_message=error_message,
                )
            except Exception:
                logger.exception("Could not mark import %s as failed", job.id)

        return ImportOutcome(
            success=False,
            message=f"Failed to import TikTok video: {error_message}",
            error=error_message,
            error_code=error_code,
        )
