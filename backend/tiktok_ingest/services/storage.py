"""Persistent store used by the import pipeline.

``Storage`` is the capability interface the orchestrator depends on;
``SqlStorage`` backs it with SQLAlchemy. Each call runs in its own session on
a worker thread so the event loop never blocks on the database.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, sessionmaker

from tiktok_ingest.database import get_session_factory
from tiktok_ingest.errors import (
    AccountCreationError,
    DuplicateAccountError,
    DuplicateImportError,
    PostCreationError,
    UserCreationError,
)
from tiktok_ingest.models import AppUser, CreatorAccount, ImportJob, Post

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Storage(ABC):
    """Persistent store capabilities; each call is atomic."""

    @abstractmethod
    async def find_import_by_external_id(self, external_video_id: str) -> Optional[ImportJob]:
        pass

    @abstractmethod
    async def create_import(self, **fields: Any) -> ImportJob:
        """Raise DuplicateImportError when the external video id already exists."""

    @abstractmethod
    async def update_import(self, import_id: str, **fields: Any) -> Optional[ImportJob]:
        pass

    @abstractmethod
    async def list_imports(self, limit: int = 50) -> List[ImportJob]:
        pass

    @abstractmethod
    async def find_account_by_handle(self, handle: str) -> Optional[CreatorAccount]:
        pass

    @abstractmethod
    async def create_account(self, **fields: Any) -> CreatorAccount:
        """Raise DuplicateAccountError when the handle already exists."""

    @abstractmethod
    async def update_account(self, account_id: str, **fields: Any) -> Optional[CreatorAccount]:
        pass

    @abstractmethod
    async def link_account_to_user(
        self, account_id: str, user_id: str, expected_user_id: Optional[str] = None
    ) -> bool:
        """Set the account's user only if its current link is ``expected_user_id``; True when it won."""

    @abstractmethod
    async def find_user_by_id(self, user_id: str) -> Optional[AppUser]:
        pass

    @abstractmethod
    async def find_user_by_username(self, username: str) -> Optional[AppUser]:
        pass

    @abstractmethod
    async def create_user(self, **fields: Any) -> AppUser:
        pass

    @abstractmethod
    async def delete_user(self, user_id: str) -> None:
        pass

    @abstractmethod
    async def create_post(self, **fields: Any) -> Post:
        pass


class SqlStorage(Storage):
    """SQLAlchemy-backed storage"""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory

    def _session(self) -> Session:
        factory = self._session_factory or get_session_factory()
        return factory()

    async def _run(self, work: Callable[[Session], T]) -> T:
        def _call() -> T:
            db = self._session()
            try:
                return work(db)
            finally:
                db.close()

        return await asyncio.to_thread(_call)

    # Import jobs

    async def find_import_by_external_id(self, external_video_id: str) -> Optional[ImportJob]:
        return await self._run(
            lambda db: db.query(ImportJob).filter(ImportJob.external_video_id == external_video_id).first()
        )

    async def create_import(self, **fields: Any) -> ImportJob:
        def _create(db: Session) -> ImportJob:
            job = ImportJob(**fields)
            db.add(job)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise DuplicateImportError(str(fields.get("external_video_id"))) from exc
            db.refresh(job)
            return job

        return await self._run(_create)

    async def update_import(self, import_id: str, **fields: Any) -> Optional[ImportJob]:
        return await self._run(lambda db: self._update(db, ImportJob, import_id, fields))

    async def list_imports(self, limit: int = 50) -> List[ImportJob]:
        return await self._run(
            lambda db: (
                db.query(ImportJob)
                .options(joinedload(ImportJob.creator_account))
                .order_by(ImportJob.created_at.desc())
                .limit(limit)
                .all()
            )
        )

    # Creator accounts

    async def find_account_by_handle(self, handle: str) -> Optional[CreatorAccount]:
        return await self._run(
            lambda db: db.query(CreatorAccount).filter(CreatorAccount.handle == handle).first()
        )

    async def create_account(self, **fields: Any) -> CreatorAccount:
        def _create(db: Session) -> CreatorAccount:
            account = CreatorAccount(**fields)
            db.add(account)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                handle = fields.get("handle")
                if db.query(CreatorAccount.id).filter(CreatorAccount.handle == handle).first():
                    raise DuplicateAccountError(f"Creator account @{handle} already exists") from exc
                raise AccountCreationError(f"Failed to create creator account @{handle}: {exc.orig}") from exc
            db.refresh(account)
            return account

        return await self._run(_create)

    async def update_account(self, account_id: str, **fields: Any) -> Optional[CreatorAccount]:
        return await self._run(lambda db: self._update(db, CreatorAccount, account_id, fields))

    async def link_account_to_user(
        self, account_id: str, user_id: str, expected_user_id: Optional[str] = None
    ) -> bool:
        def _link(db: Session) -> bool:
            query = db.query(CreatorAccount).filter(CreatorAccount.id == account_id)
            if expected_user_id is None:
                query = query.filter(CreatorAccount.app_user_id.is_(None))
            else:
                query = query.filter(CreatorAccount.app_user_id == expected_user_id)
            updated = query.update({CreatorAccount.app_user_id: user_id}, synchronize_session=False)
            db.commit()
            return updated == 1

        return await self._run(_link)

    # Users and posts

    async def find_user_by_id(self, user_id: str) -> Optional[AppUser]:
        return await self._run(lambda db: db.query(AppUser).filter(AppUser.id == user_id).first())

    async def find_user_by_username(self, username: str) -> Optional[AppUser]:
        return await self._run(lambda db: db.query(AppUser).filter(AppUser.username == username).first())

    async def create_user(self, **fields: Any) -> AppUser:
        def _create(db: Session) -> AppUser:
            user = AppUser(**fields)
            db.add(user)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise UserCreationError(f"Failed to create user {fields.get('username')}: {exc.orig}") from exc
            db.refresh(user)
            return user

        return await self._run(_create)

    async def delete_user(self, user_id: str) -> None:
        def _delete(db: Session) -> None:
            db.query(AppUser).filter(AppUser.id == user_id).delete(synchronize_session=False)
            db.commit()

        await self._run(_delete)

    async def create_post(self, **fields: Any) -> Post:
        def _create(db: Session) -> Post:
            post = Post(**fields)
            db.add(post)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise PostCreationError(f"Failed to create post: {exc.orig}") from exc
            db.refresh(post)
            return post

        return await self._run(_create)

    @staticmethod
    def _update(db: Session, model, row_id: str, fields: dict):
        row = db.query(model).filter(model.id == row_id).first()
        if row is None:
            logger.warning("%s %s not found for update", model.__name__, row_id)
            return None
        for key, value in fields.items():
            setattr(row, key, value)
        db.commit()
        db.refresh(row)
        return row
