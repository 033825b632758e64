"""
Exception taxonomy for extraction, media transfer and import.

Every error carries a stable ``code`` so the HTTP layer and the import ledger
can report it without string matching.
"""
from typing import Any, Dict, Optional


class IngestError(Exception):
    """Base class for all ingestion errors"""

    default_code = "INGEST_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


# Extraction

class InvalidUrlError(IngestError):
    """The URL does not look like a TikTok video link"""
    default_code = "INVALID_URL"


class ExtractionError(IngestError):
    """No usable result could be extracted from a listing page"""
    default_code = "EXTRACTION_FAILED"


class IncompleteVideoDataError(ExtractionError):
    """Extracted video lacks a required natural key (handle or id)"""
    default_code = "INCOMPLETE_VIDEO_DATA"


class PageDataError(IngestError):
    """The embedded page-state JSON is missing, malformed or lacks the video detail"""
    default_code = "PAGE_DATA_MISSING"


class BrowserLaunchError(IngestError):
    """The headless browser could not be started"""
    default_code = "BROWSER_LAUNCH_FAILED"


class BrowserNotInstalledError(BrowserLaunchError):
    default_code = "BROWSER_NOT_INSTALLED"


class BrowserPermissionError(BrowserLaunchError):
    default_code = "BROWSER_PERMISSION_DENIED"


class BrowserDependenciesError(BrowserLaunchError):
    default_code = "BROWSER_MISSING_LIBRARIES"


# Media transfer

class MediaTransferError(IngestError):
    default_code = "MEDIA_TRANSFER_FAILED"


class NoSourceMediaError(MediaTransferError):
    default_code = "NO_SOURCE_MEDIA"


class DownloadError(MediaTransferError):
    default_code = "DOWNLOAD_FAILED"


class UploadError(MediaTransferError):
    default_code = "UPLOAD_FAILED"


# Import

class DuplicateImportError(IngestError):
    """The video already has an import job; a no-op rather than a failure"""
    default_code = "DUPLICATE_IMPORT"

    def __init__(self, external_video_id: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Video {external_video_id} has already been imported", details=details)
        self.external_video_id = external_video_id


class AccountCreationError(IngestError):
    default_code = "ACCOUNT_CREATION_FAILED"


class DuplicateAccountError(AccountCreationError):
    """Another writer created the same handle first"""
    default_code = "DUPLICATE_ACCOUNT"


class UserCreationError(IngestError):
    default_code = "USER_CREATION_FAILED"


class UsernameExhaustedError(UserCreationError):
    default_code = "USERNAME_EXHAUSTED"


class PostCreationError(IngestError):
    default_code = "POST_CREATION_FAILED"
