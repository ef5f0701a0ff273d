"""Profile document sync backed by the Google Drive app data folder."""
import asyncio
import io
import json
import logging
from threading import RLock
from typing import Any, Optional

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from ..utils.constants import (
    APP_DATA_FOLDER,
    PROFILE_DOC_MIME_TYPE,
    PROFILE_DOC_PREFIX,
)
from ..utils.errors import (
    ProfileCreateError,
    ProfilePushError,
    RemotePullError,
    handle_http_error,
)
from .base import DocumentSyncClient

logger = logging.getLogger(__name__)


def _doc_file_name(doc_id: str) -> str:
    return f"{PROFILE_DOC_PREFIX}{doc_id}.json"


class DriveProfileSyncClient(DocumentSyncClient):
    """Keeps profile documents in a local cache and replicates them to Drive.

    Each document is stored as ``profile-<id>.json`` in the app data folder.
    Replication is last-writer-wins per file; Drive does the rest.
    """

    def __init__(self, drive_service: Optional[Any] = None, credentials: Optional[Any] = None) -> None:
        """
        Args:
            drive_service: A built Drive v3 service. Built from credentials when omitted.
            credentials: Google credentials used to build the service.
        """
        if drive_service is None:
            drive_service = build('drive', 'v3', credentials=credentials, cache_discovery=False)
        self.drive_service = drive_service
        self._documents: dict[str, dict[str, Any]] = {}
        self._remote_file_ids: dict[str, str] = {}
        self._pending: set[str] = set()
        self._lock = RLock()

    async def pull_from_remote(self) -> None:
        await asyncio.to_thread(self._pull)

    async def push_to_remote(self) -> None:
        await asyncio.to_thread(self._push)

    async def exists(self, doc_id: str) -> bool:
        with self._lock:
            if doc_id in self._documents:
                return True
        # Not pulled yet; the app data folder may still hold a copy
        return await asyncio.to_thread(self._fetch_remote, doc_id)

    async def create_profile_document(self, doc_id: str, name: str) -> None:
        with self._lock:
            if doc_id in self._documents:
                raise ProfileCreateError("Profile document already exists", doc_id)
            self._documents[doc_id] = {"id": doc_id, "name": name}
            self._pending.add(doc_id)
        logger.info(f"Created local profile document {doc_id}")

    def get_document(self, doc_id: str) -> Optional[dict[str, Any]]:
        """Return a copy of a locally known document."""
        with self._lock:
            doc = self._documents.get(doc_id)
            return dict(doc) if doc else None

    def _list_remote_files(self) -> list[dict[str, Any]]:
        """List every profile file in the app data folder."""
        files: list[dict[str, Any]] = []
        page_token = None
        while True:
            response = self.drive_service.files().list(
                spaces=APP_DATA_FOLDER,
                q=f"name contains '{PROFILE_DOC_PREFIX}'",
                fields='nextPageToken, files(id, name)',
                pageToken=page_token,
            ).execute()
            files.extend(response.get('files', []))
            page_token = response.get('nextPageToken')
            if not page_token:
                return files

    def _download(self, file_id: str) -> dict[str, Any]:
        content = self.drive_service.files().get_media(fileId=file_id).execute()
        return json.loads(content)

    def _fetch_remote(self, doc_id: str) -> bool:
        """Look up one profile file by name and cache it if present."""
        name = _doc_file_name(doc_id).replace("'", "\\'")
        try:
            response = self.drive_service.files().list(
                spaces=APP_DATA_FOLDER,
                q=f"name = '{name}'",
                fields='files(id, name)',
            ).execute()
            remote_files = response.get('files', [])
            if not remote_files:
                return False
            file_id = remote_files[0]['id']
            doc = self._download(file_id)
            if doc['id'] != doc_id:
                raise ValueError(f"document id {doc['id']!r} does not match file name")
        except HttpError as e:
            error = handle_http_error(e, doc_id)
            raise RemotePullError(f"Lookup failed: {error.message}", doc_id) from e
        except (ValueError, KeyError, TypeError) as e:
            raise RemotePullError(f"Lookup failed: malformed profile document ({e})", doc_id) from e

        with self._lock:
            self._remote_file_ids[doc_id] = file_id
            self._documents.setdefault(doc_id, doc)
        logger.info(f"Found remote profile document {doc_id}")
        return True

    def _pull(self) -> None:
        try:
            remote_files = self._list_remote_files()
            fetched = {}
            for remote in remote_files:
                doc = self._download(remote['id'])
                fetched[doc['id']] = (remote['id'], doc)
        except HttpError as e:
            error = handle_http_error(e)
            raise RemotePullError(f"Pull failed: {error.message}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise RemotePullError(f"Pull failed: malformed profile document ({e})") from e

        with self._lock:
            for doc_id, (file_id, doc) in fetched.items():
                self._remote_file_ids[doc_id] = file_id
                # Local edits not yet pushed win over the remote copy
                if doc_id not in self._pending:
                    self._documents[doc_id] = doc
        logger.info(f"Pulled {len(fetched)} profile document(s)")

    def _push(self) -> None:
        with self._lock:
            pending = {doc_id: dict(self._documents[doc_id]) for doc_id in self._pending}

        for doc_id, doc in pending.items():
            try:
                self._upload(doc_id, doc)
            except HttpError as e:
                error = handle_http_error(e, doc_id)
                raise ProfilePushError(f"Push failed: {error.message}", doc_id) from e
            with self._lock:
                self._pending.discard(doc_id)
        logger.info(f"Pushed {len(pending)} profile document(s)")

    def _upload(self, doc_id: str, doc: dict[str, Any]) -> None:
        payload = json.dumps(doc).encode('utf-8')
        media = MediaIoBaseUpload(io.BytesIO(payload), mimetype=PROFILE_DOC_MIME_TYPE)

        with self._lock:
            file_id = self._remote_file_ids.get(doc_id)

        if file_id:
            self.drive_service.files().update(fileId=file_id, media_body=media).execute()
            return

        created = self.drive_service.files().create(
            body={'name': _doc_file_name(doc_id), 'parents': [APP_DATA_FOLDER]},
            media_body=media,
            fields='id',
        ).execute()
        with self._lock:
            self._remote_file_ids[doc_id] = created['id']
