import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional

import dropbox
import requests
from dropbox.exceptions import DropboxException
from dropbox.files import CommitInfo, UploadSessionCursor, WriteMode

from dropboxstore.exceptions import AppendError, FinishError, SessionStartError

ClientFactory = Callable[[str], dropbox.Dropbox]

_REMOTE_ERRORS = (DropboxException, requests.exceptions.RequestException)


def default_client_factory(token: str) -> dropbox.Dropbox:
    return dropbox.Dropbox(oauth2_access_token=token)


class DropboxSession:
    """Short-lived wrapper around the Dropbox upload-session endpoints.

    Built per operation from the token stored with the upload, so no client is
    shared between uploads. The SDK blocks, so each call runs in a worker thread.
    """

    def __init__(self, token: str, client_factory: Optional[ClientFactory] = None):
        factory = client_factory or default_client_factory
        self._client = factory(token)

    async def start(self) -> str:
        try:
            result = await asyncio.to_thread(
                self._client.files_upload_session_start, b""
            )
        except _REMOTE_ERRORS as e:
            raise SessionStartError(f"Failed to start upload session: {e}") from e
        return result.session_id

    async def append(self, session_id: str, offset: int, data: bytes) -> None:
        cursor = UploadSessionCursor(session_id=session_id, offset=offset)
        try:
            await asyncio.to_thread(
                self._client.files_upload_session_append_v2, data, cursor
            )
        except _REMOTE_ERRORS as e:
            raise AppendError(
                f"Failed to append {len(data)} bytes at offset {offset}: {e}",
                upload_id=session_id,
            ) from e

    async def finish(
        self,
        session_id: str,
        offset: int,
        path: str,
        client_modified: Optional[datetime] = None,
    ):
        if client_modified is None:
            client_modified = datetime.now(timezone.utc)
        cursor = UploadSessionCursor(session_id=session_id, offset=offset)
        commit = CommitInfo(
            path=path,
            mode=WriteMode.overwrite,
            autorename=False,
            # Dropbox expects naive UTC timestamps without microseconds
            client_modified=client_modified.astimezone(timezone.utc)
            .replace(tzinfo=None, microsecond=0),
            mute=False,
        )
        try:
            return await asyncio.to_thread(
                self._client.files_upload_session_finish, b"", cursor, commit
            )
        except _REMOTE_ERRORS as e:
            raise FinishError(
                f"Failed to commit upload session to {path}: {e}",
                upload_id=session_id,
            ) from e
