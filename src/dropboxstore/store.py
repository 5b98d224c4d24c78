import asyncio
import inspect
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional

from loguru import logger

from dropboxstore.composer import StoreComposer
from dropboxstore.config import Config
from dropboxstore.exceptions import (
    AppendError,
    DropboxStoreError,
    FinishError,
    MissingMetadataError,
)
from dropboxstore.info import PATH_KEY, TOKEN_KEY, UploadInfo
from dropboxstore.metadata import MetadataStore
from dropboxstore.session import DropboxSession

SessionFactory = Callable[[str], DropboxSession]


def _short(upload_id: str) -> str:
    if len(upload_id) <= 8:
        return upload_id
    return f"{upload_id[:8]}..."


async def _read(src: Any, size: int) -> bytes:
    data = src.read(size)
    if inspect.isawaitable(data):
        data = await data
    return bytes(data or b"")


class DropboxStore:
    """Upload server store that streams chunks into Dropbox upload sessions.

    Offsets and creator metadata live in ``<id>.info`` files under
    ``config.path``; the id of each upload is the Dropbox session id.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        self.config = config or Config()
        self.metadata = MetadataStore(self.config.path)
        self._session_factory = session_factory or DropboxSession
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    def use_in(self, composer: StoreComposer) -> None:
        composer.use_core(self)
        composer.use_terminater(self)
        composer.use_finisher(self)

    @asynccontextmanager
    async def _locked(self, upload_id: str):
        # Entries live only while some caller holds or waits on the lock.
        lock = self._locks.get(upload_id)
        if lock is None:
            lock = self._locks[upload_id] = asyncio.Lock()
        self._lock_users[upload_id] = self._lock_users.get(upload_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[upload_id] -= 1
            if not self._lock_users[upload_id]:
                del self._lock_users[upload_id]
                del self._locks[upload_id]

    def _token_for(self, info: UploadInfo) -> str:
        token = info.token or self.config.token
        if not token:
            raise MissingMetadataError(info.id or "<new>", TOKEN_KEY)
        return token

    async def new_upload(self, info: UploadInfo) -> str:
        session = self._session_factory(self._token_for(info))
        upload_id = await session.start()

        record = UploadInfo(
            id=upload_id, offset=0, metadata=dict(info.metadata), size=info.size
        )
        await self.metadata.write(record)
        logger.info(f"Created upload {_short(upload_id)}")
        return upload_id

    async def write_chunk(self, upload_id: str, offset: int, src: Any) -> int:
        async with self._locked(upload_id):
            info = await self.metadata.read(upload_id)
            session = self._session_factory(self._token_for(info))

            bytes_uploaded = 0
            try:
                while True:
                    chunk = await _read(src, self.config.chunk_size)
                    if not chunk:
                        break
                    await session.append(upload_id, offset, chunk)
                    offset += len(chunk)
                    bytes_uploaded += len(chunk)
                    logger.debug(
                        f"Appended {len(chunk)} bytes to {_short(upload_id)} "
                        f"(now at {offset})"
                    )
            except AppendError as e:
                logger.error(
                    f"Append to {_short(upload_id)} failed after "
                    f"{bytes_uploaded} bytes: {e}"
                )
                e.bytes_uploaded = bytes_uploaded
                raise
            except BaseException as e:
                logger.error(
                    f"Reading source for {_short(upload_id)} failed after "
                    f"{bytes_uploaded} bytes: {e!r}"
                )
                raise
            finally:
                # Acknowledged rounds are recorded whether or not the call completed.
                info.offset += bytes_uploaded
                await self.metadata.write(info)

            logger.info(
                f"Wrote {bytes_uploaded} bytes to {_short(upload_id)} "
                f"(offset {info.offset})"
            )
            return bytes_uploaded

    async def get_info(self, upload_id: str) -> UploadInfo:
        info = await self.metadata.read(upload_id)
        return info.without_token()

    async def terminate(self, upload_id: str) -> None:
        async with self._locked(upload_id):
            await self.metadata.delete(upload_id)
        logger.info(f"Terminated upload {_short(upload_id)}")

    async def finish_upload(self, upload_id: str) -> None:
        async with self._locked(upload_id):
            try:
                info = await self.metadata.read(upload_id)
                if not info.path:
                    raise MissingMetadataError(upload_id, PATH_KEY)
                session = self._session_factory(self._token_for(info))
            except (DropboxStoreError, OSError) as e:
                raise FinishError(
                    f"Cannot finish upload {upload_id}: {e}", upload_id=upload_id
                ) from e

            try:
                await session.finish(upload_id, info.offset, info.path)
            except FinishError as e:
                logger.error(f"Finish of {_short(upload_id)} failed: {e}")
                raise

        logger.info(
            f"Finished upload {_short(upload_id)}: {info.offset} bytes committed "
            f"to {info.path}"
        )
