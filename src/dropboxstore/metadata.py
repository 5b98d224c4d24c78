import json
import os
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os

from dropboxstore.exceptions import MetadataSerializationError, UploadNotFoundError
from dropboxstore.info import UploadInfo

DEFAULT_FILE_MODE = 0o664
INFO_SUFFIX = ".info"

_chmod = aiofiles.os.wrap(os.chmod)


def _is_valid_id(upload_id: str) -> bool:
    if not upload_id or upload_id in (".", ".."):
        return False
    return "/" not in upload_id and "\\" not in upload_id and "\x00" not in upload_id


class MetadataStore:
    """One ``<id>.info`` JSON file per upload, replaced wholesale on every write."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def info_path(self, upload_id: str) -> Path:
        return self.directory / f"{upload_id}{INFO_SUFFIX}"

    async def exists(self, upload_id: str) -> bool:
        if not _is_valid_id(upload_id):
            return False
        return await aiofiles.os.path.exists(self.info_path(upload_id))

    async def read(self, upload_id: str) -> UploadInfo:
        if not _is_valid_id(upload_id):
            raise UploadNotFoundError(upload_id)

        try:
            async with aiofiles.open(self.info_path(upload_id), "rb") as f:
                content = await f.read()
        except FileNotFoundError as e:
            raise UploadNotFoundError(upload_id) from e

        try:
            data = json.loads(content)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MetadataSerializationError(
                f"Malformed upload record for {upload_id}: {e}"
            ) from e

        return UploadInfo.from_dict(data)

    async def write(self, info: UploadInfo) -> None:
        if not _is_valid_id(info.id):
            raise ValueError(f"Invalid upload id: {info.id!r}")

        await aiofiles.os.makedirs(self.directory, exist_ok=True)
        target = self.info_path(info.id)
        tmp_path = self.directory / f".{info.id}.{uuid.uuid4().hex}.tmp"

        try:
            async with aiofiles.open(tmp_path, "w") as f:
                await f.write(json.dumps(info.to_dict()))
            await _chmod(tmp_path, DEFAULT_FILE_MODE)
            await aiofiles.os.replace(tmp_path, target)
        except BaseException:
            try:
                await aiofiles.os.remove(tmp_path)
            except FileNotFoundError:
                pass
            raise

    async def delete(self, upload_id: str) -> None:
        if not _is_valid_id(upload_id):
            raise UploadNotFoundError(upload_id)

        try:
            await aiofiles.os.remove(self.info_path(upload_id))
        except FileNotFoundError as e:
            raise UploadNotFoundError(upload_id) from e
