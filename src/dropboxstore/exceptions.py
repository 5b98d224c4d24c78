from typing import Optional


class DropboxStoreError(Exception):
    pass


class SessionStartError(DropboxStoreError):
    """Dropbox refused to open an upload session. No record was written."""


class AppendError(DropboxStoreError):
    """An append round failed mid-stream.

    ``bytes_uploaded`` holds the bytes Dropbox acknowledged during the failing
    call before the error; they are already reflected in the stored offset.
    """

    def __init__(self, message: str, upload_id: str, bytes_uploaded: int = 0):
        super().__init__(message)
        self.upload_id = upload_id
        self.bytes_uploaded = bytes_uploaded


class FinishError(DropboxStoreError):
    def __init__(self, message: str, upload_id: Optional[str] = None):
        super().__init__(message)
        self.upload_id = upload_id


class UploadNotFoundError(DropboxStoreError, FileNotFoundError):
    def __init__(self, upload_id: str):
        super().__init__(f"No upload record for id: {upload_id}")
        self.upload_id = upload_id


class MetadataSerializationError(DropboxStoreError, ValueError):
    pass


class MissingMetadataError(DropboxStoreError, KeyError):
    def __init__(self, upload_id: str, key: str):
        super().__init__(f"Upload {upload_id} has no '{key}' in its metadata")
        self.upload_id = upload_id
        self.key = key

    def __str__(self) -> str:
        return self.args[0]
