from dropboxstore.composer import StoreComposer
from dropboxstore.config import Config
from dropboxstore.exceptions import (
    AppendError,
    DropboxStoreError,
    FinishError,
    MetadataSerializationError,
    MissingMetadataError,
    SessionStartError,
    UploadNotFoundError,
)
from dropboxstore.info import UploadInfo
from dropboxstore.metadata import MetadataStore
from dropboxstore.session import DropboxSession
from dropboxstore.store import DropboxStore

__all__ = [
    "AppendError",
    "Config",
    "DropboxSession",
    "DropboxStore",
    "DropboxStoreError",
    "FinishError",
    "MetadataSerializationError",
    "MetadataStore",
    "MissingMetadataError",
    "SessionStartError",
    "StoreComposer",
    "UploadInfo",
    "UploadNotFoundError",
]
