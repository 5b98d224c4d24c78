from dataclasses import dataclass, field, replace
from typing import Any, Optional

from dropboxstore.exceptions import MetadataSerializationError

TOKEN_KEY = "token"
PATH_KEY = "path"


@dataclass
class UploadInfo:
    id: str
    offset: int = 0
    metadata: dict[str, str] = field(default_factory=dict)
    size: Optional[int] = None

    @property
    def token(self) -> Optional[str]:
        return self.metadata.get(TOKEN_KEY)

    @property
    def path(self) -> Optional[str]:
        return self.metadata.get(PATH_KEY)

    def without_token(self) -> "UploadInfo":
        metadata = {k: v for k, v in self.metadata.items() if k != TOKEN_KEY}
        return replace(self, metadata=metadata)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "offset": self.offset,
            "metadata": dict(self.metadata),
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "UploadInfo":
        if not isinstance(data, dict):
            raise MetadataSerializationError(
                f"Upload record must be a JSON object, got {type(data).__name__}"
            )

        upload_id = data.get("id")
        if not isinstance(upload_id, str) or not upload_id:
            raise MetadataSerializationError("Upload record has no string 'id'")

        offset = data.get("offset", 0)
        if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
            raise MetadataSerializationError(
                f"Upload record {upload_id} has an invalid offset: {offset!r}"
            )

        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in metadata.items()
        ):
            raise MetadataSerializationError(
                f"Upload record {upload_id} metadata must map strings to strings"
            )

        size = data.get("size")
        if size is not None and (isinstance(size, bool) or not isinstance(size, int)):
            raise MetadataSerializationError(
                f"Upload record {upload_id} has an invalid size: {size!r}"
            )

        return cls(id=upload_id, offset=offset, metadata=dict(metadata), size=size)
