from typing import BinaryIO, Optional, Protocol, runtime_checkable

from dropboxstore.info import UploadInfo


@runtime_checkable
class DataStore(Protocol):
    async def new_upload(self, info: UploadInfo) -> str: ...

    async def write_chunk(self, upload_id: str, offset: int, src: BinaryIO) -> int: ...

    async def get_info(self, upload_id: str) -> UploadInfo: ...


@runtime_checkable
class TerminaterDataStore(Protocol):
    async def terminate(self, upload_id: str) -> None: ...


@runtime_checkable
class FinisherDataStore(Protocol):
    async def finish_upload(self, upload_id: str) -> None: ...


class StoreComposer:
    """Tells the upload server which store handles each lifecycle event."""

    def __init__(self):
        self.core: Optional[DataStore] = None
        self.terminater: Optional[TerminaterDataStore] = None
        self.finisher: Optional[FinisherDataStore] = None

    @property
    def uses_core(self) -> bool:
        return self.core is not None

    @property
    def uses_terminater(self) -> bool:
        return self.terminater is not None

    @property
    def uses_finisher(self) -> bool:
        return self.finisher is not None

    def use_core(self, store: DataStore) -> None:
        _require(store, DataStore, "core")
        self.core = store

    def use_terminater(self, store: TerminaterDataStore) -> None:
        _require(store, TerminaterDataStore, "terminater")
        self.terminater = store

    def use_finisher(self, store: FinisherDataStore) -> None:
        _require(store, FinisherDataStore, "finisher")
        self.finisher = store

    def capabilities(self) -> list[str]:
        names = []
        if self.uses_core:
            names.append("core")
        if self.uses_terminater:
            names.append("terminater")
        if self.uses_finisher:
            names.append("finisher")
        return names


def _require(store, protocol, capability: str) -> None:
    if not isinstance(store, protocol):
        raise TypeError(
            f"{type(store).__name__} does not implement the {capability} capability"
        )
