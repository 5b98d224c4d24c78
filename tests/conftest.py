import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dropboxstore.config import Config
from dropboxstore.session import DropboxSession
from dropboxstore.store import DropboxStore


@pytest.fixture
def temp_info_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_dropbox():
    client = MagicMock()
    client.files_upload_session_start.return_value = MagicMock(session_id="abc")
    return client


@pytest.fixture
def client_tokens():
    return []


@pytest.fixture
def make_store(temp_info_dir, mock_dropbox, client_tokens):
    def _make(chunk_size: int = 4, token: str | None = None) -> DropboxStore:
        def client_factory(token: str):
            client_tokens.append(token)
            return mock_dropbox

        config = Config(token=token, chunk_size=chunk_size, path=temp_info_dir)
        return DropboxStore(
            config,
            session_factory=lambda t: DropboxSession(t, client_factory=client_factory),
        )

    return _make


@pytest.fixture
def store(make_store):
    return make_store()
