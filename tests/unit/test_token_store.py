"""Unit tests for the client token stores."""

import json
import os
import stat
from unittest.mock import patch

from aitwy.clients.token_store import FileTokenStore, MemoryTokenStore


class TestMemoryTokenStore:
    def test_save_and_clear(self):
        store = MemoryTokenStore()
        store.save("tok", {"id": "u-1"})
        assert store.get_token() == "tok"
        assert store.get_user() == {"id": "u-1"}

        store.clear()
        assert store.get_token() is None
        assert store.get_user() is None


class TestFileTokenStore:
    def test_missing_file_is_empty(self, tmp_path):
        store = FileTokenStore(tmp_path / "session.json")
        assert store.get_token() is None
        assert store.get_user() is None

    def test_save_writes_owner_only_json(self, tmp_path):
        path = tmp_path / "nested" / "session.json"
        store = FileTokenStore(path)

        store.save("tok", {"id": "u-1", "name": "Jane"})

        assert json.loads(path.read_text()) == {"token": "tok", "user": {"id": "u-1", "name": "Jane"}}
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert FileTokenStore(path).get_user()["name"] == "Jane"

    def test_save_tightens_existing_file(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{}")
        path.chmod(0o644)

        FileTokenStore(path).save("tok")

        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert FileTokenStore(path).get_token() == "tok"

    def test_save_creates_file_owner_only(self, tmp_path):
        path = tmp_path / "session.json"
        with patch("aitwy.clients.token_store.os.open", wraps=os.open) as mock_open:
            FileTokenStore(path).save("tok")

        assert mock_open.call_args.args[2] == 0o600

    def test_clear_removes_file(self, tmp_path):
        path = tmp_path / "session.json"
        store = FileTokenStore(path)
        store.save("tok")

        store.clear()
        store.clear()

        assert not path.exists()
        assert store.get_token() is None

    def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json")
        assert FileTokenStore(path).get_token() is None
