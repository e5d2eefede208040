"""Tests for libs.safe_io.serialization module."""

import logging
import os
import shutil
import stat
from pathlib import Path

import pytest

from libs.safe_io.exceptions import DeserializationError, PartialWriteError
from libs.safe_io.serialization import (
    JsonSerializer,
    PickleSerializer,
    Serializer,
    get_serializer,
    unsafe_load,
    unsafe_store,
)


class TestSerializers:
    """Tests for the pickle and JSON serializers."""

    def test_pickle_keeps_python_types(self, tmp_path: Path) -> None:
        path = tmp_path / "obj.pkl"
        value = {"when": (2025, 12, 11), "tags": {"a", "b"}}

        PickleSerializer().store(value, path)

        assert PickleSerializer().load(path) == value

    def test_json_output_is_sorted(self, tmp_path: Path) -> None:
        path = tmp_path / "obj.json"

        JsonSerializer(indent=None).store({"b": 1, "a": 2}, path)

        assert path.read_text() == '{"a": 2, "b": 1}'

    def test_store_creates_parent_directories(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "dir" / "obj.json"

        JsonSerializer().store([1], path)

        assert JsonSerializer().load(path) == [1]

    def test_store_leaves_no_temp_files(self, tmp_path: Path) -> None:
        PickleSerializer().store(1, tmp_path / "obj.pkl")

        assert [p.name for p in tmp_path.iterdir()] == ["obj.pkl"]

    def test_failed_write_cleans_up_and_keeps_target(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "obj.json"
        path.write_text('"original"')

        def broken_fsync(fd: int) -> None:
            raise OSError("I/O error")

        monkeypatch.setattr(os, "fsync", broken_fsync)

        with pytest.raises(PartialWriteError, match="I/O error"):
            JsonSerializer().store("new", path)

        assert path.read_text() == '"original"'
        assert [p.name for p in tmp_path.iterdir()] == ["obj.json"]

    def test_failed_rename_cleans_up_and_keeps_target(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "obj.pkl"
        PickleSerializer().store("original", path)

        def broken_move(*args, **kwargs):
            raise OSError("cross-device link")

        monkeypatch.setattr(shutil, "move", broken_move)

        with pytest.raises(PartialWriteError, match="cross-device link"):
            PickleSerializer().store("new", path)

        assert PickleSerializer().load(path) == "original"
        assert [p.name for p in tmp_path.iterdir()] == ["obj.pkl"]

    @pytest.mark.parametrize("mode", [0o640, 0o604, 0o755])
    def test_overwrite_keeps_permission_bits(self, tmp_path: Path, mode: int) -> None:
        path = tmp_path / "obj.json"
        JsonSerializer().store("old", path)
        path.chmod(mode)

        JsonSerializer().store("new", path)

        assert stat.S_IMODE(path.stat().st_mode) == mode
        assert JsonSerializer().load(path) == "new"

    def test_large_payload_is_written_completely(self, tmp_path: Path) -> None:
        path = tmp_path / "blob.pkl"
        payload = os.urandom(8 * 1024 * 1024)

        PickleSerializer().store(payload, path)

        assert PickleSerializer().load(path) == payload

    @pytest.mark.parametrize("serializer", [PickleSerializer(), JsonSerializer()])
    def test_load_missing_file(self, serializer: Serializer, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            serializer.load(tmp_path / "missing")

    @pytest.mark.parametrize("serializer", [PickleSerializer(), JsonSerializer()])
    def test_load_corrupt_file(self, serializer: Serializer, tmp_path: Path) -> None:
        path = tmp_path / "corrupt"
        path.write_bytes(b"\xff\x00 not a valid payload {")

        with pytest.raises(DeserializationError) as exc_info:
            serializer.load(path)

        assert exc_info.value.path == path

    def test_serializers_satisfy_protocol(self) -> None:
        assert isinstance(PickleSerializer(), Serializer)
        assert isinstance(JsonSerializer(), Serializer)


class TestGetSerializer:
    """Tests for get_serializer."""

    def test_default_is_pickle(self) -> None:
        assert isinstance(get_serializer(), PickleSerializer)

    def test_default_follows_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SAFEIO_DEFAULT_FORMAT", "json")

        assert isinstance(get_serializer(), JsonSerializer)

    def test_unknown_format(self) -> None:
        with pytest.raises(ValueError, match="Unknown serialization format 'yaml'"):
            get_serializer("yaml")


class TestUnsafeHelpers:
    """Tests for unsafe_store / unsafe_load."""

    def test_unsafe_store_overwrites_with_warning(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        path = tmp_path / "obj.pkl"
        PickleSerializer().store("old", path)

        with caplog.at_level(logging.WARNING):
            assert unsafe_store("new", path) == path

        assert PickleSerializer().load(path) == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["obj.pkl"]
        assert caplog.messages == [
            "`unsafe_store` may overwrite existing files. Use `protected_store` instead."
        ]

    def test_unsafe_load_warns_unless_quiet(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        path = tmp_path / "obj.json"
        JsonSerializer().store([1, 2], path)

        with caplog.at_level(logging.WARNING):
            assert unsafe_load(path, JsonSerializer()) == [1, 2]
            assert unsafe_load(path, JsonSerializer(), quiet=True) == [1, 2]

        assert caplog.messages == [
            "`unsafe_load` could overwrite existing variables. Use `protected_load` instead."
        ]
