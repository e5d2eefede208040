"""Tests for operation ID context propagation."""

import threading

import pytest

from libs.common.logging.context import (
    LogContext,
    clear_operation_id,
    generate_operation_id,
    get_operation_id,
    get_or_create_operation_id,
    set_operation_id,
)


class TestOperationID:
    """Test suite for the operation ID helpers."""

    def setup_method(self) -> None:
        clear_operation_id()

    def teardown_method(self) -> None:
        clear_operation_id()

    def test_generated_ids_are_unique_uuids(self) -> None:
        first, second = generate_operation_id(), generate_operation_id()

        assert first != second
        assert len(first) == 36

    def test_set_and_get(self) -> None:
        set_operation_id("0xa8de13fa")

        assert get_operation_id() == "0xa8de13fa"

    @pytest.mark.parametrize("value", ["", None])
    def test_empty_id_is_rejected(self, value) -> None:
        with pytest.raises(ValueError, match="Operation ID cannot be empty"):
            set_operation_id(value)

    def test_get_or_create_is_stable(self) -> None:
        operation_id = get_or_create_operation_id()

        assert get_or_create_operation_id() == operation_id
        assert get_operation_id() == operation_id

    def test_ids_do_not_leak_across_threads(self) -> None:
        set_operation_id("0x00000001")
        seen: list[str | None] = []

        thread = threading.Thread(target=lambda: seen.append(get_operation_id()))
        thread.start()
        thread.join()

        assert seen == [None]


class TestLogContext:
    """Test suite for LogContext."""

    def teardown_method(self) -> None:
        clear_operation_id()

    def test_sets_and_clears(self) -> None:
        clear_operation_id()

        with LogContext("0xa8de13fa") as operation_id:
            assert operation_id == "0xa8de13fa"
            assert get_operation_id() == "0xa8de13fa"

        assert get_operation_id() is None

    def test_generates_id_when_none_given(self) -> None:
        with LogContext() as operation_id:
            assert get_operation_id() == operation_id
            assert len(operation_id) == 36

    def test_nested_contexts_restore_outer_id(self) -> None:
        with LogContext("outer"):
            with LogContext("inner"):
                assert get_operation_id() == "inner"
            assert get_operation_id() == "outer"

    def test_restores_on_exception(self) -> None:
        set_operation_id("before")

        with pytest.raises(RuntimeError):
            with LogContext("during"):
                raise RuntimeError("boom")

        assert get_operation_id() == "before"
