"""EngineStore のユニットテスト。

エンジンをモックに差し替え、検証・直列化・エラー伝播の順序を確認する。
"""

import sqlite3
from unittest.mock import MagicMock

import pytest

from kvstore.encoding.json_codec import JSON
from kvstore.errors import (
    DeserializationError,
    EmptyKeyError,
    NilValueError,
    SerializationError,
)
from kvstore.interfaces.engine import Engine
from kvstore.interfaces.store import Ref
from kvstore.store.engine_store import EngineStore
from kvstore.testing.conformance import Foo


@pytest.fixture
def engine():
    return MagicMock(spec=Engine)


@pytest.fixture
def store(engine):
    return EngineStore(engine, JSON)


class TestValidationBeforeEngine:
    """検証エラーはエンジンに到達しない。"""

    def test_empty_key_set(self, store, engine):
        with pytest.raises(EmptyKeyError):
            store.set("", "bar")
        engine.set.assert_not_called()

    def test_none_value_set(self, store, engine):
        with pytest.raises(NilValueError):
            store.set("foo", None)
        engine.set.assert_not_called()

    def test_empty_key_get(self, store, engine):
        with pytest.raises(EmptyKeyError):
            store.get("", Ref(str))
        engine.get.assert_not_called()

    def test_invalid_target_get(self, store, engine):
        with pytest.raises(NilValueError):
            store.get("foo", None)
        engine.get.assert_not_called()

    def test_empty_key_delete(self, store, engine):
        with pytest.raises(EmptyKeyError):
            store.delete("")
        engine.delete.assert_not_called()

    def test_serialization_error_before_engine(self, store, engine):
        with pytest.raises(SerializationError):
            store.set("foo", object())
        engine.set.assert_not_called()


class TestEngineInteraction:
    def test_set_writes_marshalled_bytes(self, store, engine):
        store.set("foo", Foo(bar="baz"))
        engine.set.assert_called_once_with("foo", JSON.marshal(Foo(bar="baz")))

    def test_get_missing_returns_false(self, store, engine):
        engine.get.return_value = None
        ref = Ref(Foo)
        assert store.get("foo", ref) is False
        assert ref.value is None

    def test_get_unmarshals_into_ref(self, store, engine):
        engine.get.return_value = b'{"bar": "baz"}'
        ref = Ref(Foo)
        assert store.get("foo", ref) is True
        assert ref.value == Foo(bar="baz")

    def test_deserialization_error_is_surfaced(self, store, engine):
        engine.get.return_value = b"corrupt"
        with pytest.raises(DeserializationError):
            store.get("foo", Ref(Foo))

    def test_engine_errors_pass_through_unmodified(self, store, engine):
        """エンジンの例外はラップせずにそのまま伝播する。"""
        error = sqlite3.OperationalError("disk I/O error")
        engine.set.side_effect = error
        with pytest.raises(sqlite3.OperationalError) as exc_info:
            store.set("foo", "bar")
        assert exc_info.value is error

    def test_close_errors_are_surfaced(self, store, engine):
        engine.close.side_effect = OSError("close failed")
        with pytest.raises(OSError):
            store.close()

    def test_context_manager_closes(self, store, engine):
        with store:
            pass
        engine.close.assert_called_once_with()
