"""ストア契約の抽象インターフェース。

アプリケーションコードはこのインターフェースにのみ依存する。
エンジン（SQLite, キャッシュ, リモートKVサービス等）を差し替えても
呼び出し側のコードは変わらない。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Ref(Generic[T]):
    """Store.get の読み出し先。

    Go のポインタ引数に相当する。期待する型を指定して生成し、
    get 成功後に value へ復元結果が入る。

    例:
        ref = Ref(Foo)
        if store.get("user1", ref):
            print(ref.value.bar)
    """

    def __init__(self, type_: type[T] | Any) -> None:
        self.type = type_
        self.value: T | None = None

    def __repr__(self) -> str:
        return f"Ref({self.type!r}, value={self.value!r})"


class Store(ABC):
    """キー・バリューストアの抽象インターフェース。

    状態は Open と Closed の2つのみ。close() による Open→Closed の
    一方向遷移以外の操作は Open 状態でのみ有効。

    set / get / delete は複数スレッドから同時に呼び出してよい。
    close() は他の操作と並行して呼び出してはならない。
    """

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """値を Codec で直列化してキーに格納する。既存の値は上書き。

        Raises:
            EmptyKeyError: key が空の場合
            NilValueError: value が None の場合
            SerializationError: 直列化に失敗した場合
        """
        ...

    @abstractmethod
    def get(self, key: str, ref: Ref[Any]) -> bool:
        """キーの値を取得し ref.value に復元する。

        キーが存在しない場合は False を返す（エラーではない）。

        Raises:
            EmptyKeyError: key が空の場合
            NilValueError: ref が None / 型なし / Ref 以外の場合
            DeserializationError: 復元に失敗した場合
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """キーを削除する。存在しない場合もエラーにしない。"""
        ...

    @abstractmethod
    def close(self) -> None:
        """エンジンのハンドルを解放する。以降の操作は未定義。"""
        ...

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
