"""Codec の抽象インターフェース。

値の表現（JSON, pickle 等）をストレージから切り離す。
Codec は状態を持たず、複数のストア・スレッドから共有してよい。
"""

from abc import ABC, abstractmethod
from typing import Any

from kvstore.interfaces.store import Ref


class Codec(ABC):
    """値とバイト列の双方向変換。"""

    @abstractmethod
    def marshal(self, value: Any) -> bytes:
        """値をバイト列に変換する。

        Raises:
            SerializationError: None やサポート外の型の場合
        """
        ...

    @abstractmethod
    def unmarshal(self, data: bytes, ref: Ref[Any]) -> None:
        """バイト列を ref.type に従って復元し ref.value に格納する。

        Raises:
            DeserializationError: 復元できない、または型が一致しない場合
        """
        ...
