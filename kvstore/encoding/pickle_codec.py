"""pickle Codec。

Python ネイティブのバイナリ形式。内部フィールドを含む全フィールドを保持する。
pickle は任意コードを実行し得るため、信頼できるエンジンでのみ使うこと。
"""

import pickle
import types
import typing
from typing import Any

from kvstore.errors import DeserializationError, SerializationError
from kvstore.interfaces.codec import Codec
from kvstore.interfaces.store import Ref


def _matches(obj: Any, type_: Any) -> bool:
    """obj が type_ の外形（コンテナ種別・クラス）に一致するか判定する。"""
    if type_ is Any or type_ is object:
        return True
    origin = typing.get_origin(type_)
    if origin is typing.Union or origin is types.UnionType:
        return any(_matches(obj, arg) for arg in typing.get_args(type_))
    if origin is None:
        origin = type_
    if not isinstance(origin, type):
        # Literal や TypeVar などは検証しない
        return True
    return isinstance(obj, origin)


class PickleCodec(Codec):
    """pickle による Codec。"""

    def marshal(self, value: Any) -> bytes:
        if value is None:
            raise SerializationError("Cannot marshal None")
        try:
            return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        except (pickle.PicklingError, TypeError, AttributeError) as exc:
            raise SerializationError(
                f"Type {type(value).__name__} cannot be pickled: {exc}"
            ) from exc

    def unmarshal(self, data: bytes, ref: Ref[Any]) -> None:
        # 壊れたオペコードは TypeError なども送出し得るため全て変換する
        try:
            obj = pickle.loads(data)
        except Exception as exc:
            raise DeserializationError(f"Invalid pickle data: {exc}") from exc
        if not _matches(obj, ref.type):
            raise DeserializationError(
                f"Stored {type(obj).__name__} does not match {ref.type!r}"
            )
        ref.value = obj


PICKLE = PickleCodec()
