"""JSON Codec。

外部から見えるフィールドのみを保持する。dataclass の先頭がアンダースコアの
フィールドと pydantic の private 属性は直列化されず、復元時には既定値に戻る。
復元は pydantic の TypeAdapter で Ref.type に合わせて検証する。
"""

import dataclasses
import json
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, PydanticUserError, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from kvstore.errors import DeserializationError, SerializationError
from kvstore.interfaces.codec import Codec
from kvstore.interfaces.store import Ref


@lru_cache(maxsize=256)
def _adapter(type_: Any) -> TypeAdapter:
    return TypeAdapter(type_)


def _to_plain(value: Any) -> Any:
    """値を json.dumps 可能な構造に変換する。内部フィールドは落とす。"""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: _to_plain(getattr(value, f.name))
            for f in dataclasses.fields(value)
            if not f.name.startswith("_")
        }
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    if isinstance(value, dict):
        if not all(isinstance(k, str) for k in value):
            raise SerializationError("JSON objects only support str keys")
        return {k: _to_plain(v) for k, v in value.items()}
    raise SerializationError(
        f"Type {type(value).__name__} is not supported by the JSON codec"
    )


class JsonCodec(Codec):
    """UTF-8 JSON による Codec。非ASCII文字はエスケープしない。

    復元は strict モードで行う。"1" を int に読むような暗黙の型変換はしない
    （整数を float に読むことは許す）。
    """

    def marshal(self, value: Any) -> bytes:
        if value is None:
            raise SerializationError("Cannot marshal None")
        try:
            plain = _to_plain(value)
        except (RecursionError, ValueError) as exc:
            # 循環参照または深すぎる入れ子
            raise SerializationError(
                f"Value of type {type(value).__name__} cannot be encoded: {exc}"
            ) from exc
        try:
            text = json.dumps(plain, ensure_ascii=False, allow_nan=False)
        except ValueError as exc:
            raise SerializationError(str(exc)) from exc
        return text.encode("utf-8")

    def unmarshal(self, data: bytes, ref: Ref[Any]) -> None:
        try:
            ref.value = _adapter(ref.type).validate_json(data, strict=True)
        except PydanticValidationError as exc:
            raise DeserializationError(
                f"Stored value does not match {ref.type!r}: {exc}"
            ) from exc
        except PydanticUserError as exc:
            raise DeserializationError(
                f"Unsupported target type {ref.type!r}: {exc}"
            ) from exc


JSON = JsonCodec()
