"""全アダプタ共通の入力検証。

ストアの各操作はエンジンに触れる前に、最初にここの関数を呼び出す。
検証エラーはエンジンに一切の副作用を残さない。
"""

from typing import Any

from kvstore.errors import EmptyKeyError, NilValueError
from kvstore.interfaces.store import Ref


def check_key(key: str) -> None:
    """キーが空でないことを検証する。"""
    if not isinstance(key, str) or key == "":
        raise EmptyKeyError("The passed key must be a non-empty string")


def check_key_and_value(key: str, value: Any) -> None:
    """キーと書き込み値を検証する。"""
    check_key(key)
    if value is None:
        raise NilValueError("The passed value is None, which is not allowed")


def check_key_and_target(key: str, ref: Ref[Any]) -> None:
    """キーと読み出し先を検証する。

    ref は型を指定して生成された Ref でなければならない。
    """
    check_key(key)
    if ref is None:
        raise NilValueError("The passed target is None, which is not allowed")
    if not isinstance(ref, Ref):
        raise NilValueError(
            f"The passed target must be a Ref, got {type(ref).__name__}"
        )
    if ref.type is None:
        raise NilValueError("The passed Ref has no target type")
