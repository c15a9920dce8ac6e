"""アダプタ設定の既定値解決。

各アダプタの設定は frozen な pydantic モデルで、全フィールドの既定値は
None（＝未設定）。モジュールごとに不変の既定設定を持ち、
resolve_options() で未設定フィールドだけを埋めた新しい設定を作る。

None のみを「未設定」とみなす。0 や False を明示した場合はその値を尊重し、
不正な値はモデルのフィールド制約で拒否する。
"""

from typing import TypeVar

from pydantic import BaseModel

OptionsT = TypeVar("OptionsT", bound=BaseModel)


def resolve_options(options: OptionsT | None, defaults: OptionsT) -> OptionsT:
    """未設定のフィールドを defaults で埋めた新しい設定を返す。

    引数はどちらも変更しない。

    Raises:
        TypeError: options と defaults の型が異なる場合
    """
    if options is None:
        return defaults
    if type(options) is not type(defaults):
        raise TypeError(
            f"Expected {type(defaults).__name__}, got {type(options).__name__}"
        )
    updates = {
        name: getattr(defaults, name)
        for name in type(options).model_fields
        if getattr(options, name) is None
    }
    return options.model_copy(update=updates)
