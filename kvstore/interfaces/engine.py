"""エンジンの抽象インターフェース。

エンジンはバイト列のみを扱う。直列化と入力検証は EngineStore の責務。
スレッド安全性はエンジン側で保証すること（ロック、トランザクション、
またはスレッド安全なデータ構造のいずれでもよい）。
"""

from abc import ABC, abstractmethod


class Engine(ABC):
    """バイト列レベルのキー・バリューエンジン。"""

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """キーのバイト列を返す。存在しない場合は None。"""
        ...

    @abstractmethod
    def set(self, key: str, data: bytes) -> None:
        """バイト列を格納する（上書き）。"""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """キーを削除する。存在しない場合は何もしない。"""
        ...

    @abstractmethod
    def close(self) -> None:
        """ハンドルを解放する。"""
        ...
