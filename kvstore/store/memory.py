"""インメモリ Store 実装。

プロセス内の dict をロックで保護する。永続化はしない。
"""

import threading

from pydantic import BaseModel, ConfigDict

from kvstore.encoding.json_codec import JSON
from kvstore.interfaces.codec import Codec
from kvstore.interfaces.engine import Engine
from kvstore.options import resolve_options
from kvstore.store.engine_store import EngineStore


class MemoryOptions(BaseModel):
    """MemoryStore の設定。"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    # 省略時は JSON
    codec: Codec | None = None


DEFAULT_MEMORY_OPTIONS = MemoryOptions(codec=JSON)


class MemoryEngine(Engine):
    """dict + Lock によるエンジン。"""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, data: bytes) -> None:
        with self._lock:
            self._data[key] = data

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def close(self) -> None:
        with self._lock:
            self._data.clear()


class MemoryStore(EngineStore):
    """インメモリ Store。"""

    def __init__(self, options: MemoryOptions | None = None) -> None:
        options = resolve_options(options, DEFAULT_MEMORY_OPTIONS)
        super().__init__(MemoryEngine(), options.codec)
