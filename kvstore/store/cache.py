"""コストを考慮したインメモリキャッシュによる Store 実装。

容量（max_cost）を超える書き込みでは LRU 順に退避候補を選び、
アクセス頻度の推定値（Count-Min Sketch）で受け入れ可否を判定する。
新規キーの頻度が退避候補より低い場合は書き込みを拒否し、
AdmissionError を送出する。既存キーの更新は常に受け入れる。

書き込みは同期的に反映される。set が成功した直後の get は必ずヒットする。
"""

import dataclasses
import logging
import random
import threading
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import NoReturn

from pydantic import BaseModel, ConfigDict, Field

from kvstore.encoding.json_codec import JSON
from kvstore.errors import AdmissionError
from kvstore.interfaces.codec import Codec
from kvstore.interfaces.engine import Engine
from kvstore.options import resolve_options
from kvstore.store.engine_store import EngineStore

logger = logging.getLogger(__name__)


def unit_cost(data: bytes) -> int:
    """全エントリのコストを1とする既定のコスト関数。"""
    return 1


class CacheOptions(BaseModel):
    """CacheStore の設定。未設定（None）のフィールドは既定値で補う。"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    # アクセス頻度を保持するカウンタ数。最大エントリ数より多めにすると
    # 退避の精度が上がる（既定: 1000）
    num_counters: int | None = Field(default=None, ge=1)
    # キャッシュ容量。単位はコスト関数に従う（既定: 100）
    max_cost: int | None = Field(default=None, ge=1)
    # get のアクセス記録をまとめて反映するバッファサイズ（既定: 64）
    buffer_items: int | None = Field(default=None, ge=1)
    # 統計を取るか。オーバーヘッドがあるためテスト時のみ推奨（既定: False）
    metrics: bool | None = None
    # エントリのコストを返す関数（既定: unit_cost）
    cost: Callable[[bytes], int] | None = None
    # 省略時は JSON
    codec: Codec | None = None


DEFAULT_CACHE_OPTIONS = CacheOptions(
    num_counters=1000,
    max_cost=100,
    buffer_items=64,
    metrics=False,
    cost=unit_cost,
    codec=JSON,
)


@dataclass
class CacheMetrics:
    """キャッシュの統計。"""

    hits: int = 0
    misses: int = 0
    keys_added: int = 0
    keys_updated: int = 0
    keys_evicted: int = 0
    sets_rejected: int = 0

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total


class FrequencySketch:
    """4行の Count-Min Sketch によるアクセス頻度の推定。

    カウンタは 15 で飽和する。加算回数が num_counters * 10 に達すると
    全カウンタを半減させ、古いアクセスの影響を弱める。
    """

    DEPTH = 4
    MAX_COUNT = 15

    def __init__(self, num_counters: int) -> None:
        self._width = num_counters
        self._rows = [[0] * num_counters for _ in range(self.DEPTH)]
        self._seeds = [random.getrandbits(64) for _ in range(self.DEPTH)]
        self._additions = 0
        self._reset_at = num_counters * 10

    def _indexes(self, key: str):
        for row, seed in zip(self._rows, self._seeds):
            yield row, hash((seed, key)) % self._width

    def increment(self, key: str) -> None:
        for row, idx in self._indexes(key):
            if row[idx] < self.MAX_COUNT:
                row[idx] += 1
        self._additions += 1
        if self._additions >= self._reset_at:
            self._reset()

    def estimate(self, key: str) -> int:
        return min(row[idx] for row, idx in self._indexes(key))

    def _reset(self) -> None:
        for row in self._rows:
            for i in range(self._width):
                row[i] >>= 1
        self._additions = 0


class CostCache(Engine):
    """コスト上限つきのキャッシュエンジン。"""

    def __init__(
        self,
        num_counters: int,
        max_cost: int,
        buffer_items: int,
        metrics: bool = False,
        cost: Callable[[bytes], int] = unit_cost,
    ) -> None:
        self._lock = threading.Lock()
        self._items: OrderedDict[str, tuple[bytes, int]] = OrderedDict()
        self._used_cost = 0
        self._max_cost = max_cost
        self._sketch = FrequencySketch(num_counters)
        self._get_buffer: list[str] = []
        self._buffer_items = buffer_items
        self._metrics = CacheMetrics() if metrics else None
        self._cost = cost

    @property
    def used_cost(self) -> int:
        with self._lock:
            return self._used_cost

    @property
    def metrics(self) -> CacheMetrics | None:
        """統計のスナップショット。metrics=False なら None。"""
        with self._lock:
            if self._metrics is None:
                return None
            return dataclasses.replace(self._metrics)

    def _record_access(self, key: str) -> None:
        self._get_buffer.append(key)
        if len(self._get_buffer) >= self._buffer_items:
            for buffered in self._get_buffer:
                self._sketch.increment(buffered)
            self._get_buffer.clear()

    def _reject(self, key: str, reason: str) -> NoReturn:
        if self._metrics is not None:
            self._metrics.sets_rejected += 1
        logger.debug("Rejected key %r: %s", key, reason)
        raise AdmissionError(f"Key-value pair for {key!r} was not added to the cache: {reason}")

    def get(self, key: str) -> bytes | None:
        with self._lock:
            self._record_access(key)
            item = self._items.get(key)
            if item is None:
                if self._metrics is not None:
                    self._metrics.misses += 1
                return None
            self._items.move_to_end(key)
            if self._metrics is not None:
                self._metrics.hits += 1
            return item[0]

    def set(self, key: str, data: bytes) -> None:
        cost = self._cost(data)
        with self._lock:
            self._sketch.increment(key)
            if cost > self._max_cost:
                self._reject(key, f"cost {cost} exceeds max cost {self._max_cost}")

            existing = self._items.get(key)
            freed = existing[1] if existing is not None else 0
            overflow = self._used_cost - freed + cost - self._max_cost

            # LRU の古い順に退避候補を集める。確定するまで何も消さない
            victims: list[str] = []
            if overflow > 0:
                incoming = self._sketch.estimate(key)
                for victim_key, (_, victim_cost) in self._items.items():
                    if victim_key == key:
                        continue
                    if existing is None and self._sketch.estimate(victim_key) > incoming:
                        self._reject(key, "less frequently used than eviction candidates")
                    victims.append(victim_key)
                    overflow -= victim_cost
                    if overflow <= 0:
                        break

            for victim_key in victims:
                _, victim_cost = self._items.pop(victim_key)
                self._used_cost -= victim_cost
                if self._metrics is not None:
                    self._metrics.keys_evicted += 1

            if existing is not None:
                self._used_cost -= existing[1]
                if self._metrics is not None:
                    self._metrics.keys_updated += 1
            elif self._metrics is not None:
                self._metrics.keys_added += 1
            self._items[key] = (data, cost)
            self._items.move_to_end(key)
            self._used_cost += cost

    def delete(self, key: str) -> None:
        with self._lock:
            item = self._items.pop(key, None)
            if item is not None:
                self._used_cost -= item[1]

    def close(self) -> None:
        with self._lock:
            self._items.clear()
            self._get_buffer.clear()
            self._used_cost = 0


class CacheStore(EngineStore):
    """コスト考慮キャッシュによる Store。

    容量超過時の set は AdmissionError で失敗し得る。
    """

    def __init__(self, options: CacheOptions | None = None) -> None:
        options = resolve_options(options, DEFAULT_CACHE_OPTIONS)
        self._cache = CostCache(
            num_counters=options.num_counters,
            max_cost=options.max_cost,
            buffer_items=options.buffer_items,
            metrics=options.metrics,
            cost=options.cost,
        )
        super().__init__(self._cache, options.codec)
        self.options = options

    @property
    def metrics(self) -> CacheMetrics | None:
        return self._cache.metrics
