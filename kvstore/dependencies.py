"""DI用ファクトリ関数。

kvstore/ 直下に配置することで、service/ から store/ への
直接依存を避けつつ、FastAPI の Depends() で注入できる。

エンジンは環境変数で選択する:
  KVSTORE_ENGINE: "memory"（既定）または "sqlite"
  KVSTORE_DB_PATH: sqlite の場合のDBファイルパス（既定: "data/kv.db"）
"""

import logging
import os

from kvstore.interfaces.engine import Engine

logger = logging.getLogger(__name__)

_engine: Engine | None = None


def get_engine() -> Engine:
    """Engineのシングルトンインスタンスを返す。"""
    global _engine
    if _engine is None:
        kind = os.environ.get("KVSTORE_ENGINE", "memory")
        if kind == "sqlite":
            from kvstore.store.sqlite import SqliteEngine

            _engine = SqliteEngine(
                os.environ.get("KVSTORE_DB_PATH", "data/kv.db"), "default"
            )
        elif kind == "memory":
            from kvstore.store.memory import MemoryEngine

            _engine = MemoryEngine()
        else:
            raise ValueError(f"Unknown KVSTORE_ENGINE: {kind!r}")
        logger.info("KV service engine: %s", kind)
    return _engine


def _reset_all() -> None:
    """全シングルトンをリセットする（テスト用）。"""
    global _engine
    _engine = None
