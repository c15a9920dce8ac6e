"""SQLite による Store 実装。

1つのDBファイル内にバケット（独立したキー空間）を持つトランザクショナルな
組み込みストア。接続は1本をロックで保護して共有する。
"""

import logging
import sqlite3
import threading
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from kvstore.encoding.json_codec import JSON
from kvstore.interfaces.codec import Codec
from kvstore.interfaces.engine import Engine
from kvstore.options import resolve_options
from kvstore.store.engine_store import EngineStore

logger = logging.getLogger(__name__)

# スキーマ定義
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv_records (
    bucket      TEXT NOT NULL,
    key         TEXT NOT NULL,
    value       BLOB NOT NULL,
    PRIMARY KEY (bucket, key)
);
"""

MEMORY_PATH = ":memory:"


class SqliteOptions(BaseModel):
    """SqliteStore の設定。未設定（None）のフィールドは既定値で補う。"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    # DBファイルのパス（既定: "kv.db"）
    path: str | None = None
    # キー・バリューを格納するバケット名（既定: "default"）
    bucket_name: str | None = Field(default=None, min_length=1)
    # True なら書き込みごとにファイル同期する。遅いがクラッシュで失われない。
    # False なら高速だがクラッシュ時に直近の書き込みを失う可能性がある（既定: False）
    sync: bool | None = None
    # ロック待ちのタイムアウト秒（既定: 5.0）
    timeout: float | None = Field(default=None, gt=0)
    # 省略時は JSON
    codec: Codec | None = None


DEFAULT_SQLITE_OPTIONS = SqliteOptions(
    path="kv.db",
    bucket_name="default",
    sync=False,
    timeout=5.0,
    codec=JSON,
)


class SqliteEngine(Engine):
    """SQLite の1バケットをエンジンとして扱う。"""

    def __init__(
        self,
        db_path: str,
        bucket_name: str,
        sync: bool = False,
        timeout: float = 5.0,
    ):
        """初期化。

        Args:
            db_path: SQLiteデータベースファイルのパス（":memory:" も可）
            bucket_name: バケット名
            sync: 書き込みごとにファイル同期するか
            timeout: ロック待ちのタイムアウト秒
        """
        if db_path != MEMORY_PATH:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._bucket = bucket_name
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(
            db_path, timeout=timeout, check_same_thread=False
        )
        self._conn.execute(f"PRAGMA synchronous = {'FULL' if sync else 'OFF'}")
        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()
        logger.info("Opened SQLite store at %s (bucket=%s)", db_path, bucket_name)

    def get(self, key: str) -> bytes | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM kv_records WHERE bucket = ? AND key = ?",
                (self._bucket, key),
            ).fetchone()
        if row is None:
            return None
        return bytes(row[0])

    def set(self, key: str, data: bytes) -> None:
        # 接続のコンテキストマネージャで成功時コミット、失敗時ロールバック
        with self._lock, self._conn:
            self._conn.execute(
                """
                INSERT INTO kv_records (bucket, key, value)
                VALUES (?, ?, ?)
                ON CONFLICT(bucket, key)
                DO UPDATE SET value = excluded.value
                """,
                (self._bucket, key, sqlite3.Binary(data)),
            )

    def delete(self, key: str) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "DELETE FROM kv_records WHERE bucket = ? AND key = ?",
                (self._bucket, key),
            )

    def close(self) -> None:
        with self._lock:
            self._conn.close()


class SqliteStore(EngineStore):
    """SQLite によるStore実装。

    使い終わったら必ず close() を呼ぶこと。
    """

    def __init__(self, options: SqliteOptions | None = None) -> None:
        options = resolve_options(options, DEFAULT_SQLITE_OPTIONS)
        engine = SqliteEngine(
            options.path,
            options.bucket_name,
            sync=options.sync,
            timeout=options.timeout,
        )
        super().__init__(engine, options.codec)
        self.options = options
