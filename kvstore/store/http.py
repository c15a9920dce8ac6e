"""リモートKVサービスによる Store 実装。

kvstore.service のHTTP APIを httpx で呼び出す。
404 は「存在しない」、409 は AdmissionError、その他のエラー応答は
ステータスコード付きの EngineError として扱う。通信エラー（httpx.TransportError）
はそのまま伝播させる。
"""

import logging
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field

from kvstore.encoding.json_codec import JSON
from kvstore.errors import AdmissionError, EngineError
from kvstore.interfaces.codec import Codec
from kvstore.interfaces.engine import Engine
from kvstore.options import resolve_options
from kvstore.store.engine_store import EngineStore

logger = logging.getLogger(__name__)

KV_PATH = "/api/kv/"


class HttpOptions(BaseModel):
    """HttpStore の設定。未設定（None）のフィールドは既定値で補う。"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    # サービスのベースURL（既定: "http://localhost:8080"）
    base_url: str | None = None
    # リクエストのタイムアウト秒（既定: 5.0）
    timeout: float | None = Field(default=None, gt=0)
    # 既存のクライアントを使う場合に指定。base_url と timeout は無視される。
    # 呼び出し側の所有物として扱い、close() では閉じない
    client: httpx.Client | None = None
    # 省略時は JSON
    codec: Codec | None = None


DEFAULT_HTTP_OPTIONS = HttpOptions(
    base_url="http://localhost:8080",
    timeout=5.0,
    codec=JSON,
)


class HttpEngine(Engine):
    """KVサービスのHTTPクライアント。httpx.Client はスレッド安全。

    owns_client が False のクライアントは close() で閉じない。
    """

    def __init__(self, client: httpx.Client, owns_client: bool = True) -> None:
        self._client = client
        self._owns_client = owns_client

    @staticmethod
    def _url(key: str) -> str:
        # "." と ".." はパス正規化で消されるため "." も常にエスケープする
        return KV_PATH + quote(key, safe="").replace(".", "%2E")

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.status_code == 409:
            try:
                detail = response.json().get("detail", response.text)
            except (ValueError, AttributeError):
                detail = response.text
            raise AdmissionError(detail)
        if response.is_error:
            raise EngineError(
                f"KV service responded with {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

    def get(self, key: str) -> bytes | None:
        response = self._client.get(self._url(key))
        if response.status_code == 404:
            return None
        self._raise_for_status(response)
        return response.content

    def set(self, key: str, data: bytes) -> None:
        response = self._client.put(
            self._url(key),
            content=data,
            headers={"Content-Type": "application/octet-stream"},
        )
        self._raise_for_status(response)

    def delete(self, key: str) -> None:
        response = self._client.delete(self._url(key))
        self._raise_for_status(response)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class HttpStore(EngineStore):
    """リモートKVサービスによる Store。"""

    def __init__(self, options: HttpOptions | None = None) -> None:
        options = resolve_options(options, DEFAULT_HTTP_OPTIONS)
        client = options.client
        owns_client = client is None
        if owns_client:
            client = httpx.Client(base_url=options.base_url, timeout=options.timeout)
            logger.info("Connecting to KV service at %s", options.base_url)
        super().__init__(HttpEngine(client, owns_client), options.codec)
        self.options = options
