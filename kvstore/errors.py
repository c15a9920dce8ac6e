"""ストア契約の例外階層。

全てのアダプタはこのモジュールの例外で失敗を表現する。
エンジン固有の例外（sqlite3.Error 等）はラップせずにそのまま伝播させる。
"""


class KVStoreError(Exception):
    """kvstore が送出する例外の基底クラス。"""


class ValidationError(KVStoreError):
    """入力検証エラー。エンジンへのアクセス前に送出される。"""


class EmptyKeyError(ValidationError):
    """キーが空文字列。"""


class NilValueError(ValidationError):
    """書き込み値が None、または読み出し先が None / 型なし / Ref 以外。"""


class SerializationError(KVStoreError):
    """Codec が値をバイト列に変換できなかった。"""


class DeserializationError(KVStoreError):
    """Codec が格納済みバイト列から読み出し先を復元できなかった。"""


class EngineError(KVStoreError):
    """エンジン自身が報告したエラー（リモートKVサービスのエラー応答など）。"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AdmissionError(KVStoreError):
    """キャッシュエンジンがキー・値の受け入れを拒否した。

    事前条件違反でもエンジン障害でもないため EngineError とは区別する。
    """
