"""Engine と Codec を組み合わせた Store 実装。

全アダプタはこのクラスを通して Store 契約を満たす。
書き込み: 入力検証 → Codec.marshal → Engine.set
読み出し: 入力検証 → Engine.get → Codec.unmarshal
"""

import logging
from typing import Any

from kvstore.interfaces.codec import Codec
from kvstore.interfaces.engine import Engine
from kvstore.interfaces.store import Ref, Store
from kvstore.validation import check_key, check_key_and_target, check_key_and_value

logger = logging.getLogger(__name__)


class EngineStore(Store):
    """Engine を1つ占有し、Codec を1つ参照する Store。

    Codec は共有物であり所有しない。エンジンの例外は加工せずに伝播させる。
    """

    def __init__(self, engine: Engine, codec: Codec) -> None:
        self._engine = engine
        self._codec = codec

    def set(self, key: str, value: Any) -> None:
        check_key_and_value(key, value)
        data = self._codec.marshal(value)
        self._engine.set(key, data)

    def get(self, key: str, ref: Ref[Any]) -> bool:
        check_key_and_target(key, ref)
        data = self._engine.get(key)
        if data is None:
            return False
        self._codec.unmarshal(data, ref)
        return True

    def delete(self, key: str) -> None:
        check_key(key)
        self._engine.delete(key)

    def close(self) -> None:
        logger.debug("Closing %s", type(self).__name__)
        self._engine.close()
