"""pytest 共通設定。"""

import pytest

# 適合性テスト群の assert を pytest の詳細表示に対応させる
pytest.register_assert_rewrite("kvstore.testing")
