"""依存方向の制約テスト。

アーキテクチャで定めた依存ルールをコードレベルで検証する。
- service/ と testing/ は interfaces/ にのみ依存可
- encoding/ はストア実装に依存しない
- store/ への直接依存は禁止（service/ は dependencies.py 経由で注入する）
"""

import ast
from pathlib import Path

PACKAGE_ROOT = Path(__file__).parent.parent.parent / "kvstore"

# これらのモジュールは interfaces/ にのみ依存すべき
RESTRICTED_MODULES = ["service", "testing", "encoding"]

# これらへの直接依存を禁止
FORBIDDEN_IMPORTS = ["kvstore.store"]


def _collect_imports(filepath: Path) -> list[str]:
    """Pythonファイルからimport文を抽出する。"""
    source = filepath.read_text(encoding="utf-8")
    try:
        tree = ast.parse(source)
    except SyntaxError:
        return []

    imports = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                imports.append(alias.name)
        elif isinstance(node, ast.ImportFrom) and node.module:
            imports.append(node.module)
    return imports


def test_no_direct_store_imports():
    """service/・testing/・encoding/ が store/ を直接importしていないことを検証。"""
    violations = []

    for module_name in RESTRICTED_MODULES:
        module_dir = PACKAGE_ROOT / module_name
        if not module_dir.exists():
            continue

        for py_file in module_dir.rglob("*.py"):
            imports = _collect_imports(py_file)
            for imp in imports:
                for forbidden in FORBIDDEN_IMPORTS:
                    if imp.startswith(forbidden):
                        rel_path = py_file.relative_to(PACKAGE_ROOT.parent)
                        violations.append(f"{rel_path}: imports {imp}")

    assert violations == [], "依存方向違反を検出:\n" + "\n".join(f"  - {v}" for v in violations)


def test_interfaces_do_not_import_implementations():
    """interfaces/ は kvstore.interfaces 以外の kvstore モジュールに依存しない。"""
    violations = []
    for py_file in (PACKAGE_ROOT / "interfaces").rglob("*.py"):
        for imp in _collect_imports(py_file):
            if imp.startswith("kvstore.") and not imp.startswith("kvstore.interfaces"):
                violations.append(f"{py_file.name}: imports {imp}")

    assert violations == [], "依存方向違反を検出:\n" + "\n".join(f"  - {v}" for v in violations)
