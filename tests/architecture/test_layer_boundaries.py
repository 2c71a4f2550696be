"""
Layer boundaries of the asset kernel.

1. asset_kernel/** may NOT import asset_config.  The kernel never depends
   upward; configuration reaches it only as a WorkflowPolicy and a URL.

2. asset_kernel/domain/** is pure: no SQLAlchemy, no db, models, services
   or selectors at runtime.  Imports guarded by TYPE_CHECKING are allowed.

3. asset_kernel/selectors/** are read-only and may not import services.

These tests read source code via AST -- they cannot break anything.
"""

import ast
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).parents[2]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _python_files(package: str) -> list[Path]:
    return sorted((REPO_ROOT / package).rglob("*.py"))


def _is_type_checking_guard(node: ast.AST) -> bool:
    if not isinstance(node, ast.If):
        return False
    test = node.test
    if isinstance(test, ast.Name):
        return test.id == "TYPE_CHECKING"
    if isinstance(test, ast.Attribute):
        return test.attr == "TYPE_CHECKING"
    return False


def _runtime_imports(path: Path) -> list[tuple[int, str]]:
    """(line, module) for every import not under ``if TYPE_CHECKING:``."""
    tree = ast.parse(path.read_text(), filename=str(path))
    results: list[tuple[int, str]] = []

    def visit(node: ast.AST) -> None:
        if _is_type_checking_guard(node):
            for child in node.orelse:
                visit(child)
            return
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
        for child in ast.iter_child_nodes(node):
            visit(child)

    visit(tree)
    return results


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found: list[str] = []
    for path in _python_files(package):
        for lineno, module in _runtime_imports(path):
            for prefix in forbidden:
                if module == prefix or module.startswith(f"{prefix}."):
                    rel = path.relative_to(REPO_ROOT)
                    found.append(f"  {rel}:{lineno} imports '{module}'")
    return found


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestKernelNoUpwardDependencies:

    def test_kernel_does_not_import_config(self):
        violations = _violations("asset_kernel", ("asset_config",))
        assert not violations, (
            "asset_kernel/** must not import asset_config:\n" + "\n".join(violations)
        )

    def test_packages_exist(self):
        assert _python_files("asset_kernel")
        assert _python_files("asset_config")


class TestDomainPurity:

    FORBIDDEN = (
        "sqlalchemy",
        "asset_kernel.db",
        "asset_kernel.models",
        "asset_kernel.services",
        "asset_kernel.selectors",
        "asset_config",
    )

    def test_domain_has_no_persistence_imports(self):
        violations = _violations("asset_kernel/domain", self.FORBIDDEN)
        assert not violations, (
            "asset_kernel/domain/** must stay pure:\n" + "\n".join(violations)
        )

    def test_type_checking_imports_are_ignored(self, tmp_path):
        sample = tmp_path / "sample.py"
        sample.write_text(
            "from typing import TYPE_CHECKING\n"
            "if TYPE_CHECKING:\n"
            "    from asset_kernel.models.asset import Asset\n"
            "import json\n"
        )
        modules = [m for _, m in _runtime_imports(sample)]
        assert modules == ["typing", "json"]


class TestSelectorsAreReadOnly:

    @pytest.mark.parametrize("forbidden", ["asset_kernel.services", "asset_config"])
    def test_selectors_do_not_import(self, forbidden):
        violations = _violations("asset_kernel/selectors", (forbidden,))
        assert not violations, "\n".join(violations)
