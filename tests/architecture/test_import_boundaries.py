"""
Import-boundary enforcement.

1. Kernel purity      -- revenue_kernel/** may not import engines, services
                         or config.
2. Engine purity      -- revenue_engines/** may not import services or config.
3. Engine no-impure   -- revenue_engines/** may not read the wall clock.
4. Service boundary   -- revenue_services/** may not import a storage library.

All scanning is done via AST; these tests are read-only.
"""

import ast
import glob
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


def _python_files(package: str) -> list[str]:
    """Return all .py files under *package*, sorted for deterministic order."""
    return sorted(glob.glob(f"{ROOT / package}/**/*.py", recursive=True))


def _extract_imports(filepath: str) -> list[tuple[int, str]]:
    """Return (line_number, module_string) for every import in *filepath*."""
    tree = ast.parse(Path(filepath).read_text(), filename=filepath)

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    """True if *module* equals or is a child of any prefix."""
    return any(module == p or module.startswith(f"{p}.") for p in prefixes)


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found = []
    for path in _python_files(package):
        for lineno, module in _extract_imports(path):
            if _matches_any(module, forbidden):
                found.append(f"{Path(path).relative_to(ROOT)}:{lineno} imports {module}")
    return found


class TestLayering:

    def test_packages_present(self):
        for package in ("revenue_kernel", "revenue_engines", "revenue_config", "revenue_services"):
            assert _python_files(package), package

    def test_kernel_imports_nothing_above_it(self):
        assert _violations(
            "revenue_kernel", ("revenue_engines", "revenue_services", "revenue_config"),
        ) == []

    def test_engines_do_not_import_services_or_config(self):
        assert _violations("revenue_engines", ("revenue_services", "revenue_config")) == []

    def test_services_use_no_storage_library(self):
        assert _violations("revenue_services", ("sqlalchemy", "psycopg2", "sqlite3")) == []


class TestEnginePurity:

    def test_no_wall_clock_reads(self):
        banned = {"datetime.now", "datetime.utcnow", "date.today", "time.time"}
        found = []
        for path in _python_files("revenue_engines"):
            tree = ast.parse(Path(path).read_text(), filename=path)
            for node in ast.walk(tree):
                if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name):
                    name = f"{node.value.id}.{node.attr}"
                    if name in banned:
                        found.append(f"{Path(path).name}:{node.lineno} {name}")
        assert found == []
