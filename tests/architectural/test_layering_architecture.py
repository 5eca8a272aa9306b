"""Architectural tests for package layering, error mapping and SQL hygiene.

Tests use file-system and AST inspection only to avoid executing
application code.
"""

from __future__ import annotations

import ast
import re
from pathlib import Path
from typing import Iterable, List, Set


PROJECT_ROOT = Path(__file__).resolve().parents[2]
PKG_DIR = PROJECT_ROOT / "formdesk"
LOGIC_DIR = PKG_DIR / "logic"
MODELS_DIR = PKG_DIR / "models"
ROUTES_DIR = PKG_DIR / "routes"
MIGRATIONS_DIR = PKG_DIR / "db" / "migrations"

BASE_ERROR_CODES = {"DOMAIN_ERROR", "FORM_ERROR", "RESPONSE_ERROR"}


def _iter_py_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.rglob("*.py")):
        if "__pycache__" not in p.parts:
            yield p


def _parse_ast(path: Path) -> ast.AST:
    try:
        return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    except SyntaxError as exc:
        raise AssertionError(f"Failed to parse {path}: {exc}")


def _imported_modules(tree: ast.AST) -> Set[str]:
    found: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            found.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            found.add(node.module)
    return found


def _rel(path: Path) -> str:
    return str(path.relative_to(PROJECT_ROOT))


def test_logic_and_models_are_framework_free() -> None:
    offenders: List[str] = []
    for py in [*_iter_py_files(LOGIC_DIR), *_iter_py_files(MODELS_DIR)]:
        for mod in _imported_modules(_parse_ast(py)):
            if mod.split(".")[0] in {"fastapi", "starlette"}:
                offenders.append(f"{_rel(py)} imports {mod}")
    assert not offenders, "Web framework imports outside the HTTP layer:\n" + "\n".join(offenders)


def test_routes_do_not_touch_storage_drivers() -> None:
    offenders: List[str] = []
    for py in _iter_py_files(ROUTES_DIR):
        for mod in _imported_modules(_parse_ast(py)):
            if mod.split(".")[0] in {"sqlalchemy", "pymongo", "bson"}:
                offenders.append(f"{_rel(py)} imports {mod}")
    assert not offenders, "Routes must go through the logic layer:\n" + "\n".join(offenders)


def test_repositories_do_not_import_each_other() -> None:
    repos = sorted(LOGIC_DIR.glob("repository_*.py"))
    assert repos, "expected repository modules under formdesk/logic"
    names = {f"formdesk.logic.{p.stem}" for p in repos}
    offenders: List[str] = []
    for py in repos:
        own = f"formdesk.logic.{py.stem}"
        for mod in _imported_modules(_parse_ast(py)) & (names - {own}):
            offenders.append(f"{_rel(py)} imports {mod}")
    assert not offenders, "\n".join(offenders)


def _declared_error_codes() -> Set[str]:
    codes: Set[str] = set()
    for node in ast.walk(_parse_ast(LOGIC_DIR / "errors.py")):
        if not isinstance(node, ast.ClassDef):
            continue
        for stmt in node.body:
            if (
                isinstance(stmt, ast.Assign)
                and any(isinstance(t, ast.Name) and t.id == "code" for t in stmt.targets)
                and isinstance(stmt.value, ast.Constant)
            ):
                codes.add(stmt.value.value)
    return codes


def _mapped_error_codes() -> Set[str]:
    tree = _parse_ast(PKG_DIR / "http" / "error_mapping.py")
    for node in ast.walk(tree):
        if (
            isinstance(node, ast.Assign)
            and any(isinstance(t, ast.Name) and t.id == "ERROR_STATUS_MAP" for t in node.targets)
            and isinstance(node.value, ast.Dict)
        ):
            return {k.value for k in node.value.keys if isinstance(k, ast.Constant)}
    raise AssertionError("ERROR_STATUS_MAP not found in formdesk/http/error_mapping.py")


def test_every_concrete_error_code_has_an_http_mapping() -> None:
    declared = _declared_error_codes() - BASE_ERROR_CODES
    assert declared, "no error codes declared"
    missing = declared - _mapped_error_codes()
    assert not missing, f"Unmapped error codes: {sorted(missing)}"


def test_no_bare_except_clauses() -> None:
    offenders: List[str] = []
    for py in _iter_py_files(PKG_DIR):
        for node in ast.walk(_parse_ast(py)):
            if isinstance(node, ast.ExceptHandler) and node.type is None:
                offenders.append(f"{_rel(py)}:{node.lineno}")
    assert not offenders, "Bare except clauses:\n" + "\n".join(offenders)


def test_sql_statements_are_not_built_with_fstrings() -> None:
    offenders: List[str] = []
    for py in _iter_py_files(PKG_DIR):
        for node in ast.walk(_parse_ast(py)):
            if (
                isinstance(node, ast.Call)
                and isinstance(node.func, ast.Name)
                and node.func.id == "sql_text"
                and node.args
                and isinstance(node.args[0], ast.JoinedStr)
            ):
                offenders.append(f"{_rel(py)}:{node.lineno}")
    assert not offenders, "Use bound parameters instead of interpolated SQL:\n" + "\n".join(offenders)


def test_one_response_per_user_per_form_is_enforced_by_schema() -> None:
    sql = "\n".join(p.read_text(encoding="utf-8") for p in sorted(MIGRATIONS_DIR.glob("*.sql")))
    pattern = re.compile(
        r"CREATE\s+UNIQUE\s+INDEX\s+(?:IF\s+NOT\s+EXISTS\s+)?\w+\s+ON\s+responses\s*\(\s*submitted_by\s*,\s*form_id\s*\)",
        re.IGNORECASE,
    )
    assert pattern.search(sql), "responses needs a unique index on (submitted_by, form_id)"
