"""Every library module documents what it depends on and where it is wired in."""

from __future__ import annotations

import ast
from pathlib import Path

import pytest

import i3cat

_PACKAGE = Path(i3cat.__file__).parent
_LIBRARY_MODULES = sorted(
    path
    for subpackage in ("bar", "infra", "protocol")
    for path in (_PACKAGE / subpackage).glob("*.py")
    if path.name != "__init__.py"
) + [_PACKAGE / "config.py", _PACKAGE / "io_utils.py"]


@pytest.mark.parametrize("path", _LIBRARY_MODULES, ids=lambda path: path.stem)
def test_module_docstring_has_dependency_footer(path: Path) -> None:
    docstring = ast.get_docstring(ast.parse(path.read_text()))
    assert docstring is not None
    lines = docstring.splitlines()
    assert any(line.startswith("Dependencies: ") for line in lines)
    assert any(line.startswith("Wired in: ") for line in lines)
