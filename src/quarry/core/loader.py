"""Load migration and seeder scripts from disk.

Scripts are plain ``.py`` files living outside any package. They are
executed as standalone modules and are not registered in
``sys.modules``, so two directories may both contain ``0001_users.py``.
"""

from __future__ import annotations

import importlib.util
import re
from pathlib import Path
from types import ModuleType

from quarry.core.errors import ConfigurationError

_NON_IDENT = re.compile(r"\W")


def discover_scripts(path: Path | str) -> list[Path]:
    """``*.py`` files in ``path`` sorted by file name; ``_``-prefixed names are skipped.

    A missing directory yields an empty list.
    """
    directory = Path(path)
    if not directory.is_dir():
        return []
    scripts = [p for p in directory.glob("*.py") if p.is_file() and not p.name.startswith("_")]
    return sorted(scripts, key=lambda p: p.name)


def load_script(path: Path, namespace: str) -> ModuleType:
    """Execute ``path`` as a fresh module.

    Raises:
        ConfigurationError: The file cannot be read or raises while importing.
    """
    stem = _NON_IDENT.sub("_", path.stem)
    spec = importlib.util.spec_from_file_location(f"_{namespace}_{stem}", path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Cannot load script {path.name}", path=str(path))

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise ConfigurationError(
            f"Failed to import {path.name}: {e}", path=str(path), cause=e
        ) from e
    return module


__all__ = [
    "discover_scripts",
    "load_script",
]
