"""Plugin loading and per-directory environment preparation.

Plugins are declared in the book configuration as module names or as
``.py`` files relative to the book directory. They are loaded once per
book directory per process.
"""

import importlib
import importlib.util
import logging
import threading
from pathlib import Path
from types import ModuleType
from typing import Iterable

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_prepared: set[Path] = set()
_lock = threading.RLock()


def prepare_environment(basedir: Path, plugins: Iterable[str] = ()) -> bool:
    """Load the declared plugins of a book directory once.

    Args:
        basedir: The book directory.
        plugins: Declared plugin module names or file paths.

    Returns:
        True if the directory was prepared now, False if it had been
        prepared before.

    Raises:
        ConfigurationError: If a plugin cannot be loaded.
    """
    key = Path(basedir).resolve()
    with _lock:
        if key in _prepared:
            return False
        for spec in plugins:
            load_plugin(key, spec)
        _prepared.add(key)
    return True


def is_prepared(basedir: Path) -> bool:
    return Path(basedir).resolve() in _prepared


def load_plugin(basedir: Path, spec: str) -> ModuleType:
    """Import one plugin and run its ``setup(basedir)`` hook if present.

    Args:
        basedir: The book directory.
        spec: A dotted module name, or a ``.py`` path relative to basedir.

    Returns:
        The loaded module.
    """
    try:
        if spec.endswith(".py"):
            module = _load_file(Path(basedir) / spec)
        else:
            module = importlib.import_module(spec)
    except (ImportError, OSError) as e:
        raise ConfigurationError(f"cannot load plugin {spec}: {e}") from e

    setup = getattr(module, "setup", None)
    if callable(setup):
        setup(Path(basedir))
    logger.info("Loaded plugin %s for %s", spec, basedir)
    return module


def _load_file(path: Path) -> ModuleType:
    if not path.is_file():
        raise FileNotFoundError(f"no such plugin file: {path}")
    name = f"rebook_plugin_{path.stem}"
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"cannot import {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def reset() -> None:
    """Forget which directories were prepared."""
    with _lock:
        _prepared.clear()
