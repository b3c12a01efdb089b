"""runbox — sandboxed execution of untrusted JavaScript and Java snippets."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from runbox.runtime.service import ExecutionService as ExecutionService

_LAZY_EXPORTS = {
    "ExecutionService": "runbox.runtime.service",
    "create_app": "runbox.api.app",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'runbox' has no attribute {name!r}")
