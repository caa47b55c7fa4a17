"""
Scope tags and the process-wide scope counter.

A scope is a plain string grouping reflections across classes. The counter is
shared by every registry in the process and only ever grows; it exists so that
automatically named scopes never collide.
"""

from typing import Optional

from scopedioc.config import get_scope_prefix

# Reserved scope: selects the master reflections, i.e. default behavior
ORIGIN_SCOPE = "origin-scope"

# Number of scopes ever switched to, across all registries
_num_scopes: int = 0


def get_num_scopes() -> int:
    """Get the number of scope switches performed in this process."""
    return _num_scopes


def mint_scope(name: Optional[str] = None) -> str:
    """Advance the scope counter and return the scope to switch to.

    Args:
        name: Explicit scope name. None or "" mints "<prefix><counter>".

    Returns:
        The scope name
    """
    global _num_scopes
    if name is not None and not isinstance(name, str):
        raise TypeError(f"scope must be a string, got {type(name).__name__}")

    _num_scopes += 1
    return name or f"{get_scope_prefix()}{_num_scopes}"
