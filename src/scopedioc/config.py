"""
Package-level configuration.

Module-level settings with explicit setters/getters. Registries read these at
call time, so a change applies to every registry in the process.
"""

# Prefix for automatically minted scope names ("scope-1", "scope-2", ...)
_scope_prefix: str = "scope-"


def set_scope_prefix(prefix: str) -> None:
    """Set the prefix used when a registry mints a scope name on its own.

    Args:
        prefix: Non-empty string prepended to the global scope counter
    """
    global _scope_prefix
    if not isinstance(prefix, str) or not prefix:
        raise ValueError(f"scope prefix must be a non-empty string, got {prefix!r}")
    _scope_prefix = prefix


def get_scope_prefix() -> str:
    """Get the prefix used for automatically minted scope names."""
    return _scope_prefix
