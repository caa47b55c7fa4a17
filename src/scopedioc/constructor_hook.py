"""
Constructor dispatch for registered classes.

Registering a class replaces its ``__new__`` with a hook that asks the registry
which implementation to build. ``Klass(...)`` then returns an instance of the
active reflection (a subclass of ``Klass``), and that instance keeps its
implementation for its whole lifetime, whatever is synthesized later.

Only construction of the registered class itself is redirected. Subclasses of
it, and the generated reflections, are built exactly as requested.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Marker for "no __new__ in the class's own namespace"
_MISSING = object()


@dataclass(frozen=True)
class ConstructorHook:
    """Record of an installed hook, enough to undo it."""
    cls: type
    hook: staticmethod
    previous: Any  # raw cls.__dict__['__new__'] before installation, or _MISSING


def install_constructor_hook(cls: type, resolve: Callable[[type], type]) -> ConstructorHook:
    """Redirect construction of cls to the implementation chosen by resolve.

    Args:
        cls: The registered class
        resolve: Called with cls on every ``cls(...)``; returns the class to build

    Returns:
        ConstructorHook to pass to remove_constructor_hook()

    Raises:
        TypeError: If cls does not accept a new ``__new__`` (builtins, extension types)
    """
    previous = cls.__dict__.get('__new__', _MISSING)
    resolved_new = cls.__new__

    def __new__(klass, *args, **kwargs):
        if klass is cls:
            klass = resolve(cls)
        # object.__new__ rejects constructor arguments once __new__ is overridden
        if resolved_new is object.__new__:
            return object.__new__(klass)
        return resolved_new(klass, *args, **kwargs)

    hook = staticmethod(__new__)
    try:
        cls.__new__ = hook
    except TypeError as e:
        raise TypeError(f"cannot register {cls.__name__}: its constructor cannot be replaced") from e

    logger.debug(f"Installed constructor hook on {cls.__name__}")
    return ConstructorHook(cls=cls, hook=hook, previous=previous)


def remove_constructor_hook(record: ConstructorHook) -> bool:
    """Restore the ``__new__`` a class had before install_constructor_hook().

    If something else replaced the hook in the meantime, the class is left
    alone: the orphaned hook keeps delegating to the previous constructor and
    stays on the class. Hooks stacked on one class (several registries) must
    therefore be removed in reverse order of installation.

    Returns:
        True if the class was restored
    """
    cls = record.cls
    if cls.__dict__.get('__new__') is not record.hook:
        logger.warning(f"Constructor hook on {cls.__name__} was replaced, leaving it in place")
        return False

    if record.previous is _MISSING:
        del cls.__new__
    else:
        cls.__new__ = record.previous

    logger.debug(f"Removed constructor hook from {cls.__name__}")
    return True
