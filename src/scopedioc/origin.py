"""
Origin snapshots: the captured default behavior of a registered class.

A snapshot is taken once, the first time a class is injected, before the
registry touches the class. Reflections keep a reference to it so overrides can
call through to the default implementation:

    def greet(self):
        return self.__ioc__.origin.greet(self).upper()

Attribute access on a snapshot behaves like attribute access on the class at
capture time: functions come back unbound, classmethods bound to the class,
staticmethods unwrapped and properties as property objects. This includes
dunder members, so ``origin.__init__(self, ...)`` reaches the captured
initializer rather than the snapshot's own.
"""

from types import MappingProxyType
from typing import Any, Iterator

# Names answered by the snapshot itself instead of the captured class
_SNAPSHOT_ATTRIBUTES = frozenset({'__type__', '__members__', '__class__'})


class OriginSnapshot:
    """Immutable capture of a class's own namespace.

    Metadata lives under dunder names so that it never shadows a member of the
    captured class:

    - ``__type__``: the captured class
    - ``__members__``: read-only copy of ``cls.__dict__`` at capture time
    """

    __slots__ = ('__type__', '__members__')

    def __init__(self, cls: type):
        object.__setattr__(self, '__type__', cls)
        object.__setattr__(self, '__members__', MappingProxyType(dict(cls.__dict__)))

    def __getattribute__(self, name: str) -> Any:
        if name in _SNAPSHOT_ATTRIBUTES:
            return object.__getattribute__(self, name)

        cls = object.__getattribute__(self, '__type__')
        members = object.__getattribute__(self, '__members__')
        if name not in members:
            # Inherited member: resolve on the bases, which the registry never patches
            for base in cls.__mro__[1:]:
                if name in base.__dict__:
                    return getattr(base, name)
            raise AttributeError(f"origin of {cls.__name__} has no member {name!r}")

        value = members[name]
        getter = getattr(type(value), '__get__', None)
        if getter is None:
            return value
        return getter(value, None, cls)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("OriginSnapshot is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("OriginSnapshot is read-only")

    def __contains__(self, name: str) -> bool:
        return name in object.__getattribute__(self, '__members__')

    def __iter__(self) -> Iterator[str]:
        return iter(object.__getattribute__(self, '__members__'))

    def __repr__(self) -> str:
        cls = object.__getattribute__(self, '__type__')
        return f"<OriginSnapshot of {cls.__module__}.{cls.__qualname__}>"
