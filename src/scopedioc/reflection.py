"""
Reflections: generated subclasses layering overrides over an origin.

A reflection of ``Klass`` is a subclass of ``Klass`` whose namespace holds only
the injected members, so every name it does not override falls through to the
default implementation. Each reflection carries its ``ReflectionDetail`` as the
class attribute ``__ioc__``.

Operations installed on a reflection are wrapped: before the original function
runs, the wrapper invokes a callback with the reflection's detail. The registry
uses this to re-synthesize the reflection's scope on every call.
"""

import functools
import inspect
import logging
import types
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional

from scopedioc.origin import OriginSnapshot

logger = logging.getLogger(__name__)

# Class attribute holding the ReflectionDetail of a generated reflection
DETAIL_ATTR = '__ioc__'

# Called with the detail of the reflection whose operation is about to run
BeforeCall = Callable[['ReflectionDetail'], Any]


@dataclass
class ReflectionDetail:
    """Bookkeeping record of a reflection.

    ``scope`` is mutable (the registry reassigns it when scopes are shared).
    ``origin`` gives overrides access to the default implementation.
    ``vars`` is caller metadata, only used for filtering.
    """
    scope: str
    origin: OriginSnapshot
    vars: Dict[str, Any] = field(default_factory=dict)
    members: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class InjectionDetail:
    """Declarative injection record for ``ReflectionRegistry.create``."""
    scope: Optional[str]
    origin: Any
    injections: Optional[Mapping[str, Any]]
    vars: Optional[Dict[str, Any]] = None


def get_reflection_detail(cls: Any) -> Optional[ReflectionDetail]:
    """Get the detail a generated reflection class carries, if any.

    Only the class's own namespace is consulted: subclasses of a reflection
    are not reflections themselves.
    """
    if not isinstance(cls, type):
        return None
    detail = cls.__dict__.get(DETAIL_ATTR)
    return detail if isinstance(detail, ReflectionDetail) else None


def is_reflection_type(cls: Any) -> bool:
    """Check whether cls is a generated reflection class."""
    return get_reflection_detail(cls) is not None


def _synthesizing(operation: Callable, detail: ReflectionDetail, before_call: BeforeCall) -> Callable:
    @functools.wraps(operation)
    def synthesized(*args, **kwargs):
        before_call(detail)
        return operation(*args, **kwargs)

    return synthesized


def wrap_operation(value: Any, detail: ReflectionDetail, before_call: BeforeCall) -> Any:
    """Wrap value if it is an operation, otherwise return it unchanged.

    Operations are plain functions, staticmethods, classmethods and properties.
    Descriptors are rebuilt around wrapped functions so binding still works.
    Any other value (including classes and builtins) is stored verbatim.
    """
    if inspect.isfunction(value):
        return _synthesizing(value, detail, before_call)

    if isinstance(value, staticmethod):
        return staticmethod(_synthesizing(value.__func__, detail, before_call))

    if isinstance(value, classmethod):
        return classmethod(_synthesizing(value.__func__, detail, before_call))

    if isinstance(value, property):
        accessors = [
            _synthesizing(accessor, detail, before_call) if accessor is not None else None
            for accessor in (value.fget, value.fset, value.fdel)
        ]
        return property(*accessors, doc=value.__doc__)

    return value


def is_operation(value: Any) -> bool:
    return inspect.isfunction(value) or isinstance(value, (staticmethod, classmethod, property))


def collect_operations(cls: type) -> Dict[str, Any]:
    """Collect the non-dunder operations visible on cls.

    Walks the MRO from the most generic base to cls itself (excluding
    ``object``) so that overriding definitions win, and returns the raw
    namespace entries (descriptors are not resolved).
    """
    operations: Dict[str, Any] = {}
    for base in reversed(cls.__mro__[:-1]):
        for name, value in vars(base).items():
            if name.startswith('__') and name.endswith('__'):
                continue
            if is_operation(value):
                operations[name] = value
            else:
                # A later non-operation shadows an inherited operation
                operations.pop(name, None)
    return operations


def slot_names(cls: type) -> FrozenSet[str]:
    """Names declared in ``__slots__`` anywhere along cls's MRO."""
    names = set()
    for base in cls.__mro__:
        slots = base.__dict__.get('__slots__', ())
        names.update((slots,) if isinstance(slots, str) else slots)
    return frozenset(names)


def make_reflection_type(origin: OriginSnapshot, members: Mapping[str, Any], detail: ReflectionDetail) -> type:
    """Generate the reflection class for detail.

    The class subclasses the origin's class (built through its metaclass),
    keeps the origin's name, qualname and module, and declares empty
    ``__slots__`` so slotted origins stay slotted.
    """
    base = origin.__type__
    namespace = dict(members)
    namespace[DETAIL_ATTR] = detail
    namespace['__slots__'] = ()
    namespace['__module__'] = base.__module__
    namespace['__qualname__'] = base.__qualname__

    reflection = types.new_class(base.__name__, (base,), exec_body=lambda ns: ns.update(namespace))
    logger.debug(f"Generated reflection of {base.__name__}: scope={detail.scope}, members={list(members)}")
    return reflection
