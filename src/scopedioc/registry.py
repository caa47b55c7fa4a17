"""
ReflectionRegistry: scoped behavior overrides for classes.

The registry takes the default behavior of a class - its ``origin`` - and can
create any number of modified variants of it - ``reflections``. Reflections are
tagged with a ``scope``; synthesizing a scope makes its reflections the active
implementation of their classes, so ``Klass()`` builds an instance of the
reflection from then on.

Example:
    class Klass:
        prop = 'foo'

        def fn(self):
            return 'default-' + self.prop

    registry = ReflectionRegistry()
    (registry
        .switch_scope('my_scope')
        .inject(Klass, {
            'fn': lambda self: 'injected-' + self.prop,
            'prop': 'bar',
        })
        .synthesize())

    Klass().fn()  # 'injected-bar'
    registry.dispose()
    Klass().fn()  # 'default-foo'

Transitive construction:
    Every operation stored in a reflection re-synthesizes the reflection's own
    scope before it runs. An operation of scope S that constructs another
    registered class therefore gets that class's S implementation, whatever
    scope happened to be active before the call. This is a deliberate global
    side effect.

Thread safety: Not thread-safe (all operations expected on one thread).
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Optional

from scopedioc.constructor_hook import ConstructorHook, install_constructor_hook, remove_constructor_hook
from scopedioc.origin import OriginSnapshot
from scopedioc.reflection import (
    ReflectionDetail,
    collect_operations,
    get_reflection_detail,
    make_reflection_type,
    slot_names,
    wrap_operation,
)
from scopedioc.scopes import ORIGIN_SCOPE, mint_scope

logger = logging.getLogger(__name__)

Predicate = Callable[[ReflectionDetail], Any]


class ReflectionRegistry:
    """Registry of origins, reflections and master reflections.

    State:
    - ``_origins``: registered class -> OriginSnapshot, in registration order
    - ``_active``: registered class -> implementation built by ``cls(...)``
      (the class itself or one of its reflections)
    - ``_reflections``: ordinary reflections, in injection order
    - ``_master_reflections``: one per registered class, scope ORIGIN_SCOPE.
      Switching to the origin through them keeps transitive construction
      consistent, which a bare origin (no scope, no wrapped operations) cannot.
    """

    def __init__(self):
        self._current_scope: str = mint_scope()
        self._origins: Dict[type, OriginSnapshot] = {}
        self._active: Dict[type, type] = {}
        self._hooks: Dict[type, ConstructorHook] = {}
        self._reflections: List[type] = []
        self._master_reflections: List[type] = []

    def __repr__(self) -> str:
        return (
            f"<ReflectionRegistry scope={self._current_scope!r} "
            f"origins={len(self._origins)} reflections={len(self._reflections)}>"
        )

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    def create(cls, scope: Optional[str] = None, details: Optional[Iterable[Any]] = None) -> 'ReflectionRegistry':
        """Create a registry and apply a list of declarative injections.

        Args:
            scope: Current scope of the returned registry. Defaults to the
                   scope the registry was created with.
            details: Records with ``scope``, ``origin``, ``injections`` and
                     optional ``vars`` (mappings or objects such as
                     InjectionDetail). Records without a scope are skipped.

        Returns:
            The registry; nothing is synthesized yet.
        """
        registry = cls()
        scope = scope or registry.get_current_scope()

        for detail in details or ():
            detail_scope = _detail_field(detail, 'scope')
            if not detail_scope:
                continue
            (registry
                .switch_scope(detail_scope)
                .inject(
                    _detail_field(detail, 'origin'),
                    _detail_field(detail, 'injections'),
                    _detail_field(detail, 'vars'),
                ))

        # Back to the requested scope after injecting
        return registry.switch_scope(scope)

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------

    def get_current_scope(self) -> str:
        """Get the scope used by inject() and synthesize() by default."""
        return self._current_scope

    def switch_scope(self, scope: Optional[str] = None) -> 'ReflectionRegistry':
        """Switch the current scope; further injections are tagged with it.

        Args:
            scope: New current scope. If omitted, a unique scope is minted.
                   Use ORIGIN_SCOPE with synthesize() to go back to defaults
                   without losing reflections.
        """
        self._current_scope = mint_scope(scope)
        return self

    def share_scope(self, scope: Optional[str] = None, reflections: Optional[Iterable[type]] = None) -> 'ReflectionRegistry':
        """Apply the same scope to a selection of reflections.

        Only metadata changes; active implementations follow on the next
        synthesize().

        Args:
            scope: Scope to apply. Defaults to the current scope.
            reflections: Reflections to retag. Defaults to all known reflections.
                         Master reflections and reflections of other
                         registries are left alone.
        """
        if scope is not None and not isinstance(scope, str):
            raise TypeError(f"scope must be a string, got {type(scope).__name__}")
        scope = scope or self._current_scope
        retagged = 0

        for reflection in self._selection(reflections):
            if _index_of(self._reflections, reflection) == -1:
                continue
            get_reflection_detail(reflection).scope = scope
            retagged += 1

        logger.debug(f"Shared scope {scope!r} across {retagged} reflection(s)")
        return self

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_origin(self, obj: Any) -> bool:
        """Check whether obj's class is registered and builds its origin."""
        cls = self._resolve_type(obj)
        return cls is not None and self._active.get(cls) is cls

    def is_reflection(self, obj: Any) -> bool:
        """Check whether obj's class is registered and builds one of its reflections.

        False while the master reflection (ORIGIN_SCOPE) is active.
        """
        cls = self._resolve_type(obj)
        if cls is None:
            return False
        return _index_of(self._reflections, self._active.get(cls)) != -1

    def get_origin_of(self, obj: Any) -> Optional[OriginSnapshot]:
        """Get the origin snapshot of a class, instance or reflection; None if unknown."""
        cls = self._resolve_type(obj)
        return self._origins.get(cls) if cls is not None else None

    def get_reflections_of(self, obj: Any) -> List[type]:
        """Get all reflections of obj's class, in injection order."""
        origin = self.get_origin_of(obj)
        if origin is None:
            return []
        return [
            reflection for reflection in self._reflections
            if get_reflection_detail(reflection).origin is origin
        ]

    def get_reflections_where(self, predicate: Predicate) -> List[type]:
        """Get the reflections whose ReflectionDetail satisfies predicate.

        A non-callable predicate selects nothing.
        """
        if not callable(predicate):
            return []
        return [
            reflection for reflection in self._reflections
            if predicate(get_reflection_detail(reflection))
        ]

    def get_origins_where(self, predicate: Predicate) -> List[OriginSnapshot]:
        """Get the unique origins of the reflections selected by predicate."""
        result: List[OriginSnapshot] = []
        for reflection in self.get_reflections_where(predicate):
            origin = get_reflection_detail(reflection).origin
            if _index_of(result, origin) == -1:
                result.append(origin)
        return result

    # ------------------------------------------------------------------
    # Injection
    # ------------------------------------------------------------------

    def inject(self, target: Any, overrides: Optional[Mapping], vars: Optional[Dict[str, Any]] = None) -> 'ReflectionRegistry':
        """Create a reflection of target's class tagged with the current scope.

        Args:
            target: A class, an instance, or a reflection of a class.
                    If None, nothing is injected.
            overrides: Members to install on the reflection. Operations are
                       wrapped to re-synthesize the reflection's scope, other
                       values are stored as-is (not copied). If None, nothing
                       is injected.
            vars: Metadata stored on the reflection's detail for filtering.

        Returns:
            The registry; the reflection is not activated.

        Raises:
            TypeError: If overrides is not a mapping, names one of the class's
                       ``__slots__``, or the class's constructor cannot be replaced
        """
        if target is None or overrides is None:
            return self
        if not isinstance(overrides, Mapping):
            raise TypeError(f"overrides must be a mapping, got {type(overrides).__name__}")

        cls = self._resolve_type(target)
        known = cls is not None
        if not known:
            cls = target if isinstance(target, type) else type(target)

        # A reflection member would shadow the slot descriptor of the origin
        shadowed = slot_names(cls).intersection(overrides)
        if shadowed:
            raise TypeError(f"cannot override slots of {cls.__name__}: {sorted(shadowed)}")

        if not known:
            self._register(cls)

        reflection = self._create_reflection(self._origins[cls], overrides, vars)
        self._reflections.append(reflection)

        logger.debug(f"Injected {cls.__name__}: scope={self._current_scope}, members={list(overrides)}")
        return self

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------

    def synthesize(self, scope: Optional[str] = None) -> 'ReflectionRegistry':
        """Make the reflections of scope the active implementations of their classes.

        Classes without a reflection in scope keep their current implementation.
        The current scope is not changed.

        Args:
            scope: Scope to activate. Defaults to the current scope.
                   ORIGIN_SCOPE activates the master reflections.

        Example:
            class Klass2:
                value = 'default'

            class Klass1:
                def get(self):
                    return 'default-' + Klass2().value

            (registry
                .switch_scope('startup')
                .inject(Klass2, {'value': 'behaviour'})
                .switch_scope('runtime')
                .inject(Klass2, {'value': 'behaviour-extended'})
                .inject(Klass1, {'get': lambda self: 'injected-' + Klass2().value}))

            registry.synthesize('startup'); Klass1().get()  # 'default-behaviour'
            registry.synthesize('runtime'); Klass1().get()  # 'injected-behaviour-extended'
        """
        scope = scope or self._current_scope

        if scope == ORIGIN_SCOPE:
            reflections = list(self._master_reflections)
        else:
            reflections = self.get_reflections_where(lambda detail: detail.scope == scope)

        for reflection in reflections:
            self._active[get_reflection_detail(reflection).origin.__type__] = reflection

        logger.debug(f"Synthesized scope {scope!r}: {len(reflections)} reflection(s)")
        return self

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def flush(self, reflections: Optional[Iterable[Any]] = None) -> 'ReflectionRegistry':
        """Remove reflections from the registry.

        A class whose active implementation is a removed reflection goes back
        to its origin (not to its master reflection). Entries the registry does
        not know, including master reflections, are ignored.

        For a complete reset use dispose(); flush() keeps the master
        reflections so ORIGIN_SCOPE can still be synthesized.

        Args:
            reflections: Reflections to remove. Defaults to all. A single
                         reflection class is accepted as well.
        """
        removed = 0

        for reflection in self._selection(reflections):
            index = _index_of(self._reflections, reflection)
            if index == -1:
                continue

            del self._reflections[index]
            removed += 1

            cls = get_reflection_detail(reflection).origin.__type__
            if self._active.get(cls) is reflection:
                self._active[cls] = cls

        logger.debug(f"Flushed {removed} reflection(s)")
        return self

    def dispose(self) -> 'ReflectionRegistry':
        """Reset the registry: remove reflections, master reflections and origins.

        Registered classes get their own constructor back; a later inject()
        registers them from scratch. Registries sharing a class must be
        disposed in reverse order of registration for that to hold.
        """
        self.flush()

        for hook in self._hooks.values():
            remove_constructor_hook(hook)

        count = len(self._origins)
        self._hooks.clear()
        self._active.clear()
        self._origins.clear()
        self._master_reflections.clear()

        logger.debug(f"Disposed registry: forgot {count} origin(s)")
        return self

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _selection(self, reflections: Any) -> List[Any]:
        """Snapshot the reflections argument of share_scope() and flush().

        None selects every known reflection, a lone class is a selection of
        one, and anything else that is not iterable selects nothing.
        """
        if reflections is None:
            return list(self._reflections)
        if isinstance(reflections, type):
            return [reflections]
        try:
            iterator = iter(reflections)
        except TypeError:
            logger.debug(f"Ignoring non-iterable selection {reflections!r}")
            return []
        return list(iterator)

    def _resolve_type(self, obj: Any) -> Optional[type]:
        """Map a class, instance or reflection to its registered class."""
        if obj is None:
            return None
        cls = obj if isinstance(obj, type) else type(obj)
        if cls in self._origins:
            return cls

        detail = get_reflection_detail(cls)
        if detail is not None and self._origins.get(detail.origin.__type__) is detail.origin:
            return detail.origin.__type__
        return None

    def _resolve_implementation(self, cls: type) -> type:
        return self._active.get(cls, cls)

    def _register(self, cls: type) -> None:
        origin = OriginSnapshot(cls)
        master = self._create_master_reflection(origin)

        # Last step: if the class rejects the hook nothing has been recorded yet
        hook = install_constructor_hook(cls, self._resolve_implementation)

        self._origins[cls] = origin
        self._active[cls] = cls
        self._hooks[cls] = hook
        self._master_reflections.append(master)
        logger.debug(f"Registered origin {cls.__name__}")

    def _before_call(self, detail: ReflectionDetail) -> None:
        # Scope is read at call time so share_scope() is honored
        self.synthesize(detail.scope)

    def _create_reflection(self, origin: OriginSnapshot, overrides: Mapping, vars: Optional[Dict[str, Any]]) -> type:
        detail = ReflectionDetail(
            scope=self._current_scope,
            origin=origin,
            vars=vars if vars is not None else {},
        )
        members = {
            name: wrap_operation(value, detail, self._before_call)
            for name, value in overrides.items()
        }
        return self._finish_reflection(origin, members, detail)

    def _create_master_reflection(self, origin: OriginSnapshot) -> type:
        # Default operations, unmodified apart from re-synthesizing ORIGIN_SCOPE
        detail = ReflectionDetail(scope=ORIGIN_SCOPE, origin=origin, vars={})
        members = {
            name: wrap_operation(value, detail, self._before_call)
            for name, value in collect_operations(origin.__type__).items()
        }
        return self._finish_reflection(origin, members, detail)

    @staticmethod
    def _finish_reflection(origin: OriginSnapshot, members: Dict[str, Any], detail: ReflectionDetail) -> type:
        detail.members = MappingProxyType(members)
        return make_reflection_type(origin, members, detail)


def _index_of(items: List[Any], item: Any) -> int:
    """Identity-based list.index() returning -1 when absent."""
    for index, candidate in enumerate(items):
        if candidate is item:
            return index
    return -1


def _detail_field(detail: Any, name: str) -> Any:
    if isinstance(detail, Mapping):
        return detail.get(name)
    return getattr(detail, name, None)
