"""
Scoped runtime behavior overrides for Python classes.

This package lets you register named, scoped variants ("reflections") of a
class's operations and attributes over its default behavior ("origin"), and
atomically switch which variant is active for that class.

Key Features:
- Reflections are generated subclasses: unspecified members fall through to the origin
- Scopes group reflections of different classes for joint activation
- Overrides reach the default implementation through ``self.__ioc__.origin``
- Transitively constructed objects follow the scope of the code constructing them
- ORIGIN_SCOPE switches back to default behavior without losing reflections

Quick Start:
    >>> from scopedioc import ReflectionRegistry, ORIGIN_SCOPE
    >>>
    >>> class Greeter:
    ...     def greet(self):
    ...         return "hello"
    >>>
    >>> registry = ReflectionRegistry()
    >>> _ = (registry
    ...     .switch_scope("loud")
    ...     .inject(Greeter, {"greet": lambda self: self.__ioc__.origin.greet(self).upper()})
    ...     .synthesize("loud"))
    >>> Greeter().greet()
    'HELLO'
    >>> _ = registry.synthesize(ORIGIN_SCOPE)
    >>> Greeter().greet()
    'hello'

Architecture:
    inject()      captures the origin on first use and appends a reflection
    synthesize()  points each class of a scope at its reflection
    flush()       removes reflections, reverting active ones to the origin
    dispose()     forgets everything and gives classes their constructor back

Modules:
    - registry: ReflectionRegistry
    - reflection: reflection details, operation wrapping, generated subclasses
    - origin: immutable origin snapshots
    - constructor_hook: construction dispatch for registered classes
    - scopes: ORIGIN_SCOPE and the process-wide scope counter
    - config: package configuration
"""

# Registry
from scopedioc.registry import ReflectionRegistry

# Scopes
from scopedioc.scopes import ORIGIN_SCOPE, get_num_scopes

# Origins and reflections
from scopedioc.origin import OriginSnapshot
from scopedioc.reflection import (
    ReflectionDetail,
    InjectionDetail,
    get_reflection_detail,
    is_reflection_type,
)

# Configuration
from scopedioc.config import set_scope_prefix, get_scope_prefix

__all__ = [
    # Registry
    'ReflectionRegistry',
    # Scopes
    'ORIGIN_SCOPE',
    'get_num_scopes',
    # Origins and reflections
    'OriginSnapshot',
    'ReflectionDetail',
    'InjectionDetail',
    'get_reflection_detail',
    'is_reflection_type',
    # Configuration
    'set_scope_prefix',
    'get_scope_prefix',
]

__version__ = '1.0.0'
__description__ = 'Scoped runtime behavior overrides for Python classes'
