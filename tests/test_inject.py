"""Tests for ReflectionRegistry.inject()."""
import pytest

from scopedioc import get_reflection_detail


class TestInjectArguments:
    """Test argument handling of inject()."""

    def test_returns_registry(self, registry, klass):
        assert registry.inject(klass, {}) is registry

    def test_no_op_without_target(self, registry):
        registry.inject(None, {})
        assert registry.get_reflections_where(lambda detail: True) == []

    def test_no_op_without_overrides(self, registry, klass):
        registry.inject(klass, None)
        assert registry.get_origin_of(klass) is None
        assert '__new__' not in klass.__dict__

    def test_rejects_non_mapping_overrides(self, registry, klass):
        with pytest.raises(TypeError):
            registry.inject(klass, ['get'])

    def test_rejects_immutable_type(self, registry):
        with pytest.raises(TypeError):
            registry.inject(int, {'real': 0})
        assert registry.get_origin_of(int) is None
        assert registry.get_reflections_where(lambda detail: True) == []

    def test_rejects_slot_override(self, registry):
        """Overriding a slot would hide its descriptor and break __init__."""
        class Slotted:
            __slots__ = ('x',)

            def __init__(self):
                self.x = 1

        with pytest.raises(TypeError, match='x'):
            registry.inject(Slotted, {'x': 2})

        assert registry.get_origin_of(Slotted) is None
        assert '__new__' not in Slotted.__dict__
        assert Slotted().x == 1

    def test_slotted_class_other_members(self, registry):
        class Slotted:
            __slots__ = ('x',)

            def __init__(self):
                self.x = 1

            def get(self):
                return self.x

        registry.inject(Slotted, {'get': lambda self: self.x + 1}).synthesize()

        assert Slotted().get() == 2


class TestRegistration:
    """Test origin registration on first injection."""

    def test_stores_origin(self, registry, klass):
        registry.inject(klass, {})
        assert registry.get_origin_of(klass).__type__ is klass

    def test_stores_origin_by_instance(self, registry, klass):
        registry.inject(klass(), {})
        assert registry.get_origin_of(klass).__type__ is klass

    def test_creates_reflection(self, registry, klass):
        registry.inject(klass, {})
        assert len(registry.get_reflections_of(klass)) == 1

    def test_origin_registered_once(self, registry, klass):
        registry.inject(klass, {})
        origin = registry.get_origin_of(klass)
        registry.inject(klass, {})

        reflections = registry.get_reflections_of(klass)
        assert [get_reflection_detail(r).origin for r in reflections] == [origin, origin]

    def test_multiple_reflections(self, registry, klass):
        registry.inject(klass, {}).switch_scope().inject(klass, {})
        assert len(registry.get_reflections_of(klass)) == 2

    def test_inject_through_reflection_instance(self, registry, klass):
        """A reflection instance resolves back to the registered class."""
        registry.inject(klass, {'prop': 'a'}).synthesize()
        instance = klass()

        registry.switch_scope('second').inject(instance, {'prop': 'b'})

        assert len(registry.get_reflections_of(klass)) == 2
        assert registry.get_origin_of(klass).__type__ is klass

    def test_does_not_activate(self, registry, klass):
        registry.inject(klass, {'get': lambda self: 'injected'})

        assert registry.is_origin(klass)
        assert klass().get() == 'default-foo'


class TestReflectionDetail:
    """Test the detail attached to each reflection."""

    @pytest.fixture
    def reflection(self, registry, klass):
        registry.switch_scope('my_scope').inject(klass, {})
        return registry.get_reflections_of(klass)[0]

    def test_detail_attribute(self, reflection):
        assert reflection.__ioc__ is get_reflection_detail(reflection)

    def test_current_scope(self, reflection):
        assert reflection.__ioc__.scope == 'my_scope'

    def test_origin(self, registry, klass, reflection):
        assert reflection.__ioc__.origin is registry.get_origin_of(klass)

    def test_default_vars(self, reflection):
        assert reflection.__ioc__.vars == {}

    def test_custom_vars(self, registry, klass):
        registry.switch_scope('custom_vars').inject(klass, {}, {'foo': 'bar'})
        detail = registry.get_reflections_of(klass)[0].__ioc__

        assert detail.vars == {'foo': 'bar'}
        assert detail.scope == 'custom_vars'

    def test_later_injection_leaves_detail(self, registry, klass, reflection):
        registry.switch_scope().inject(klass, {}, {'other': True})

        assert reflection.__ioc__.scope == 'my_scope'
        assert reflection.__ioc__.vars == {}

    def test_members(self, registry, klass):
        registry.inject(klass, {'prop': 'bar'})
        members = registry.get_reflections_of(klass)[0].__ioc__.members

        assert dict(members) == {'prop': 'bar'}
        with pytest.raises(TypeError):
            members['prop'] = 'baz'


class TestReflectionMembers:
    """Test how overrides are layered over the origin."""

    def test_overrides_method(self, registry, klass):
        registry.inject(klass, {'get': lambda self: 'injected'})
        reflection = registry.get_reflections_of(klass)[0]

        assert reflection.get is not registry.get_origin_of(klass).get
        assert reflection().get() == 'injected'

    def test_overrides_property(self, registry, klass):
        registry.inject(klass, {'prop': 'bar'})
        reflection = registry.get_reflections_of(klass)[0]

        assert reflection.prop == 'bar'
        assert registry.get_origin_of(klass).prop == 'foo'
        assert klass.prop == 'foo'

    def test_keeps_origin_members(self, registry, klass):
        registry.inject(klass, {'extra': lambda self: 'extra'})
        instance = registry.get_reflections_of(klass)[0]()

        assert instance.get() == 'default-foo'
        assert instance.extra() == 'extra'

    def test_new_class(self, registry, klass):
        registry.inject(klass, {})
        reflection = registry.get_reflections_of(klass)[0]

        assert reflection is not klass
        assert issubclass(reflection, klass)

    def test_values_are_shared_not_copied(self, registry, klass):
        """Only the override slot is per reflection; nested state is shared."""
        shared = []
        (registry
            .switch_scope('a').inject(klass, {'items': shared})
            .switch_scope('b').inject(klass, {'items': shared}))
        first, second = registry.get_reflections_of(klass)

        first.items.append(1)
        assert second.items == [1]

    def test_origin_supercall(self, registry, klass):
        registry.inject(klass, {
            'get': lambda self: 'wrapped(' + self.__ioc__.origin.get(self) + ')',
        }).synthesize()

        assert klass().get() == 'wrapped(default-foo)'
