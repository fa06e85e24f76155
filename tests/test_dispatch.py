import logging
from types import MappingProxyType

import pytest
from iteratez import (
    DetectorRegistry,
    Iterate,
    UnsupportedActionError,
    func,
    iterate,
    of_list,
    registry,
)


class Box:
    def __init__(self, *items):
        self.items_held = list(items)


class TestDispatch:
    """Test automatic source detection and reusable pipelines"""

    def setup_method(self):
        registry.reset()

    def teardown_method(self):
        registry.reset()

    def test_builtin_detection(self):
        """Test the kinds of values iterate() recognises"""
        it = of_list([1])
        assert iterate(it) is it
        assert iterate([1, 2]).to_list() == [1, 2]
        assert iterate({1, 2}).to_set() == {1, 2}
        assert iterate({'a': 1}).to_dict() == {'a': 1}
        assert iterate((1, 2)).to_list() == [1, 2]
        assert iterate(None).to_list() == []
        assert iterate().to_list() == []
        assert iterate(5).to_list() == [5]
        assert iterate(Box(1)).to_dict() == {'items_held': [1]}

    def test_string_is_iterated_by_character(self):
        assert iterate('xyz').to_list() == ['x', 'y', 'z']

    def test_read_only_mapping(self):
        """Test that immutable mappings are iterated read-only"""
        proxy = MappingProxyType({'a': 1})
        assert iterate(proxy).to_dict() == {'a': 1}

        with pytest.raises(UnsupportedActionError):
            iterate(proxy).delete()

    def test_mutation_through_dispatch(self):
        """Test that detected lists, sets and dicts are mutable"""
        data = [1, 2, 3]
        iterate(data).where(lambda x: x > 1).delete()
        assert data == [1]

        members = {1, 2, 3}
        iterate(members).where(lambda x: x > 1).delete()
        assert members == {1}

    def test_register_custom_detector(self, caplog):
        """Test prepending a detector for a custom structure"""
        def detect_box(value):
            return of_list(value.items_held) if isinstance(value, Box) else None

        with caplog.at_level(logging.INFO, logger='iteratez'):
            registry.register(detect_box)

        assert iterate(Box(1, 2)).to_list() == [1, 2]
        assert 'Registered detector detect_box' in caplog.text

        assert registry.unregister(detect_box) is True
        assert registry.unregister(detect_box) is False
        assert iterate(Box(1, 2)).to_dict() == {'items_held': [1, 2]}

    def test_register_last(self):
        """Test that detectors registered last still run before the fallback"""
        registry_size = len(registry)
        seen = []

        def detect_int(value):
            seen.append(value)
            return of_list([value, value]) if isinstance(value, int) else None

        registry.register(detect_int, first=False)
        assert len(registry) == registry_size + 1
        assert list(registry)[-1] is detect_int
        assert iterate(7).to_list() == [7, 7]

    def test_separate_registry(self):
        """Test a registry with its own detectors and fallback"""
        local = DetectorRegistry(detectors=[], fallback=lambda value: of_list(['fallback']))

        assert len(local) == 0
        assert local.detect([1, 2]).to_list() == ['fallback']

    def test_func_pipeline(self):
        """Test reusable pipelines across sources"""
        count_even = func(lambda it, set_result: it.where(lambda x: x % 2 == 0).count(set_result=set_result))

        assert count_even([1, 2, 3, 4]) == 2
        assert count_even({'a': 2}) == 1
        assert count_even(None) == 0

    def test_func_extra_arguments(self):
        """Test pipelines receiving extra arguments and mutating"""
        def remove_above(it, set_result, limit):
            it.where(lambda x: x > limit).extract(set_result=lambda extracted: set_result(extracted.to_list()))

        remover = func(remove_above)
        data = [1, 5, 2, 8]

        assert remover(data, 3) == [5, 8]
        assert data == [1, 2]

    def test_func_without_result(self):
        """Test that a pipeline that never sets a result returns None"""
        run = func(lambda it, set_result: it.delete())
        assert run([1]) is None
