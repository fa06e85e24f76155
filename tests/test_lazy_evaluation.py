import pytest
from iteratez import Iterate, IterateAction, of_list
from iteratez.compare import number_comparator


def counting_source(values, visits):
    """A custom source recording every value it offers"""
    def source(iterator):
        for index, value in enumerate(values):
            visits.append(value)
            if iterator.act(value, index) is IterateAction.STOP:
                return
    return source


class TestLazyEvaluation:
    """Test that views defer all work until an operation runs"""

    def test_views_do_not_touch_source(self):
        """Test that building a chain of views visits nothing"""
        visits = []
        chain = (
            Iterate(counting_source([3, 1, 2], visits))
            .where(lambda x: x > 0)
            .transform(lambda x: x * 2)
            .sorted(number_comparator())
            .skip(1)
            .take(5)
            .unique()
            .reverse()
        )

        assert visits == [], f"Expected no visits before an operation, got {visits}"

        result = chain.to_list()
        assert result == [6, 4], f"Expected [6, 4], got {result}"
        assert visits == [3, 1, 2], f"Expected one pass over the source, got {visits}"

    def test_view_construction_has_no_side_effects_on_list(self):
        """Test that building mutating pipelines leaves the list untouched"""
        data = [1, 2, 3, 4]
        it = of_list(data)
        it.where(lambda x: x % 2 == 0)
        it.take(2).skip(1)
        it.reverse().keys()

        assert data == [1, 2, 3, 4], f"Expected untouched list, got {data}"

    def test_first_visits_one_element(self):
        """Test that first() stops after the first element"""
        visits = []
        result = Iterate(counting_source([5, 6, 7, 8], visits)).first()

        assert result == 5, f"Expected 5, got {result}"
        assert len(visits) == 1, f"Expected exactly 1 visit, got {len(visits)}"

    def test_take_stops_deep_chain(self):
        """Test that take stops the source through several views"""
        visits = []
        result = (
            Iterate(counting_source(list(range(100)), visits))
            .where(lambda x: x % 2 == 0)
            .transform(lambda x: x + 1)
            .take(2)
            .to_list()
        )

        assert result == [1, 3], f"Expected [1, 3], got {result}"
        assert visits == [0, 1, 2], f"Expected visits to end at the 2nd match, got {visits}"

    def test_has_stops_at_first_match(self):
        """Test that has() short-circuits through a filter"""
        visits = []
        found = Iterate(counting_source([1, 3, 4, 5, 6], visits)).where(lambda x: x % 2 == 0).has()

        assert found is True, "Expected an even value to be found"
        assert visits == [1, 3, 4], f"Expected visits to end at 4, got {visits}"

    def test_idempotent_retraversal(self):
        """Test that the same operation gives the same result twice"""
        view = of_list([1, 2, 3]).where(lambda x: x > 1)

        first = view.to_list()
        second = view.to_list()

        assert first == [2, 3], f"Expected [2, 3], got {first}"
        assert first == second, f"Expected identical results, got {first} and {second}"

    def test_views_see_later_source_changes(self):
        """Test that a view reads the source at traversal time"""
        data = [1, 2]
        view = of_list(data).transform(lambda x: x * 10)
        data.append(3)

        result = view.to_list()
        assert result == [10, 20, 30], f"Expected [10, 20, 30], got {result}"

    def test_python_iteration(self):
        """Test that an Iterate can be used in a for loop"""
        iterated = []
        for value in of_list([1, 2, 3, 4, 5]):
            iterated.append(value)

        assert iterated == [1, 2, 3, 4, 5], f"Expected [1..5], got {iterated}"

    def test_clone_allows_nested_traversal(self):
        """Test that a clone can traverse while the original is running"""
        it = of_list([1, 2, 3])
        pairs = []

        def outer(value, key, iterator):
            it.clone().each(lambda inner: pairs.append((value, inner)))

        it.each(outer)

        assert len(pairs) == 9, f"Expected 9 pairs, got {len(pairs)}"
        assert pairs[:3] == [(1, 1), (1, 2), (1, 3)], f"Unexpected pairs {pairs[:3]}"

    def test_callback_cleared_after_each(self):
        """Test that each() clears the callback even when it raises"""
        it = of_list([1, 2])

        def explode(value):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            it.each(explode)

        assert it.callback is None, "Expected callback to be cleared after an error"
