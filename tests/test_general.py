"""
Tests for the general utilities module.
"""

import threading
import pytest
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from corrmath.utils.general import evaluate_keyed, unordered_pairs


class TestUnorderedPairs:
    """Tests for unordered_pairs."""

    def test_pairs(self):
        assert unordered_pairs(['a', 'b', 'c']) == [('a', 'b'), ('a', 'c'), ('b', 'c')]

    def test_small(self):
        assert unordered_pairs([]) == []
        assert unordered_pairs([1]) == []


class TestEvaluateKeyed:
    """Tests for evaluate_keyed."""

    def test_inline(self):
        tasks = {'x': (1, 2), 'y': (3, 4)}
        assert evaluate_keyed(lambda a, b: a + b, tasks) == {'x': 3, 'y': 7}

    def test_threaded_order(self):
        """Test that results follow task order regardless of completion order."""
        tasks = {i: (i,) for i in range(20)}
        result = evaluate_keyed(lambda i: i * i, tasks, max_workers=4)

        assert list(result.keys()) == list(range(20))
        assert result[7] == 49

    def test_threads_used(self):
        seen = set()

        def record(i):
            seen.add(threading.get_ident())
            return i

        evaluate_keyed(record, {i: (i,) for i in range(10)}, max_workers=1)
        assert seen == {threading.get_ident()}

    def test_errors_propagate(self):
        def fail(i):
            raise ValueError(f"bad {i}")

        with pytest.raises(ValueError):
            evaluate_keyed(fail, {1: (1,), 2: (2,)}, max_workers=2)
