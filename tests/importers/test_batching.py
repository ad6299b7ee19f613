import math

import pytest

from import_engine.batching import batched


@pytest.mark.parametrize("n", [1, 2, 5, 10, 11])
@pytest.mark.parametrize("size", [1, 2, 3, 10])
def test_batch_count_and_sizes(n, size):
    batches = list(batched(range(n), size))
    assert len(batches) == math.ceil(n / size)
    assert all(len(b) == size for b in batches[:-1])
    assert 0 < len(batches[-1]) <= size


def test_rows_keep_source_order():
    batches = list(batched("abcdefg", 3))
    assert batches == [["a", "b", "c"], ["d", "e", "f"], ["g"]]


def test_empty_source_yields_nothing():
    assert list(batched([], 5)) == []


def test_exact_multiple_has_no_trailing_empty_batch():
    assert list(batched(range(4), 2)) == [[0, 1], [2, 3]]


def test_consumes_lazily():
    seen = []

    def source():
        for i in range(5):
            seen.append(i)
            yield i

    gen = batched(source(), 2)
    assert next(gen) == [0, 1]
    assert seen == [0, 1]


def test_batch_size_must_be_positive():
    with pytest.raises(ValueError):
        list(batched([1], 0))
