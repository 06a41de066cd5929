"""
Retrieval strategy resolver tests

🧭 Four parameter combinations, three strategies, exactly one hook call.
"""

import pytest

from crudflow import Pagination, RetrievalStrategy, Sort, UNPAGINATED, UNSORTED, resolve_strategy
from crudflow.core.resolver import resolve_count, resolve_page
from crudflow.core.text import normalize_search


class RecordingAdapter:
    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        if not name.startswith("internal_"):
            raise AttributeError(name)

        def hook(*args):
            self.calls.append((name,) + args)
            return name

        return hook


@pytest.mark.parametrize("search, query, expected", [
    (None, None, RetrievalStrategy.ALL),
    ("", None, RetrievalStrategy.ALL),
    ("bob", None, RetrievalStrategy.SEARCH),
    ("bob", "age=gt=30", RetrievalStrategy.SEARCH_WITH_QUERY),
    (None, "age=gt=30", RetrievalStrategy.SEARCH_WITH_QUERY),
])
def test_strategy_is_a_function_of_presence(search, query, expected):
    assert resolve_strategy(search, query) is expected


@pytest.mark.parametrize("raw, expected", [
    (None, None), ("", None), ("   ", None), ("\t\n", None), ("  bob ", "bob"), ("bob", "bob"),
])
def test_normalize_search(raw, expected):
    assert normalize_search(raw) == expected


class TestResolvePage:

    def test_search_only(self):
        adapter = RecordingAdapter()
        pagination = Pagination.of(0, 10)

        result = resolve_page(adapter, "bob", None, pagination, None)

        assert result == "internal_search"
        assert adapter.calls == [("internal_search", "bob", pagination, UNSORTED)]

    def test_absent_parameters_use_sentinels(self):
        adapter = RecordingAdapter()

        resolve_page(adapter, "  ", None, None, None)

        assert adapter.calls == [("internal_page", UNPAGINATED, UNSORTED)]

    def test_query_wins_over_missing_search(self):
        adapter = RecordingAdapter()
        sort = Sort.by("name")

        resolve_page(adapter, None, "name==bob", None, sort)

        assert adapter.calls == [("internal_search_query", None, UNPAGINATED, sort, "name==bob")]

    def test_empty_query_sequence_is_still_present(self):
        adapter = RecordingAdapter()

        resolve_page(adapter, "bob", [], None, None)

        assert adapter.calls[0][0] == "internal_search_query"


class TestResolveCount:

    @pytest.mark.parametrize("search, query, expected", [
        (None, None, ("internal_count",)),
        (" bob", None, ("internal_count_search", "bob")),
        ("bob", "x==1", ("internal_count_search_query", "bob", "x==1")),
        ("", "x==1", ("internal_count_search_query", None, "x==1")),
    ])
    def test_dispatch(self, search, query, expected):
        adapter = RecordingAdapter()

        resolve_count(adapter, search, query)

        assert adapter.calls == [expected]

    def test_returns_hook_result_unchanged(self):
        async def pending():
            return 3

        class AsyncAdapter:
            def internal_count(self):
                return coroutine

        coroutine = pending()
        try:
            assert resolve_count(AsyncAdapter(), None, None) is coroutine
        finally:
            coroutine.close()
