"""Tests for recency ranking and remembered selections."""

import json

import pytest

from quickjira.jira.models import Project
from quickjira.recent import (
    RECENT_ASSIGNEE_ID,
    RECENT_ISSUE_TYPE_ID,
    RECENT_OPEN_PROJECT_KEYS,
    RECENT_PROJECT_KEY,
    RecentSelections,
    parse_recent_keys,
    push_recent,
    rank_by_recent,
    rank_by_recent_list,
)


def _projects(*keys: str) -> list[Project]:
    return [Project(id=str(i), key=key, name=f"Project {key}") for i, key in enumerate(keys)]


def _keys(projects) -> list[str]:
    return [p.key for p in projects]


class TestRankByRecent:
    """Tests for the single-key form."""

    def test_recent_item_moves_first(self) -> None:
        ranked = rank_by_recent(_projects("A", "B", "C"), lambda p: p.key, "C")
        assert _keys(ranked) == ["C", "A", "B"]

    def test_empty_key_returns_input(self) -> None:
        items = _projects("A", "B")
        assert rank_by_recent(items, lambda p: p.key, None) is items
        assert rank_by_recent(items, lambda p: p.key, "") is items

    def test_unknown_key_keeps_order(self) -> None:
        ranked = rank_by_recent(_projects("A", "B"), lambda p: p.key, "Z")
        assert _keys(ranked) == ["A", "B"]

    def test_matches_keep_relative_order(self) -> None:
        items = [("x", 1), ("y", 2), ("x", 3), ("z", 4), ("x", 5)]
        ranked = rank_by_recent(items, lambda item: item[0], "x")
        assert ranked == [("x", 1), ("x", 3), ("x", 5), ("y", 2), ("z", 4)]


class TestRankByRecentList:
    """Tests for the ordered-list form."""

    def test_orders_by_recent_list(self) -> None:
        ranked = rank_by_recent_list(_projects("A", "B", "C", "D"), lambda p: p.key, ["C", "A"])
        assert _keys(ranked) == ["C", "A", "B", "D"]

    def test_unranked_keep_original_order(self) -> None:
        ranked = rank_by_recent_list(
            _projects("E", "D", "C", "B", "A"), lambda p: p.key, ["B"]
        )
        assert _keys(ranked) == ["B", "E", "D", "C", "A"]

    def test_empty_list_returns_input(self) -> None:
        items = _projects("A", "B")
        assert rank_by_recent_list(items, lambda p: p.key, []) is items

    def test_keys_missing_from_items_are_ignored(self) -> None:
        ranked = rank_by_recent_list(_projects("A", "B"), lambda p: p.key, ["X", "B", "Y"])
        assert _keys(ranked) == ["B", "A"]


class TestPushRecent:
    """Tests for push_recent."""

    def test_new_key_goes_first(self) -> None:
        assert push_recent(["A", "B"], "C") == ["C", "A", "B"]

    def test_existing_key_is_moved_not_duplicated(self) -> None:
        assert push_recent(["A", "B", "C"], "B") == ["B", "A", "C"]

    def test_capped_at_limit(self) -> None:
        keys = [f"P{i}" for i in range(20)]
        updated = push_recent(keys, "NEW")
        assert len(updated) == 20
        assert updated[0] == "NEW"
        assert "P19" not in updated

    def test_input_is_not_mutated(self) -> None:
        keys = ["A"]
        push_recent(keys, "B")
        assert keys == ["A"]


class TestParseRecentKeys:
    """Tests for decoding the stored list."""

    @pytest.mark.parametrize("raw", [None, "", "not json", '{"a": 1}', "42"])
    def test_invalid_values_give_empty_list(self, raw) -> None:
        assert parse_recent_keys(raw) == []

    def test_non_strings_are_dropped(self) -> None:
        assert parse_recent_keys('["A", 1, null, "B"]') == ["A", "B"]


class TestRecentSelections:
    """Tests for RecentSelections over an injected store."""

    @pytest.mark.asyncio
    async def test_load_empty_store(self, memory_store) -> None:
        state = await RecentSelections(memory_store).load()
        assert state.project_key is None
        assert state.issue_type_id is None
        assert state.assignee_id is None
        assert state.open_project_keys == []

    @pytest.mark.asyncio
    async def test_remember_creation(self, memory_store) -> None:
        recent = RecentSelections(memory_store)
        await recent.remember_creation("ENG", "10001", "557058:abc")

        state = await recent.load()
        assert state.project_key == "ENG"
        assert state.issue_type_id == "10001"
        assert state.assignee_id == "557058:abc"

    @pytest.mark.asyncio
    async def test_unassigned_creation_keeps_previous_assignee(self, memory_store) -> None:
        store = memory_store
        store.values[RECENT_ASSIGNEE_ID] = "old-id"
        await RecentSelections(store).remember_creation("OPS", "10002", None)

        assert store.values[RECENT_PROJECT_KEY] == "OPS"
        assert store.values[RECENT_ISSUE_TYPE_ID] == "10002"
        assert store.values[RECENT_ASSIGNEE_ID] == "old-id"

    @pytest.mark.asyncio
    async def test_record_project_open(self, memory_store) -> None:
        store = memory_store
        store.values[RECENT_OPEN_PROJECT_KEYS] = json.dumps(["A", "B"])
        recent = RecentSelections(store)

        updated = await recent.record_project_open("B")

        assert updated == ["B", "A"]
        assert json.loads(store.values[RECENT_OPEN_PROJECT_KEYS]) == ["B", "A"]

    @pytest.mark.asyncio
    async def test_record_project_open_respects_limit(self, memory_store) -> None:
        recent = RecentSelections(memory_store, max_open_projects=3)
        for key in ["A", "B", "C", "D"]:
            await recent.record_project_open(key)

        state = await recent.load()
        assert state.open_project_keys == ["D", "C", "B"]

    @pytest.mark.asyncio
    async def test_corrupt_list_is_replaced(self, memory_store) -> None:
        store = memory_store
        store.values[RECENT_OPEN_PROJECT_KEYS] = "{broken"
        updated = await RecentSelections(store).record_project_open("ENG")
        assert updated == ["ENG"]
