# tests/test_relational_resolver.py

"""
Tests for site view resolution and its fallback chain.
"""

import asyncio

import pytest

from postgrest.exceptions import APIError

from core.errors import QueryFailure, is_relationship_ambiguity
from core.relational_resolver import (
    SITE_VIEW_STRATEGIES,
    ResolutionStrategy,
    SiteQuery,
    fetch_site_views,
    fetch_sites_with_owners,
    resolve,
    site_query_for,
)
from tests.fakes import CLIENT_ID, ambiguity_error


def _by_id(views):
    return {view.id: view for view in views}


def _summary(views):
    return [
        (v.id, v.site_name, v.owner_label, v.checklist_label, v.checklist.id if v.checklist else None)
        for v in views
    ]


def test_joined_strategy_builds_full_views(fake_db):
    """Test the single-query path with named foreign keys."""
    views = asyncio.run(fetch_site_views(fake_db))

    by_id = _by_id(views)
    assert by_id[1].owner_name == "Carol Client"
    assert by_id[1].checklist.title == "Daily Walkthrough"
    assert by_id[2].checklist_label == "Kitchen"
    assert by_id[3].owner_label == "Unassigned"
    assert by_id[3].checklist_label == "No checklist"

    # newest first by default
    assert [v.id for v in views] == [3, 2, 1]
    assert len(fake_db.selects("sites")) == 1
    assert fake_db.selects("checklists") == []


def test_ambiguity_falls_back_to_point_lookups(fake_db):
    """Test that the fallback path yields the same views as the joined path."""
    expected = _summary(asyncio.run(fetch_site_views(fake_db)))

    fake_db.fail_select("sites", ambiguity_error(), columns_contain="checklists!")
    views = asyncio.run(fetch_site_views(fake_db))

    assert _summary(views) == expected
    # one lookup per distinct checklist id (sites 1 and 2)
    assert len(fake_db.selects("checklists")) == 2


def test_fallback_dedupes_checklist_lookups(fake_db):
    """Test that sites sharing a checklist trigger a single lookup."""
    fake_db.tables["sites"][2]["checklist_id"] = 1
    fake_db.fail_select("sites", ambiguity_error(), columns_contain="checklists!")

    views = asyncio.run(fetch_site_views(fake_db))

    assert _by_id(views)[3].checklist.title == "Daily Walkthrough"
    assert len(fake_db.selects("checklists")) == 2


def test_failed_checklist_lookup_leaves_it_unresolved(fake_db):
    """Test that one failed follow-up does not fail the batch."""
    fake_db.fail_select("sites", ambiguity_error(), columns_contain="checklists!")
    fake_db.fail_when(
        lambda q: q.table_name == "checklists" and ("eq", "id", 2) in q.filters,
        Exception("connection reset"),
    )

    views = _by_id(asyncio.run(fetch_site_views(fake_db)))

    assert views[1].checklist.title == "Daily Walkthrough"
    assert views[2].checklist is None
    assert views[2].checklist_label == "No checklist"


def test_non_ambiguity_error_is_not_masked(fake_db):
    """Test that an ordinary failure surfaces instead of falling back."""
    fake_db.fail_select("sites", Exception("permission denied for table sites"))

    with pytest.raises(QueryFailure) as exc:
        asyncio.run(fetch_site_views(fake_db))

    assert "permission denied" in exc.value.message
    assert len(fake_db.selects("sites")) == 1


def test_all_strategies_ambiguous_raises(fake_db):
    """Test that exhausting every strategy is a QueryFailure."""
    fake_db.fail_select("sites", ambiguity_error(right="profiles"))

    with pytest.raises(QueryFailure) as exc:
        asyncio.run(fetch_site_views(fake_db))

    assert "more than one relationship" in exc.value.message
    assert len(fake_db.selects("sites")) == len(SITE_VIEW_STRATEGIES)


def test_resolve_uses_caller_fallback_predicate(fake_db):
    """Test resolve() with custom strategies and predicate."""
    attempts = []

    async def first(client, query):
        attempts.append("first")
        raise KeyError("retry me")

    async def second(client, query):
        attempts.append("second")
        return ["ok"]

    result = asyncio.run(resolve(
        fake_db,
        SiteQuery(),
        [ResolutionStrategy("first", first), ResolutionStrategy("second", second)],
        should_fall_back=lambda e: isinstance(e, KeyError),
    ))

    assert result == ["ok"]
    assert attempts == ["first", "second"]


def test_client_scope_only_sees_owned_sites(fake_db, client_user, staff_user):
    """Test that clients are filtered to their own sites."""
    client_views = asyncio.run(fetch_site_views(fake_db, site_query_for(client_user)))
    assert [v.id for v in client_views] == [1]
    assert all(v.profile_id == CLIENT_ID for v in client_views)

    staff_views = asyncio.run(fetch_site_views(fake_db, site_query_for(staff_user)))
    assert len(staff_views) == 3


def test_sites_with_owners_skips_checklists(fake_db):
    """Test the owner-only view."""
    views = asyncio.run(fetch_sites_with_owners(
        fake_db, SiteQuery(order_by="site_name", descending=False)
    ))

    assert [v.site_name for v in views] == ["East Office", "North Plant", "South Depot"]
    assert all(v.checklist is None for v in views)
    assert _by_id(views)[2].owner_name == "Dan Client"
    assert all("checklists" not in cols for cols in fake_db.selects("sites"))


def test_sites_with_owners_wraps_errors(fake_db):
    """Test that the owner-only view does not fall back."""
    fake_db.fail_select("sites", ambiguity_error(right="profiles"))

    with pytest.raises(QueryFailure):
        asyncio.run(fetch_sites_with_owners(fake_db))


def test_one_failed_lookup_out_of_four(empty_db):
    """Test four sites with distinct checklists where one follow-up fails."""
    for n in range(1, 5):
        empty_db.tables["checklists"].append({"id": n, "title": f"List {n}", "items": []})
        empty_db.tables["sites"].append({
            "id": n,
            "site_name": f"Site {n}",
            "checklist_id": n,
            "created_at": f"2026-03-0{n}T00:00:00+00:00",
        })
    empty_db.fail_select("sites", ambiguity_error(), columns_contain="checklists!")
    empty_db.fail_when(
        lambda q: q.table_name == "checklists" and ("eq", "id", 3) in q.filters,
        Exception("timeout"),
    )

    views = asyncio.run(fetch_site_views(empty_db))

    assert len(views) == 4
    assert sorted(v.id for v in views if v.checklist is not None) == [1, 2, 4]
    assert _by_id(views)[3].checklist is None


@pytest.mark.parametrize("error,expected", [
    (ambiguity_error(), True),
    (APIError({"message": "Could not find a relationship between 'sites' and 'checklists'", "code": "PGRST200"}), True),
    (APIError({"message": "duplicate key value violates unique constraint", "code": "23505"}), False),
    (Exception("more than one relationship was found"), False),
    (TimeoutError("read timed out"), False),
])
def test_only_postgrest_embedding_errors_are_ambiguous(error, expected):
    """Test that the fallback predicate only accepts PostgREST embedding errors."""
    assert is_relationship_ambiguity(error) is expected
