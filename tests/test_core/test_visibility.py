"""
Tests the group listing filters.
"""

from datetime import datetime, timezone

import pytest

from groupactions.core.geo import distance_in_miles, within_distance
from groupactions.core.group import GroupData
from groupactions.core.visibility import (
    GroupQuery,
    filter_groups,
    parse_tags,
    visible_groups,
)


def make_group(group_id: int, **kwargs) -> GroupData:
    return GroupData(
        group_id=group_id,
        name=kwargs.pop("name", f"Group {group_id}"),
        group_code=kwargs.pop("group_code", f"CODE{group_id:05d}"),
        created_by_user_id=1,
        **kwargs,
    )


LONDON = (51.5074, -0.1278)
OXFORD = (51.7520, -1.2577)

GROUPS = [
    make_group(1, name="Everyone"),
    make_group(
        2, name="Thames Cleanup", tags=["litter", "river"], latitude=LONDON[0], longitude=LONDON[1]
    ),
    make_group(
        3, name="Oxford Trees", tags=["trees"], latitude=OXFORD[0], longitude=OXFORD[1]
    ),
    make_group(4, name="Secret Club", private=True),
    make_group(5, name="Gone", deleted_at=datetime(2024, 1, 1, tzinfo=timezone.utc)),
    make_group(6, name="Nowhere litter", tags=["litter"]),
]


def ids(groups: list[GroupData]) -> list[int]:
    return [g.group_id for g in groups]


def test_parse_tags():
    assert parse_tags("litter, river,,trees ") == {"litter", "river", "trees"}
    assert parse_tags("") == set()
    assert parse_tags(" , ") == set()


def test_anonymous_listing_is_public_only():
    listed = visible_groups(public=GROUPS, query=GroupQuery())

    assert ids(listed) == [2, 3, 6]


def test_group_code_and_query():
    assert ids(visible_groups(GROUPS, GroupQuery(group_code="CODE00003"))) == [3]
    assert ids(visible_groups(GROUPS, GroupQuery(query="Thames"))) == [2]
    # The query also matches an exact group code
    assert ids(visible_groups(GROUPS, GroupQuery(query="CODE00006"))) == [6]
    # Name matching is case sensitive
    assert ids(visible_groups(GROUPS, GroupQuery(query="thames"))) == []


def test_tags_are_conjunctive():
    assert ids(visible_groups(GROUPS, GroupQuery(tag="litter"))) == [2, 6]
    assert ids(visible_groups(GROUPS, GroupQuery(tag="litter,river"))) == [2]
    assert ids(visible_groups(GROUPS, GroupQuery(tag="litter,trees"))) == []


@pytest.mark.parametrize(
    "tags",
    [["litter"], ["litter", "river"], ["litter", "river", "trees"]],
)
def test_more_tags_never_widen(tags):
    narrower = visible_groups(GROUPS, GroupQuery(tag=",".join(tags)))
    wider = visible_groups(GROUPS, GroupQuery(tag=",".join(tags[:-1])))

    assert set(ids(narrower)) <= set(ids(wider))


def test_location_filter():
    query = GroupQuery(lat=LONDON[0], long=LONDON[1], distance=10)
    assert ids(visible_groups(GROUPS, query)) == [2]

    query = GroupQuery(lat=LONDON[0], long=LONDON[1], distance=100)
    assert ids(visible_groups(GROUPS, query)) == [2, 3]

    # Partial location parameters leave the filter off
    query = GroupQuery(lat=LONDON[0], long=LONDON[1])
    assert ids(visible_groups(GROUPS, query)) == [2, 3, 6]


def test_distance_boundary_is_inclusive():
    distance = distance_in_miles(*LONDON, *OXFORD)

    assert 50 < distance < 53
    assert within_distance(*LONDON, *OXFORD, distance)
    assert not within_distance(*LONDON, *OXFORD, distance - 1e-6)
    assert distance_in_miles(*LONDON, *LONDON) == 0


def test_member_groups_bypass_filters():
    member_groups = [GROUPS[0], GROUPS[3], GROUPS[4], GROUPS[2]]

    listed = visible_groups(
        public=GROUPS, query=GroupQuery(tag="trees"), member_groups=member_groups
    )

    # Reserved and private member groups are added, deleted ones never are,
    # and groups already listed are not repeated.
    assert ids(listed) == [3, 1, 4]


def test_filter_groups_ignores_visibility():
    assert ids(filter_groups(GROUPS, GroupQuery(query="Secret"))) == [4]
