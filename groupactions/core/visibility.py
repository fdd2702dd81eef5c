"""
Decides which groups a caller gets back from the group listing.

The public set (non-private, non-deleted, not the reserved group) is narrowed
by the query filters. Groups the caller is a member of are then merged in
without re-applying the filters.
"""

import csv
from typing import Iterable

from pydantic import BaseModel

from .geo import within_distance
from .group import GroupData


class GroupQuery(BaseModel):
    group_code: str | None = None
    query: str | None = None
    tag: str | None = None
    lat: float | None = None
    long: float | None = None
    distance: float | None = None

    @property
    def has_location(self) -> bool:
        return (
            self.lat is not None and self.long is not None and self.distance is not None
        )


def parse_tags(tag: str) -> set[str]:
    """
    Parse a comma separated tag list. Whitespace is removed entirely and only
    the first CSV row is used. Empty entries are dropped.
    """
    rows = list(csv.reader([tag.replace(" ", "")]))

    if not rows:
        return set()

    return {x for x in rows[0] if x}


def is_public(group: GroupData, reserved_group_id: int = 1) -> bool:
    return (
        not group.private
        and group.deleted_at is None
        and group.group_id != reserved_group_id
    )


def matches(group: GroupData, query: GroupQuery) -> bool:
    """
    Check a single group against every filter present in `query`.
    """
    if query.group_code and group.group_code != query.group_code:
        return False

    if query.query and not (
        group.group_code == query.query or query.query in group.name
    ):
        return False

    if query.tag:
        wanted = parse_tags(query.tag)
        if not wanted.issubset(set(group.tags)):
            return False

    if query.has_location:
        if group.latitude is None or group.longitude is None:
            return False

        if not within_distance(
            group.latitude, group.longitude, query.lat, query.long, query.distance
        ):
            return False

    return True


def filter_groups(groups: Iterable[GroupData], query: GroupQuery) -> list[GroupData]:
    return [group for group in groups if matches(group, query)]


def merge_member_groups(
    public: Iterable[GroupData], member_groups: Iterable[GroupData]
) -> list[GroupData]:
    """
    Union of the (filtered) public groups and the caller's own groups,
    deduplicated by `group_id`. Public groups keep their order and come first.
    """
    merged = list(public)
    seen = {group.group_id for group in merged}

    for group in member_groups:
        if group.group_id in seen or group.deleted_at is not None:
            continue
        seen.add(group.group_id)
        merged.append(group)

    return merged


def visible_groups(
    public: Iterable[GroupData],
    query: GroupQuery,
    member_groups: Iterable[GroupData] = (),
    reserved_group_id: int = 1,
) -> list[GroupData]:
    """
    The full listing: filter the public set, then add the caller's groups.
    """
    candidates = [g for g in public if is_public(g, reserved_group_id=reserved_group_id)]

    return merge_member_groups(filter_groups(candidates, query), member_groups)
