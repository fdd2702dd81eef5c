"""
Tests the action service layer.
"""

from datetime import datetime, timedelta, timezone

import pytest

from groupactions.core.lifecycle import (
    apply_action_update,
    fill_action_defaults,
    open_since,
)
from groupactions.service import actions as actions_service
from groupactions.service import groups as groups_service


@pytest.mark.asyncio(loop_scope="session")
async def test_action_types(session_manager, logger, action_type):
    with pytest.raises(actions_service.ActionTypeExistsError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await actions_service.create_action_type(
                    name="Litter pick", default_points=5, conn=conn, log=logger
                )

    async with session_manager.session() as conn:
        async with conn.begin():
            types = await actions_service.get_action_types(conn=conn)
            assert action_type in {t.action_type_id for t in types}

    with pytest.raises(actions_service.ActionTypeNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await actions_service.read_action_type(action_type_id=999999, conn=conn)


@pytest.mark.asyncio(loop_scope="session")
async def test_action_lifecycle(
    server_settings, session_manager, logger, admin, alice, bob, action_type
):
    now = datetime.now(timezone.utc)

    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.create(
                name="Action Heroes",
                created_by_user_id=alice,
                settings=server_settings,
                conn=conn,
                log=logger,
            )
            GROUP_ID = group.group_id

            await groups_service.join(group=group, user_id=bob, conn=conn, log=logger)

    # Defaults: points from the type, one week duration
    async with session_manager.session() as conn:
        async with conn.begin():
            draft = fill_action_defaults(
                group_id=GROUP_ID,
                created_by_user_id=alice,
                action_type_id=action_type,
                default_points=10,
                title="Pick up litter",
                now=now,
            )
            action = await actions_service.create(draft=draft, conn=conn, log=logger)

            ACTION_ID = action.action_id
            data = action.to_core()

            assert data.points == 10
            assert data.end_at - data.start_at == timedelta(days=7)
            assert data.creator.user_name == "alice"
            assert data.action_type.name == "Litter pick"

    # An action that ended long ago, and one that is deleted
    async with session_manager.session() as conn:
        async with conn.begin():
            old = await actions_service.create(
                draft=fill_action_defaults(
                    group_id=GROUP_ID,
                    created_by_user_id=alice,
                    action_type_id=action_type,
                    default_points=10,
                    title="Last year",
                    start_at=now - timedelta(days=400),
                    end_at=now - timedelta(days=390),
                    now=now,
                ),
                conn=conn,
                log=logger,
            )
            OLD_ID = old.action_id

            deleted = await actions_service.create(
                draft=fill_action_defaults(
                    group_id=GROUP_ID,
                    created_by_user_id=alice,
                    action_type_id=action_type,
                    default_points=10,
                    title="Deleted",
                    now=now,
                ),
                conn=conn,
                log=logger,
            )
            DELETED_ID = deleted.action_id
            await actions_service.delete(action=deleted, conn=conn, log=logger)

    # Actions that ended either side of the two month cutoff
    since = open_since(now)
    window = {}

    async with session_manager.session() as conn:
        async with conn.begin():
            for title, end_at in (
                ("Recent", now - timedelta(days=30)),
                ("Stale", now - timedelta(days=70)),
                ("Cutoff", since),
            ):
                edge = await actions_service.create(
                    draft=fill_action_defaults(
                        group_id=GROUP_ID,
                        created_by_user_id=alice,
                        action_type_id=action_type,
                        default_points=10,
                        title=title,
                        start_at=end_at - timedelta(days=1),
                        end_at=end_at,
                        now=now,
                    ),
                    conn=conn,
                    log=logger,
                )
                window[title] = edge.action_id

    async with session_manager.session() as conn:
        async with conn.begin():
            open_actions = await actions_service.get_open_actions(
                group_id=GROUP_ID, conn=conn, log=logger, now=now
            )
            ids = {a.action_id for a in open_actions}

            assert ACTION_ID in ids
            assert OLD_ID not in ids
            assert DELETED_ID not in ids
            assert window["Recent"] in ids
            assert window["Stale"] not in ids
            assert window["Cutoff"] in ids

    with pytest.raises(actions_service.ActionNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await actions_service.read_by_id(
                    action_id=DELETED_ID, group_id=GROUP_ID, conn=conn, log=logger
                )

    # Actions are scoped to their group
    with pytest.raises(actions_service.ActionNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await actions_service.read_by_id(
                    action_id=ACTION_ID,
                    group_id=server_settings.reserved_group_id,
                    conn=conn,
                    log=logger,
                )

    # Update
    async with session_manager.session() as conn:
        async with conn.begin():
            action = await actions_service.read_by_id(
                action_id=ACTION_ID, group_id=GROUP_ID, conn=conn, log=logger
            )
            changes = apply_action_update(
                action=action.to_core(),
                changes={"title": "Pick up more litter", "points": 15, "subtitle": None},
            )
            await actions_service.update(
                action=action, changes=changes, conn=conn, log=logger
            )

            assert action.title == "Pick up more litter"
            assert action.points == 15

    # Completion and points
    async with session_manager.session() as conn:
        async with conn.begin():
            assert (
                await actions_service.points_for_user(
                    group_id=GROUP_ID, user_id=bob, conn=conn
                )
                == 0
            )

            action = await actions_service.read_by_id(
                action_id=ACTION_ID, group_id=GROUP_ID, conn=conn, log=logger
            )
            await actions_service.complete(
                action=action, user_id=bob, conn=conn, log=logger
            )

    with pytest.raises(actions_service.AlreadyCompleted):
        async with session_manager.session() as conn:
            async with conn.begin():
                action = await actions_service.read_by_id(
                    action_id=ACTION_ID, group_id=GROUP_ID, conn=conn, log=logger
                )
                await actions_service.complete(
                    action=action, user_id=bob, conn=conn, log=logger
                )

    async with session_manager.session() as conn:
        async with conn.begin():
            assert (
                await actions_service.points_for_user(
                    group_id=GROUP_ID, user_id=bob, conn=conn
                )
                == 15
            )
            assert (
                await actions_service.points_for_user(
                    group_id=server_settings.reserved_group_id, user_id=bob, conn=conn
                )
                == 0
            )


@pytest.mark.asyncio(loop_scope="session")
async def test_complete_race_is_a_conflict(
    server_settings, session_manager, logger, admin, alice, bob, action_type, monkeypatch
):
    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.create(
                name="Photo Finish",
                created_by_user_id=alice,
                settings=server_settings,
                conn=conn,
                log=logger,
            )
            action = await actions_service.create(
                draft=fill_action_defaults(
                    group_id=group.group_id,
                    created_by_user_id=alice,
                    action_type_id=action_type,
                    default_points=10,
                    title="Sprint",
                ),
                conn=conn,
                log=logger,
            )
            GROUP_ID = group.group_id
            ACTION_ID = action.action_id

            await actions_service.complete(
                action=action, user_id=alice, conn=conn, log=logger
            )

    # A second completion that misses the existing row still ends in a conflict
    async def no_completion(action_id, user_id, conn):
        return None

    monkeypatch.setattr(actions_service, "read_completion", no_completion)

    with pytest.raises(actions_service.AlreadyCompleted):
        async with session_manager.session() as conn:
            async with conn.begin():
                action = await actions_service.read_by_id(
                    action_id=ACTION_ID, group_id=GROUP_ID, conn=conn, log=logger
                )
                await actions_service.complete(
                    action=action, user_id=alice, conn=conn, log=logger
                )

    async with session_manager.session() as conn:
        async with conn.begin():
            assert (
                await actions_service.points_for_user(
                    group_id=GROUP_ID, user_id=alice, conn=conn
                )
                == 10
            )
