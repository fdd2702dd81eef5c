"""
Tests the action endpoints.
"""

from datetime import datetime, timedelta, timezone

import pytest


async def _group_with_member(client, owner, member, name: str) -> int:
    response = await client.post(
        "/groups", data={"name": name, "private": "false"}, headers=owner
    )
    GROUP_ID = response.json()["group"]["group_id"]

    response = await client.post(f"/groups/{GROUP_ID}/members", headers=member)
    assert response.status_code == 201

    return GROUP_ID


def _action(action_type_id: int, **kwargs) -> dict:
    return {
        "title": "Plant an oak",
        "subtitle": "In the park",
        "description": "Bring a spade",
        "thanks_msg": "Thank you!",
        "action_type_id": action_type_id,
        **kwargs,
    }


@pytest.mark.asyncio(loop_scope="session")
async def test_post_and_complete_action(client, carol, dave, tree_planting):
    GROUP_ID = await _group_with_member(client, carol, dave, "Oak Wardens")

    response = await client.get(f"/groups/{GROUP_ID}/actions/types", headers=dave)
    assert response.status_code == 200
    assert tree_planting in {t["action_type_id"] for t in response.json()["action_types"]}

    # Defaults from the action type and a week long window
    response = await client.post(
        f"/groups/{GROUP_ID}/actions", json=_action(tree_planting), headers=carol
    )
    assert response.status_code == 200
    action = response.json()["action"]
    assert action["points"] == 30
    start = datetime.fromisoformat(action["start_at"])
    end = datetime.fromisoformat(action["end_at"])
    assert end - start == timedelta(days=7)
    ACTION_ID = action["action_id"]

    # Members without submit_action cannot post while member actions are off
    response = await client.post(
        f"/groups/{GROUP_ID}/actions", json=_action(tree_planting), headers=dave
    )
    assert response.status_code == 403

    response = await client.get(f"/groups/{GROUP_ID}/actions", headers=dave)
    assert response.status_code == 200
    assert [a["action_id"] for a in response.json()["actions"]] == [ACTION_ID]

    response = await client.get(f"/groups/{GROUP_ID}/actions/{ACTION_ID}")
    assert response.status_code == 200
    assert response.json()["action"]["title"] == "Plant an oak"

    response = await client.post(
        f"/groups/{GROUP_ID}/actions/{ACTION_ID}/complete", headers=dave
    )
    assert response.status_code == 200
    assert response.json()["success"] == 1

    response = await client.post(
        f"/groups/{GROUP_ID}/actions/{ACTION_ID}/complete", headers=dave
    )
    assert response.status_code == 409

    # With member actions on and 30 points earned, dave may post
    response = await client.put(
        f"/groups/{GROUP_ID}",
        data={"allow_member_action": "true", "member_action_level": "30"},
        headers=carol,
    )
    assert response.status_code == 200

    response = await client.post(
        f"/groups/{GROUP_ID}/actions",
        json=_action(tree_planting, title="Water the oak", points=5),
        headers=dave,
    )
    assert response.status_code == 200
    assert response.json()["action"]["points"] == 5
    DAVE_ACTION_ID = response.json()["action"]["action_id"]

    # Dave may edit his own action but not carol's
    response = await client.put(
        f"/groups/{GROUP_ID}/actions/{DAVE_ACTION_ID}",
        json={"title": "Water the oaks"},
        headers=dave,
    )
    assert response.status_code == 200
    assert response.json()["action"]["title"] == "Water the oaks"

    response = await client.put(
        f"/groups/{GROUP_ID}/actions/{ACTION_ID}",
        json={"title": "Mine now"},
        headers=dave,
    )
    assert response.status_code == 403

    response = await client.delete(
        f"/groups/{GROUP_ID}/actions/{ACTION_ID}", headers=dave
    )
    assert response.status_code == 403

    # The creator of the group moderates actions
    response = await client.delete(
        f"/groups/{GROUP_ID}/actions/{DAVE_ACTION_ID}", headers=carol
    )
    assert response.status_code == 200
    assert response.json()["action"]["deleted_at"] is not None

    response = await client.get(f"/groups/{GROUP_ID}/actions/{DAVE_ACTION_ID}")
    assert response.status_code == 404


@pytest.mark.asyncio(loop_scope="session")
async def test_action_validation(client, carol, dave, tree_planting):
    GROUP_ID = await _group_with_member(client, carol, dave, "Validation Valley")
    now = datetime.now(timezone.utc)

    response = await client.post(
        f"/groups/{GROUP_ID}/actions",
        json=_action(
            tree_planting,
            start_at=(now + timedelta(days=2)).isoformat(),
            end_at=(now + timedelta(days=1)).isoformat(),
        ),
        headers=carol,
    )
    assert response.status_code == 400
    assert response.json() == {
        "success": 0,
        "kind": "invalid_date_range",
        "message": "EndDate cannot be earlier than StartDate",
    }

    response = await client.post(
        f"/groups/{GROUP_ID}/actions",
        json={"title": "Missing fields", "action_type_id": tree_planting},
        headers=carol,
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "validation"

    response = await client.post(
        f"/groups/{GROUP_ID}/actions", json=_action(999999), headers=carol
    )
    assert response.status_code == 404

    response = await client.get(f"/groups/{GROUP_ID}/actions")
    assert response.status_code == 401

    # Nothing was created by the failed requests
    response = await client.get(f"/groups/{GROUP_ID}/actions", headers=carol)
    assert response.json()["actions"] == []


@pytest.mark.asyncio(loop_scope="session")
async def test_private_group_actions(client, carol, dave, tree_planting):
    response = await client.post(
        "/groups", data={"name": "Hidden Hedgerow", "private": "true"}, headers=carol
    )
    assert response.status_code == 201
    GROUP_ID = response.json()["group"]["group_id"]
    GROUP_CODE = response.json()["group"]["group_code"]

    response = await client.post(
        f"/groups/{GROUP_ID}/actions", json=_action(tree_planting), headers=carol
    )
    assert response.status_code == 200
    ACTION_ID = response.json()["action"]["action_id"]

    # Outsiders see nothing
    response = await client.get(f"/groups/{GROUP_ID}/actions", headers=dave)
    assert response.status_code == 403
    assert response.json()["kind"] == "forbidden"

    response = await client.get(f"/groups/{GROUP_ID}/actions/{ACTION_ID}", headers=dave)
    assert response.status_code == 403

    response = await client.get(f"/groups/{GROUP_ID}/actions/{ACTION_ID}")
    assert response.status_code == 401
    assert response.json()["kind"] == "unauthenticated"

    # Members do
    response = await client.post(
        f"/groups/{GROUP_ID}/members", json={"group_code": GROUP_CODE}, headers=dave
    )
    assert response.status_code == 201

    response = await client.get(f"/groups/{GROUP_ID}/actions", headers=dave)
    assert response.status_code == 200
    assert [a["action_id"] for a in response.json()["actions"]] == [ACTION_ID]

    # Until they are banned
    response = await client.get(f"/groups/{GROUP_ID}/members", headers=carol)
    DAVE_ID = next(
        m["user_id"]
        for m in response.json()["members"]
        if m["user"]["user_name"] == "dave"
    )

    response = await client.put(
        f"/groups/{GROUP_ID}/members/{DAVE_ID}",
        json={"banned": True},
        headers=carol,
    )
    assert response.status_code == 200

    response = await client.get(f"/groups/{GROUP_ID}/actions", headers=dave)
    assert response.status_code == 403

    response = await client.get(f"/groups/{GROUP_ID}/actions/{ACTION_ID}", headers=dave)
    assert response.status_code == 403
