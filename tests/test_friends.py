import uuid

import pytest
from sqlalchemy import select

from conftest import add_friendship
from platypus.models.friendship import Friendship, FriendshipStatus


@pytest.mark.asyncio
async def test_list_friends_empty(client):
    response = await client.get("/friends")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_send_request(client, test_user, second_user):
    response = await client.post("/friends/requests", json={"friend_id": str(second_user.id)})
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["user_id"] == str(test_user.id)
    assert data["friend_id"] == str(second_user.id)


@pytest.mark.asyncio
async def test_send_request_unknown_user(client):
    response = await client.post("/friends/requests", json={"friend_id": str(uuid.uuid4())})
    assert response.status_code == 404
    assert "not found" in response.json()["detail"].lower()


@pytest.mark.asyncio
async def test_send_request_to_self(client, test_user):
    response = await client.post("/friends/requests", json={"friend_id": str(test_user.id)})
    assert response.status_code == 400
    assert "yourself" in response.json()["detail"].lower()


@pytest.mark.asyncio
async def test_reverse_request_conflicts(client, act_as, test_user, second_user):
    await client.post("/friends/requests", json={"friend_id": str(second_user.id)})

    act_as(second_user)
    response = await client.post("/friends/requests", json={"friend_id": str(test_user.id)})
    assert response.status_code == 409
    assert response.json()["detail"] == "They already sent you a request"


@pytest.mark.asyncio
async def test_blocked_target_refuses_request(client, db_session, second_user):
    second_user.block_friend_requests = True
    await db_session.commit()

    response = await client.post("/friends/requests", json={"friend_id": str(second_user.id)})
    assert response.status_code == 400
    assert "not accepting" in response.json()["detail"]


@pytest.mark.asyncio
async def test_receiver_accepts(client, act_as, db_session, test_user, second_user):
    f = await add_friendship(db_session, test_user, second_user)

    act_as(second_user)
    response = await client.post(f"/friends/requests/{f.id}/accept")
    assert response.status_code == 200
    assert response.json()["status"] == "accepted"

    act_as(test_user)
    friends = (await client.get("/friends")).json()
    assert [fr["user_id"] for fr in friends] == [str(second_user.id)]


@pytest.mark.asyncio
async def test_sender_cannot_accept(client, db_session, test_user, second_user):
    f = await add_friendship(db_session, test_user, second_user)

    response = await client.post(f"/friends/requests/{f.id}/accept")
    assert response.status_code == 404

    row = (await db_session.execute(
        select(Friendship.status).where(Friendship.id == f.id)
    )).scalar_one()
    assert row == FriendshipStatus.PENDING.value


@pytest.mark.asyncio
async def test_reject_deletes_request(client, act_as, db_session, test_user, second_user):
    f = await add_friendship(db_session, test_user, second_user)

    act_as(second_user)
    response = await client.post(f"/friends/requests/{f.id}/reject")
    assert response.status_code == 200

    remaining = (await db_session.execute(
        select(Friendship.id).where(Friendship.id == f.id)
    )).first()
    assert remaining is None


@pytest.mark.asyncio
async def test_cancel_sent_request(client, db_session, test_user, second_user):
    f = await add_friendship(db_session, test_user, second_user)

    response = await client.delete(f"/friends/requests/{f.id}")
    assert response.status_code == 204

    response = await client.delete(f"/friends/requests/{f.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_third_party_cannot_touch_request(client, act_as, db_session, test_user, second_user, third_user):
    f = await add_friendship(db_session, test_user, second_user)

    act_as(third_user)
    assert (await client.post(f"/friends/requests/{f.id}/accept")).status_code == 404
    assert (await client.post(f"/friends/requests/{f.id}/reject")).status_code == 404
    assert (await client.delete(f"/friends/requests/{f.id}")).status_code == 404


@pytest.mark.asyncio
async def test_pending_requests_listing(client, db_session, test_user, second_user, third_user):
    await add_friendship(db_session, second_user, test_user)
    await add_friendship(db_session, test_user, third_user)

    data = (await client.get("/friends/requests")).json()
    assert [r["user_id"] for r in data["received"]] == [str(second_user.id)]
    assert [r["user_id"] for r in data["sent"]] == [str(third_user.id)]


@pytest.mark.asyncio
async def test_remove_friend(client, db_session, test_user, second_user):
    await add_friendship(db_session, second_user, test_user, FriendshipStatus.ACCEPTED)

    response = await client.delete(f"/friends/{second_user.id}")
    assert response.status_code == 204
    assert (await client.get("/friends")).json() == []

    response = await client.delete(f"/friends/{second_user.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_status_lookup(client, db_session, test_user, second_user, third_user):
    f = await add_friendship(db_session, test_user, second_user)

    response = await client.post(
        "/friends/statuses",
        json={"user_ids": [str(second_user.id), str(third_user.id)]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data == {
        str(second_user.id): {
            "friendship_id": str(f.id), "status": "pending", "direction": "sent"
        }
    }


@pytest.mark.asyncio
async def test_nickname_shown_in_friend_list(client, db_session, test_user, second_user):
    await add_friendship(db_session, test_user, second_user, FriendshipStatus.ACCEPTED)

    response = await client.put(f"/friends/{second_user.id}/nickname", json={"nickname": "Bobby"})
    assert response.status_code == 200
    assert response.json()["nickname"] == "Bobby"

    friends = (await client.get("/friends")).json()
    assert friends[0]["nickname"] == "Bobby"

    response = await client.delete(f"/friends/{second_user.id}/nickname")
    assert response.status_code == 204
    friends = (await client.get("/friends")).json()
    assert friends[0]["nickname"] is None


@pytest.mark.asyncio
async def test_nickname_requires_friendship(client, second_user):
    response = await client.put(f"/friends/{second_user.id}/nickname", json={"nickname": "Bobby"})
    assert response.status_code == 400
