import uuid

import pytest

from platypus.models.friend_nickname import FriendNickname
from platypus.models.friendship import Friendship, FriendshipStatus, pair_key
from platypus.policies import (
    can_access_nickname,
    can_delete_friendship,
    can_insert_friendship,
    can_select_friendship,
    can_select_photo,
    can_update_friendship,
)

A, B, C = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()


def edge(sender, receiver, status=FriendshipStatus.PENDING):
    return Friendship(user_id=sender, friend_id=receiver, status=status.value)


def test_both_parties_can_see_edge():
    f = edge(A, B)
    assert can_select_friendship(A, f)
    assert can_select_friendship(B, f)
    assert not can_select_friendship(C, f)


def test_insert_only_as_self():
    assert can_insert_friendship(A, A, B)
    assert not can_insert_friendship(A, B, A)
    assert not can_insert_friendship(C, A, B)


def test_insert_never_to_self():
    assert not can_insert_friendship(A, A, A)


def test_only_receiver_updates():
    f = edge(A, B)
    assert can_update_friendship(B, f)
    assert not can_update_friendship(A, f)
    assert not can_update_friendship(C, f)


def test_either_party_deletes():
    f = edge(A, B, FriendshipStatus.ACCEPTED)
    assert can_delete_friendship(A, f)
    assert can_delete_friendship(B, f)
    assert not can_delete_friendship(C, f)


def test_owner_always_sees_own_photo():
    assert can_select_photo(A, A, [])


@pytest.mark.parametrize("sender,receiver", [(A, B), (B, A)])
def test_accepted_edge_grants_photo_access_either_direction(sender, receiver):
    edges = [edge(sender, receiver, FriendshipStatus.ACCEPTED)]
    assert can_select_photo(A, B, edges)
    assert can_select_photo(B, A, edges)


def test_pending_edge_does_not_grant_photo_access():
    assert not can_select_photo(A, B, [edge(A, B)])


def test_unrelated_edge_does_not_grant_photo_access():
    edges = [edge(A, C, FriendshipStatus.ACCEPTED)]
    assert not can_select_photo(B, C, edges)


def test_nickname_private_to_owner():
    n = FriendNickname(user_id=A, friend_id=B, nickname="Bee")
    assert can_access_nickname(A, n)
    assert not can_access_nickname(B, n)


def test_pair_key_ignores_direction():
    assert pair_key(A, B) == pair_key(B, A)


def test_status_is_closed():
    with pytest.raises(ValueError):
        FriendshipStatus("rejected")
