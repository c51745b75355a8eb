from platypus.models.base import Base
from platypus.models.friend_nickname import FriendNickname
from platypus.models.friendship import Friendship, FriendshipStatus
from platypus.models.photo import Photo
from platypus.models.user import User

__all__ = [
    "Base",
    "FriendNickname",
    "Friendship",
    "FriendshipStatus",
    "Photo",
    "User",
]
