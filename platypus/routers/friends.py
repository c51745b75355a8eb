import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from platypus.database import get_db
from platypus.dependencies import get_current_user
from platypus.models.user import User
from platypus.schemas.friends import (
    FriendRequestCreate,
    FriendResponse,
    FriendshipResponse,
    FriendshipStatusEntry,
    NicknameResponse,
    NicknameUpdate,
    PendingRequestsResponse,
    StatusLookupRequest,
)
from platypus.services import friendship_service, nickname_service
from platypus.services.friendship_service import DuplicateFriendshipError

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("", response_model=list[FriendResponse])
async def list_friends(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await friendship_service.get_friends(db, user.id)


@router.post("/requests", response_model=FriendshipResponse, status_code=201)
async def send_friend_request(
    data: FriendRequestCreate,
    req: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await friendship_service.send_request(
            db, user.id, data.friend_id, req.app.state.redis
        )
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DuplicateFriendshipError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS
            if "limit" in str(e)
            else status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


@router.get("/requests", response_model=PendingRequestsResponse)
async def list_pending_requests(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await friendship_service.get_pending_requests(db, user.id)


@router.post("/requests/{friendship_id}/accept")
async def accept_friend_request(
    friendship_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    success = await friendship_service.accept_request(db, user.id, friendship_id)
    if not success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Request not found or cannot accept"
        )
    return {"status": "accepted"}


@router.post("/requests/{friendship_id}/reject")
async def reject_friend_request(
    friendship_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    success = await friendship_service.reject_request(db, user.id, friendship_id)
    if not success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    return {"status": "rejected"}


@router.delete("/requests/{friendship_id}", status_code=204)
async def cancel_friend_request(
    friendship_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    success = await friendship_service.cancel_request(db, user.id, friendship_id)
    if not success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")


@router.post("/statuses", response_model=dict[uuid.UUID, FriendshipStatusEntry])
async def lookup_statuses(
    data: StatusLookupRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await friendship_service.get_friendship_statuses(db, user.id, data.user_ids)


@router.delete("/{friend_id}", status_code=204)
async def remove_friend(
    friend_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    success = await friendship_service.remove_friend(db, user.id, friend_id)
    if not success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Friend not found")


@router.put("/{friend_id}/nickname", response_model=NicknameResponse)
async def set_nickname(
    friend_id: uuid.UUID,
    data: NicknameUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await nickname_service.set_nickname(db, user.id, friend_id, data.nickname)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{friend_id}/nickname", status_code=204)
async def delete_nickname(
    friend_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not await nickname_service.delete_nickname(db, user.id, friend_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Nickname not found")
