# chatrooms/api/chatrooms.py

from fastapi import APIRouter, Depends, Request

from chatrooms.api.dependencies import (
    get_activity_recorder,
    get_current_user,
    get_messaging_interactor,
)
from chatrooms.domain.entities import Identity
from chatrooms.infrastructure import schemas
from chatrooms.infrastructure.activity import ActivityRecorder, request_metadata
from chatrooms.interactors.messaging_interactor import MessagingInteractor

router = APIRouter()


@router.post("/", response_model=schemas.Chatroom, status_code=201)
async def create_chatroom(
    request: Request,
    chatroom: schemas.ChatroomCreate,
    messaging: MessagingInteractor = Depends(get_messaging_interactor),
    activity: ActivityRecorder = Depends(get_activity_recorder),
    current_user: Identity = Depends(get_current_user),
):
    new_chatroom = await messaging.create_room(
        chatroom.name, current_user.user_id, current_user.username
    )
    activity.record(
        current_user.user_id,
        f"Created chatroom {new_chatroom.id}",
        metadata=request_metadata(request),
    )
    return new_chatroom


@router.get("/", response_model=list[schemas.Chatroom])
async def read_chatrooms(
    messaging: MessagingInteractor = Depends(get_messaging_interactor),
    current_user: Identity = Depends(get_current_user),
):
    return await messaging.list_rooms()


@router.get("/{chatroom_id}", response_model=schemas.Chatroom)
async def read_chatroom(
    chatroom_id: int,
    messaging: MessagingInteractor = Depends(get_messaging_interactor),
    current_user: Identity = Depends(get_current_user),
):
    return await messaging.get_room(chatroom_id, current_user.user_id)


@router.post("/{chatroom_id}/join", response_model=schemas.Chatroom)
async def join_chatroom(
    request: Request,
    chatroom_id: int,
    messaging: MessagingInteractor = Depends(get_messaging_interactor),
    activity: ActivityRecorder = Depends(get_activity_recorder),
    current_user: Identity = Depends(get_current_user),
):
    chatroom = await messaging.join_room(
        chatroom_id, current_user.user_id, current_user.username
    )
    activity.record(
        current_user.user_id,
        f"Joined chatroom {chatroom_id}",
        metadata=request_metadata(request),
    )
    return chatroom


@router.get("/{chatroom_id}/online", response_model=schemas.OnlineMembers)
async def read_online_members(
    chatroom_id: int,
    messaging: MessagingInteractor = Depends(get_messaging_interactor),
    current_user: Identity = Depends(get_current_user),
):
    user_ids = await messaging.online_members(chatroom_id, current_user.user_id)
    return schemas.OnlineMembers(chatroom_id=chatroom_id, user_ids=user_ids)
