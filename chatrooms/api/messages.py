# chatrooms/api/messages.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

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


@router.post("/{chatroom_id}/messages", response_model=schemas.Message, status_code=201)
async def send_message(
    request: Request,
    chatroom_id: int,
    message: schemas.MessageCreate,
    messaging: MessagingInteractor = Depends(get_messaging_interactor),
    activity: ActivityRecorder = Depends(get_activity_recorder),
    current_user: Identity = Depends(get_current_user),
):
    db_message = await messaging.send_message(
        chatroom_id,
        current_user.user_id,
        current_user.username,
        message.message_type,
        message.text_content,
        message.media_url,
    )
    activity.record(
        current_user.user_id,
        f"Sent message {db_message.id} to chatroom {chatroom_id}",
        metadata=request_metadata(request),
    )
    return db_message


@router.get("/{chatroom_id}/messages", response_model=List[schemas.Message])
async def read_messages(
    chatroom_id: int,
    limit: Optional[str] = Query(
        None, description="Maximum number of messages, newest first"
    ),
    messaging: MessagingInteractor = Depends(get_messaging_interactor),
    current_user: Identity = Depends(get_current_user),
):
    return await messaging.list_messages(
        chatroom_id, current_user.user_id, parse_limit(limit)
    )


def parse_limit(raw: Optional[str]) -> Optional[int]:
    # unparsable limits get the default page, like absent or non-positive ones
    try:
        return int(raw) if raw is not None else None
    except ValueError:
        return None
