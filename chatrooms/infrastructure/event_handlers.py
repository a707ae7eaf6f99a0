# chatrooms/infrastructure/event_handlers.py
import json

from chatrooms.domain.events import MemberJoined, MessageCreated


class EventHandlers:
    """Publishes domain events on Redis for consumers outside this process."""

    def __init__(self, redis_client):
        self.redis_client = redis_client

    async def publish_message_created(self, event: MessageCreated):
        channel_name = f"chatroom:{event.chatroom_id}"

        message_data = event.model_dump(mode="json")
        message_data["id"] = message_data.pop("message_id")

        await self.redis_client.publish(channel_name, json.dumps(message_data))

    async def publish_member_joined(self, event: MemberJoined):
        channel_name = f"chatroom:{event.chatroom_id}:members"
        member_data = json.dumps(event.model_dump(mode="json"))
        await self.redis_client.publish(channel_name, member_data)
