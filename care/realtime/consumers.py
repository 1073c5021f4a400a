import json

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from care.models import Hospital
from care.services.queue import patient_group_name, queue_group_name


@database_sync_to_async
def _may_watch(user, hospital_id: int) -> bool:
    if not (user and user.is_authenticated):
        return False
    if user.role == 'admin':
        return True
    return user.role == 'hospital' and Hospital.objects.filter(pk=hospital_id, owner=user).exists()


class QueueUpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes ``queue.updated`` and ``queue.position`` events for one hospital."""

    async def connect(self):
        self.hospital_id = int(self.scope["url_route"]["kwargs"]["hospital_id"])
        if not await _may_watch(self.scope.get("user"), self.hospital_id):
            await self.close(code=4403)
            return
        self.group = queue_group_name(self.hospital_id)
        await self.channel_layer.group_add(self.group, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "hospitalId": self.hospital_id}))

    async def disconnect(self, close_code):
        if hasattr(self, "group"):
            await self.channel_layer.group_discard(self.group, self.channel_name)

    # event: {"type": "queue.updated", "hospitalId": int, "ts": "...", "waiting": int}
    async def queue_updated(self, event):
        await self.send(json.dumps(event))

    # event: {"type": "queue.position", "bookingId": int, "position": int, ...}
    async def queue_position(self, event):
        await self.send(json.dumps(event))


class PatientQueueConsumer(AsyncWebsocketConsumer):
    """A patient's own queue position notices, across hospitals.

    The group comes from the authenticated user, never from the URL.
    """

    async def connect(self):
        user = self.scope.get("user")
        if not (user and user.is_authenticated and user.role == "patient"):
            await self.close(code=4403)
            return
        self.group = patient_group_name(user.pk)
        await self.channel_layer.group_add(self.group, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "patientId": user.pk}))

    async def disconnect(self, close_code):
        if hasattr(self, "group"):
            await self.channel_layer.group_discard(self.group, self.channel_name)

    async def queue_position(self, event):
        await self.send(json.dumps(event))
