from typing import Optional, Any, Dict
from django.contrib.auth import get_user_model
from care.models import AuditEvent

User = get_user_model()

# action names written by the allocation and queue services
ACTION_ENQUEUE = 'queue_enqueue'
ACTION_WITHDRAW = 'queue_withdraw'
ACTION_ALLOCATE = 'bed_allocate'
ACTION_AUTO_ALLOCATE = 'bed_auto_allocate'
ACTION_RELEASE = 'bed_release'


def log_action(*, user: Optional[User], action: str, object_type: Optional[str]=None, object_id: Optional[int]=None, detail: Optional[Dict[str, Any]]=None) -> AuditEvent:
    return AuditEvent.objects.create(
        user=user if getattr(user, 'pk', None) else None,
        action=action,
        object_type=object_type, object_id=object_id,
        detail=detail or {},
    )
