from typing import Optional, Any, Dict
from django.contrib.auth import get_user_model
from clinique.models import AuditEvent

User = get_user_model()

def log_action(*, user: Optional[User], action: str, object_type: Optional[str]=None, object_id: Optional[int]=None, detail: Optional[Dict[str, Any]]=None) -> AuditEvent:
    """Persist one audit trail entry; anonymous callers are stored as ``None``."""
    return AuditEvent.objects.create(
        user=user if getattr(user, 'is_authenticated', False) and getattr(user, 'id', None) else None,
        action=action,
        object_type=object_type, object_id=object_id,
        detail=detail or {},
    )
