"""
app/models/admin_audit.py

Purpose: Admin action audit model

- Who (adminId) did what (action) to whom (targetUserId/targetEmail)
- Extra context in meta, request ip, timestamp
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

AUDIT_ACTIONS = ("ban_user", "unban_user", "delete_user", "edit_user")


def build_admin_audit(
    admin_id: Any,
    action: str,
    target_user_id: Optional[Any] = None,
    target_email: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
    ip: Optional[str] = None
) -> Dict[str, Any]:
    return {
        "adminId": admin_id,
        "action": action,
        "targetUserId": target_user_id,
        "targetEmail": target_email,
        "meta": meta or {},
        "ip": ip,
        "ts": datetime.now(timezone.utc),
    }
