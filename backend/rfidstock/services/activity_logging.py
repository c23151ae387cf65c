"""
Audit trail for administrative actions (permission changes, user activation).
Rows are added to the caller's session and committed with the change they describe.
"""
import json
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from rfidstock.models.user import UserActivity

logger = logging.getLogger(__name__)


def _to_json(values: Any) -> Optional[str]:
    if values is None:
        return None
    return json.dumps(values, default=str, sort_keys=True)


class ActivityLogger:
    def __init__(self, db: Session):
        self.db = db

    def log(
        self,
        user_id: int,
        client_code: str,
        activity_type: str,
        action: str,
        description: Optional[str] = None,
        table_name: Optional[str] = None,
        record_id: Optional[int] = None,
        old_values: Any = None,
        new_values: Any = None,
    ) -> UserActivity:
        activity = UserActivity(
            user_id=user_id,
            client_code=client_code,
            activity_type=activity_type,
            action=action,
            description=(description or "")[:500] or None,
            table_name=table_name,
            record_id=record_id,
            old_values=_to_json(old_values),
            new_values=_to_json(new_values),
        )
        self.db.add(activity)
        logger.info(
            "activity user=%s client=%s %s.%s record=%s: %s",
            user_id, client_code, activity_type, action, record_id, description,
        )
        return activity
