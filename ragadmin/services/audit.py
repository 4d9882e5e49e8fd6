from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from ragadmin.core.logging import request_id_var
from ragadmin.models.audit_log import AuditLog
from ragadmin.services.base import BaseService


def _sanitize(obj):
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(i) for i in obj]
    return obj


class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[Any],
        details: Optional[dict] = None,
    ) -> Optional[AuditLog]:
        """
        Append an admin action to the audit log.
        Flushes but does not commit, so the entry lands with the caller's transaction.
        """
        try:
            db_log = AuditLog(
                action=action,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id is not None else None,
                details=_sanitize(details or {}),
                request_id=request_id_var.get() or None,
            )
            self.db.add(db_log)
            self.db.flush()
            return db_log
        except SQLAlchemyError as e:
            # An audit failure must not fail the admin action itself
            self._logger.error(f"FAILED TO AUDIT LOG: {e}", exc_info=True)
            return None

    @staticmethod
    def log(db, *args, **kwargs):
        return AuditService(db).log_action(*args, **kwargs)
