"""
Mock utilities for testing

Provides an in-memory audit sink that records events instead of writing
audit_logs rows.
"""

from taskboard.constants.audit import AuditAction


class RecordingAuditSink:
    """Audit sink that keeps every recorded event in memory"""

    def __init__(self, fail: bool = False):
        self.events: list[dict] = []
        self.fail = fail

    def record(
        self,
        tenant_id,
        actor_user_id,
        action,
        entity_type,
        entity_id=None,
        source_ip=None,
    ) -> None:
        if self.fail:
            raise RuntimeError("audit sink unavailable")
        self.events.append(
            {
                "tenant_id": tenant_id,
                "user_id": actor_user_id,
                "action": AuditAction(action),
                "entity_type": entity_type,
                "entity_id": entity_id,
                "ip_address": source_ip,
            }
        )

    def actions(self) -> list[AuditAction]:
        return [event["action"] for event in self.events]
