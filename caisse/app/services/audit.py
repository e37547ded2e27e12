from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

audit_logger = logging.getLogger("caisse.audit")


@dataclass(frozen=True)
class AuditEntry:
    action: str
    resource_type: str
    resource_id: str
    cashier: str | None = None
    register_id: str | None = None
    changes: dict[str, Any] = field(default_factory=dict)


class AuditTrail(Protocol):
    def append(self, entry: AuditEntry) -> None: ...

    def list(self) -> list[AuditEntry]: ...


def log_action(
    trail: AuditTrail | None,
    *,
    cashier: str | None,
    action: str,
    resource_type: str,
    resource_id: str,
    changes: dict[str, Any] | None = None,
    register_id: str | None = None,
) -> AuditEntry:
    """Append one audit record to *trail* and echo it on ``caisse.audit``.

    It does NOT commit: call it as the last step inside the unit of work it
    describes, so the record is committed or rolled back together with it.
    Decimal amounts are stored as strings.
    """
    entry = AuditEntry(
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        cashier=cashier,
        register_id=register_id,
        changes=json.loads(json.dumps(changes or {}, default=str)),
    )
    if trail is not None:
        trail.append(entry)
    audit_logger.info(
        "%s %s/%s by %s at %s %s",
        action,
        resource_type,
        resource_id,
        cashier or "-",
        register_id or "-",
        json.dumps(entry.changes, ensure_ascii=False, sort_keys=True),
    )
    return entry
