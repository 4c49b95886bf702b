"""
Audit trail -- one JSON line per sync event.

Append-only JSONL so the log survives partial writes and can be tailed
or grepped without a parser.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger("templatesync.audit")

SYNC_IMPLEMENTATION = "SYNC_IMPLEMENTATION"
SYNC_FAILED = "SYNC_FAILED"
TEMPLATE_DELETED = "TEMPLATE_DELETED"
TEMPLATE_RENAMED = "TEMPLATE_RENAMED"


class AuditEntry(BaseModel):
    """A single recorded sync event."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    event_type: str
    project: str
    detail: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class AuditLog:
    """Append-only JSONL audit log."""

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def record(
        self,
        event_type: str,
        project: str,
        detail: str = "",
        metadata: Optional[dict[str, Any]] = None,
    ) -> AuditEntry:
        """Append an event to the log.

        Args:
            event_type: Event category (SYNC_IMPLEMENTATION, SYNC_FAILED, ...).
            project: Full name of the project the event concerns.
            detail: Human-readable description.
            metadata: Optional structured extras.

        Returns:
            AuditEntry: The entry that was written.
        """
        entry = AuditEntry(
            event_type=event_type,
            project=project,
            detail=detail,
            metadata=metadata or {},
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(entry.model_dump_json() + "\n")
        return entry

    def read(self, limit: int = 0) -> list[AuditEntry]:
        """Return logged entries, oldest first.

        Args:
            limit: Keep only the newest ``limit`` entries (0 = all).
        """
        if not self.path.exists():
            return []

        entries = []
        for line in self.path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            try:
                entries.append(AuditEntry(**json.loads(line)))
            except (json.JSONDecodeError, ValueError) as exc:
                logger.warning("Skipping malformed audit line: %s", exc)

        if limit > 0:
            entries = entries[-limit:]
        return entries
