"""Tests for the JSONL audit trail."""

from __future__ import annotations

import json
from pathlib import Path

from templatesync.audit import AuditLog


class TestAuditLog:
    """Tests for AuditLog."""

    def test_record_appends_json_line(self, tmp_path: Path):
        log = AuditLog(tmp_path / "logs" / "audit.jsonl")

        log.record("SYNC_IMPLEMENTATION", "app", "Synced", {"template": "base"})
        log.record("TEMPLATE_DELETED", "app")

        lines = (tmp_path / "logs" / "audit.jsonl").read_text().splitlines()
        assert len(lines) == 2
        first = json.loads(lines[0])
        assert first["event_type"] == "SYNC_IMPLEMENTATION"
        assert first["metadata"] == {"template": "base"}

    def test_read_limit_keeps_newest(self, tmp_path: Path):
        log = AuditLog(tmp_path / "audit.jsonl")
        for i in range(5):
            log.record("SYNC_IMPLEMENTATION", f"p{i}")

        entries = log.read(limit=2)

        assert [e.project for e in entries] == ["p3", "p4"]

    def test_read_missing_file(self, tmp_path: Path):
        assert AuditLog(tmp_path / "none.jsonl").read() == []

    def test_read_skips_malformed_lines(self, tmp_path: Path):
        path = tmp_path / "audit.jsonl"
        log = AuditLog(path)
        log.record("SYNC_FAILED", "p")
        with path.open("a") as f:
            f.write("not json\n\n")

        assert [e.event_type for e in log.read()] == ["SYNC_FAILED"]
