"""Lookup journal: one JSONL line per lookup event, plus snapshots of rejected payloads.

Each line is flat: ``ts``, ``event``, ``session_id`` and the event's own
fields. Stage attempts are written one per line so a rejected upstream payload
can be traced from the lookup that triggered it to the snapshot file on disk.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic_core import to_jsonable_python

from .exceptions import JournalError
from .models import Coordinate, Provenance
from .redaction import sanitize_for_logging
from .weather.pipeline import StageAttempt


class LookupJournal:
    """Append-only record of what each CLI session asked for and which source answered."""

    def __init__(self, journal_dir: Path, snapshot_dir: Path, session_id: str) -> None:
        self.session_id = session_id
        self.snapshot_dir = snapshot_dir
        try:
            journal_dir.mkdir(parents=True, exist_ok=True)
            snapshot_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise JournalError(f"Failed creating journal directories: {exc}") from exc
        self.path = journal_dir / f"lookups-{datetime.now(UTC):%Y%m%d}.jsonl"

    def record(self, event: str, **fields: Any) -> None:
        try:
            line = {
                "ts": datetime.now(UTC).isoformat(),
                "event": event,
                "session_id": self.session_id,
                **sanitize_for_logging(to_jsonable_python(fields)),
            }
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(line, ensure_ascii=False) + "\n")
        except (OSError, TypeError, ValueError) as exc:
            raise JournalError(f"Failed writing lookup journal: {exc}") from exc

    def record_request(self, command: str, coordinate: Coordinate) -> None:
        self.record(
            "lookup_request",
            command=command,
            lat=coordinate.latitude,
            lng=coordinate.longitude,
        )

    def record_attempts(self, command: str, attempts: list[StageAttempt]) -> None:
        """Write one ``stage_attempt`` line per stage; rejected payloads go to snapshot files."""
        for attempt in attempts:
            snapshot: Path | None = None
            if attempt.rejected_payload is not None:
                snapshot = self.snapshot_rejected(attempt.source, attempt.rejected_payload)
            self.record(
                "stage_attempt",
                command=command,
                stage=attempt.stage,
                source=attempt.source,
                succeeded=attempt.succeeded,
                elapsed_ms=attempt.elapsed_ms,
                error=attempt.error,
                snapshot=str(snapshot) if snapshot is not None else None,
            )

    def record_result(
        self, command: str, result: dict[str, Any], provenance: Provenance | None = None
    ) -> None:
        self.record("lookup_result", command=command, provenance=provenance, result=result)

    def snapshot_rejected(self, source: str, payload: dict[str, Any]) -> Path:
        """Dump a payload the normalizer refused, named by time, session and source."""
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S%fZ")
        safe_source = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in source)
        target = self.snapshot_dir / f"{stamp}_{self.session_id}_{safe_source}_rejected.json"
        try:
            body = json.dumps(
                sanitize_for_logging(to_jsonable_python(payload)), ensure_ascii=False, indent=2
            )
            target.write_text(body + "\n", encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            raise JournalError(f"Failed writing rejected payload snapshot: {exc}") from exc
        return target
