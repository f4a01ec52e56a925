"""Shared file helpers for the JSON-file-backed repositories.

Each repository keeps one JSON array in one file.  A per-instance lock
serialises read-modify-write cycles within the process.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from uuid import uuid4


def new_id() -> str:
    return uuid4().hex


class JsonFileRepository:

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = threading.RLock()
        self._ensure_file()

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, records: list[dict]) -> None:
        tmp = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
        tmp.write_text(json.dumps(records, indent=2) + "\n", encoding="utf-8")
        tmp.replace(self._file_path)

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")

    def _upsert_raw(self, records: list[dict], record: dict, key: str = "id") -> None:
        for i, raw in enumerate(records):
            if raw[key] == record[key]:
                records[i] = record
                return
        records.append(record)
