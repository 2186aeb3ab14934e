"""Shared file handling for the JSON-backed repositories.

Each repository keeps one JSON array per file.  Writes go to a temporary
file in the same directory which then replaces the original, so a single
``_persist_raw`` call is all-or-nothing.

Every load-modify-persist runs under ``_exclusive``, a lock file next to
the data file, so two writers (threads or processes) never drop each
other's records.  Plain reads need no lock.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from filelock import FileLock


class JsonFile:

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._ensure_file()
        self._lock_path = file_path.parent / f".{file_path.name}.lock"

    # --- File helpers ---------------------------------------------------------

    def _exclusive(self) -> FileLock:
        return FileLock(self._lock_path)

    def _load_raw(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, records: list[dict]) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self._file_path.parent, prefix=f".{self._file_path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(json.dumps(records, indent=2) + "\n")
            os.replace(tmp_name, self._file_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
