"""Append-only sink for emitted playlist records."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .record import ResultRecord

LOGGER = logging.getLogger(__name__)


class Dataset:
    """Collects records in emission order.

    When *path* is given every record is also appended to that file as one
    JSON line as soon as it is pushed, so an interrupted run keeps what it
    already found. An existing file is truncated unless *append* is set.
    """

    def __init__(self, path: Optional[str] = None, *, append: bool = False) -> None:
        self._records: List[ResultRecord] = []
        self._path = Path(path).expanduser() if path else None
        if self._path is not None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            if not append:
                self._path.write_text("", encoding="utf-8")
            LOGGER.debug("Streaming records to %s", self._path)

    def push(self, record: ResultRecord) -> None:
        self._records.append(record)
        if self._path is not None:
            with open(self._path, "a", encoding="utf-8") as fh:
                fh.write(json.dumps(record.to_dict(), ensure_ascii=False) + "\n")

    @property
    def records(self) -> List[ResultRecord]:
        return list(self._records)

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [record.to_dict() for record in self._records]

    def __len__(self) -> int:
        return len(self._records)
