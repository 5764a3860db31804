"""JSON-backed history document.

The document is a single JSON array of commit records, pretty-printed,
always rewritten in full. Readers never observe a partial write: the new
content goes to a temporary file next to the document and is moved over
it with ``os.replace``.

Single writer only. Two processes merging into the same document at the
same time can lose one of the updates; there is no locking.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Union

from ..exceptions import StorageReadCorrupt, StorageWriteFailure
from ..logging_config import get_logger
from ..models import CommitRecord
from .merge import DuplicatePolicy, MergeResult, merge_record

logger = get_logger(__name__)

DEFAULT_HISTORY_FILE = "commit-history.json"


class HistoryStore:
    """Load, reconcile and persist the commit history document.

    Usage:
        store = HistoryStore("commit-history.json")
        result = store.merge(record)
        print(result.action, len(result.records))
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_HISTORY_FILE, indent: int = 2):
        self.path = Path(path)
        self.indent = indent

    def ensure_exists(self) -> None:
        """Create the document as an empty array if it is missing."""
        if not self.path.exists():
            logger.debug("Creating empty history document %s", self.path)
            self.save([])

    def read(self) -> List[CommitRecord]:
        """Read and normalize the document.

        Raises:
            StorageReadCorrupt: If the file is unreadable, not JSON, or not an array.
        """
        if not self.path.exists():
            return []

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageReadCorrupt(self.path, str(e))

        if not isinstance(raw, list):
            raise StorageReadCorrupt(self.path, f"expected a JSON array, got {type(raw).__name__}")

        return self._normalize(raw)

    def load(self) -> List[CommitRecord]:
        """Like ``read`` but a corrupt document is treated as an empty history."""
        try:
            return self.read()
        except StorageReadCorrupt as e:
            logger.warning("%s; starting from an empty history", e)
            return []

    def save(self, records: List[CommitRecord]) -> None:
        """Replace the document with ``records``.

        Raises:
            StorageWriteFailure: On any filesystem error. Never retried.
        """
        payload = json.dumps(
            [r.to_dict() for r in records], indent=self.indent, ensure_ascii=False
        )
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise StorageWriteFailure(self.path, str(e))
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.debug("Wrote %d entries to %s", len(records), self.path)

    def merge(
        self,
        candidate: CommitRecord,
        policy: Union[DuplicatePolicy, str] = DuplicatePolicy.REJECT,
    ) -> MergeResult:
        """Full read-modify-write: load, reconcile ``candidate``, persist."""
        records = self.load()
        result = merge_record(records, candidate, policy)
        self.save(result.records)
        return result

    def _normalize(self, raw: list) -> List[CommitRecord]:
        """Rebuild records, skipping malformed entries and collapsing repeated shas."""
        by_sha: Dict[str, CommitRecord] = {}
        for position, entry in enumerate(raw):
            try:
                record = CommitRecord.from_dict(entry)
            except ValueError as e:
                logger.warning("Skipping history entry #%d in %s: %s", position, self.path, e)
                continue
            if record.sha in by_sha:
                logger.warning("Duplicate entry for commit %s in %s, keeping the last", record.sha, self.path)
                del by_sha[record.sha]
            by_sha[record.sha] = record
        return list(by_sha.values())
