"""
Append-only audit trail of clustering decisions.

One JSON object per line. Passed explicitly to ClusteringEngine; there is
no module-level recorder.
"""

import datetime
import json
import logging
import os
import threading
from typing import Any

from curator.config import EVENT_LOG_DIR

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def new_run_id() -> str:
    """Run ID based on the current UTC time."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return f"run_{now.strftime('%Y%m%d_%H%M%S')}"


class EventRecorder:
    def __init__(self, log_dir: str = EVENT_LOG_DIR, run_id: str | None = None):
        self.run_id = run_id or new_run_id()
        self.log_path = os.path.join(log_dir, "events.jsonl")
        self._lock = threading.Lock()
        os.makedirs(log_dir, exist_ok=True)

    def record(self, event_type: str, payload: dict[str, Any], actor: str = "curator") -> None:
        """
        Writes a structured, immutable event to the log.

        A failed write is logged and swallowed: the audit trail must never
        abort a clustering run or a user edit.
        """
        entry = {
            "schema_version": SCHEMA_VERSION,
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "run_id": self.run_id,
            "event_type": event_type,
            "actor": actor,
            "payload": payload,
        }

        try:
            with self._lock:
                with open(self.log_path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(entry) + "\n")
                    f.flush()
                    os.fsync(f.fileno())
        except OSError as e:
            logger.warning(f"Event logging failed: {e}")

    def read_events(self) -> list[dict]:
        """All events recorded so far (any run), oldest first."""
        if not os.path.exists(self.log_path):
            return []
        with open(self.log_path, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
