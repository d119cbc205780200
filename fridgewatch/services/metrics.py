from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from typing import Any, Optional, Dict

from fridgewatch.config import Settings
from fridgewatch.services.exceptions import RepoError
from fridgewatch.services.repo.json_repo import _locked  # reuse existing cross-platform lock

log = logging.getLogger(__name__)


class MetricsLogger:
    """Append-only JSONL logger for latency metrics under data/.

    Writes one JSON object per line with fields:
      - ts: ISO timestamp (UTC)
      - kind: "latency"
      - name: short name (e.g., "notification_sync")
      - duration_ms: float
      - extra: optional dict with contextual fields
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        os.makedirs(self.settings.data_dir, exist_ok=True)
        self.path = os.path.join(self.settings.data_dir, self.settings.metrics_file)

    def log_latency(
        self,
        name: str,
        duration_ms: float,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        entry = {
            "ts": datetime.utcnow().isoformat(),
            "kind": "latency",
            "name": name,
            "duration_ms": float(duration_ms),
        }
        if extra:
            entry["extra"] = extra
        line = (json.dumps(entry, ensure_ascii=False, separators=(",", ":"), default=str) + "\n").encode("utf-8")
        try:
            with _locked(self.path) as f:
                f.seek(0, os.SEEK_END)
                f.write(line)
                f.flush()
                os.fsync(f.fileno())
        except (RepoError, OSError) as e:
            # Metrics should never impact user flows.
            log.warning("Dropping latency metric %s: %s", name, e)
