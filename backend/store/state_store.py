"""
JSON-file state store for the continual-learning stop hook.

The hook process is re-executed for every stop event, so the trigger engine
keeps its counters in a single JSON document between invocations:

    .cursor/hooks/state/continual-learning.json

Records carry a schema ``version``; any other version is treated as absent.
Each save fully replaces the previous record through a sibling temp file and
``os.replace``.

Concurrency caveat: there is no file lock and no compare-and-swap. The host
is expected to serialize stop events for one workspace. Two overlapping
invocations both read the same record and the later save wins, which can
drop one turn increment or fire the follow-up twice.
"""

from __future__ import annotations

import json
import math
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

STATE_VERSION = 1
DEFAULT_STATE_PATH = Path(".cursor") / "hooks" / "state" / "continual-learning.json"

# attribute name -> persisted JSON key
_JSON_KEYS = {
    "version": "version",
    "last_run_at_ms": "lastRunAtMs",
    "turns_since_last_run": "turnsSinceLastRun",
    "last_transcript_mtime_ms": "lastTranscriptMtimeMs",
    "last_processed_generation_id": "lastProcessedGenerationId",
    "trial_started_at_ms": "trialStartedAtMs",
}


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


@dataclass
class EngineState:
    """Persisted trigger state. ``last_run_at_ms == 0`` means never fired."""

    version: int = STATE_VERSION
    last_run_at_ms: float = 0
    turns_since_last_run: int = 0
    last_transcript_mtime_ms: Optional[float] = None
    last_processed_generation_id: Optional[str] = None
    trial_started_at_ms: Optional[float] = None

    @property
    def has_run(self) -> bool:
        return self.last_run_at_ms > 0

    def to_dict(self) -> Dict[str, Any]:
        return {_JSON_KEYS[name]: value for name, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EngineState":
        """
        Build a state from a decoded record, sanitizing field by field.

        Invalid fields fall back to their defaults; the caller is responsible
        for rejecting records with a different ``version``.
        """
        last_run = payload.get("lastRunAtMs")
        turns = payload.get("turnsSinceLastRun")
        transcript_mtime = payload.get("lastTranscriptMtimeMs")
        generation_id = payload.get("lastProcessedGenerationId")
        trial_started = payload.get("trialStartedAtMs")
        return cls(
            version=STATE_VERSION,
            last_run_at_ms=last_run if _is_finite_number(last_run) else 0,
            turns_since_last_run=(
                int(turns) if _is_finite_number(turns) and turns >= 0 else 0
            ),
            last_transcript_mtime_ms=(
                transcript_mtime if _is_finite_number(transcript_mtime) else None
            ),
            last_processed_generation_id=(
                generation_id if isinstance(generation_id, str) else None
            ),
            trial_started_at_ms=(
                trial_started if _is_finite_number(trial_started) else None
            ),
        )


class StateStore:
    """Load and save the single ``EngineState`` record."""

    def __init__(self, state_path: Optional[Union[Path, str]] = None) -> None:
        raw_path = Path(state_path) if state_path is not None else DEFAULT_STATE_PATH
        self.state_path = raw_path.expanduser().resolve()

    def load(self) -> EngineState:
        """Return the stored state, or a fresh default on any problem."""
        if not self.state_path.exists():
            return EngineState()
        try:
            payload = json.loads(self.state_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValueError):
            return EngineState()
        if not isinstance(payload, dict):
            return EngineState()
        version = payload.get("version")
        if isinstance(version, bool) or version != STATE_VERSION:
            return EngineState()
        return EngineState.from_dict(payload)

    def save(self, state: EngineState) -> None:
        """Replace the stored record with ``state``. Raises ``OSError`` on failure."""
        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        body = json.dumps(state.to_dict(), indent=2) + "\n"
        tmp_path = self.state_path.with_name(
            f".{self.state_path.name}.{os.getpid()}.tmp"
        )
        try:
            tmp_path.write_text(body, encoding="utf-8")
            os.replace(tmp_path, self.state_path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
