#!/usr/bin/env python
"""
Stop hook entry point for continual learning.

Reads one stop event (JSON) from stdin, updates the persisted trigger state
and prints exactly one JSON object on stdout: ``{}`` or
``{"followup_message": "..."}``. The exit status is always 0; failures are
reported on stderr so the host never aborts its own flow because of this hook.
"""

from __future__ import annotations

import json
import os
import sys
import time
from typing import Any, Dict, Optional, Sequence

# Ensure we can import from backend modules
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from hook_config import load_trigger_config
from store import StateStore
from trigger_engine import StopEvent, TranscriptMtimeReader, evaluate_stop_event

_LOG_PREFIX = "[continual-learning-stop]"


def _now_ms() -> float:
    return time.time() * 1000


def _parse_stop_event(raw_input: str) -> StopEvent:
    text = (raw_input or "").strip()
    if not text:
        raise ValueError("empty hook input")
    payload = json.loads(text)
    if not isinstance(payload, dict):
        raise ValueError(f"hook input must be a JSON object, got {type(payload).__name__}")
    return StopEvent.model_validate(payload)


def run_stop_hook(
    raw_input: str,
    argv: Optional[Sequence[str]] = None,
    *,
    store: Optional[StateStore] = None,
    now_ms: Optional[float] = None,
    transcript_mtime_reader: Optional[TranscriptMtimeReader] = None,
) -> Dict[str, Any]:
    """Run one evaluate-and-persist cycle and return the host payload."""
    try:
        event = _parse_stop_event(raw_input)
        config = load_trigger_config(argv)
        state_store = store if store is not None else StateStore()
        state = state_store.load()

        outcome = evaluate_stop_event(
            event,
            state,
            config=config,
            now_ms=_now_ms() if now_ms is None else now_ms,
            transcript_mtime_reader=transcript_mtime_reader,
        )
        if outcome.skipped:
            return {}

        state_store.save(outcome.state)
        return outcome.to_payload()
    except Exception as exc:
        print(f"{_LOG_PREFIX} failed: {exc!r}", file=sys.stderr)
        return {}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        raw_input = sys.stdin.read()
    except (OSError, ValueError) as exc:
        print(f"{_LOG_PREFIX} failed to read stdin: {exc!r}", file=sys.stderr)
        raw_input = ""
    payload = run_stop_hook(raw_input, args)
    print(json.dumps(payload))
    return 0


if __name__ == "__main__":
    sys.exit(main())
