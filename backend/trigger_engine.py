"""
Debounced trigger for the continual-learning consolidation follow-up.

One stop event goes in, one ``TriggerOutcome`` comes out. The evaluator is a
pure transition over ``EngineState``; loading and saving the state happens in
the hook entry point. The follow-up fires only when all of these hold:

1) the event is a countable turn (``completed`` on loop iteration 0),
2) enough countable turns accumulated since the last run,
3) enough whole minutes elapsed since the last run,
4) the transcript was modified after the one seen at the last run.

A redelivered event (same ``generation_id`` as the last processed one) is a
no-op and leaves the state untouched.
"""

from __future__ import annotations

import dataclasses
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from hook_config import TriggerConfig
from store import EngineState
from trial_policy import MS_PER_MINUTE, ThresholdSet, TrialWindow, apply_trial_policy

FOLLOWUP_MESSAGE_KEY = "followup_message"
INCREMENTAL_INDEX_PATH = (
    Path(".cursor") / "hooks" / "state" / "continual-learning-index.json"
).resolve()

FOLLOWUP_MESSAGE = (
    "Run the `continual-learning` skill now. First read the existing `AGENTS.md` "
    "and update existing entries in place (do not only append). Process "
    "transcripts incrementally using the index file "
    f"`{INCREMENTAL_INDEX_PATH}`: only read transcripts missing from the index "
    "or whose mtime is newer than the indexed mtime (re-read changed "
    "transcripts). After processing, write the updated mtimes back to the "
    "index and drop entries for transcripts that no longer exist. Update "
    "`AGENTS.md` only for high-signal, repeated user-correction patterns or "
    "durable workspace facts. Leave out one-off or transient details and "
    "secrets. Keep each learned section to at most 12 bullets. Write plain "
    "bullet points only, without evidence, confidence or other metadata "
    "annotations. If there is nothing meaningful to update, respond exactly: "
    "No high-signal memory updates."
)

STATUS_COMPLETED = "completed"

REASON_DUPLICATE_GENERATION = "duplicate_generation"
REASON_NOT_COUNTED_TURN = "not_counted_turn"
REASON_BELOW_MIN_TURNS = "below_min_turns"
REASON_BELOW_MIN_MINUTES = "below_min_minutes"
REASON_TRANSCRIPT_NOT_ADVANCED = "transcript_not_advanced"
REASON_FIRED = "fired"

TranscriptMtimeReader = Callable[[Optional[str]], Optional[float]]


class StopEvent(BaseModel):
    """Payload the host sends when a conversation turn ends."""

    model_config = ConfigDict(extra="ignore")

    conversation_id: str = ""
    generation_id: Optional[str] = None
    status: str = ""
    loop_count: Optional[int] = None
    transcript_path: Optional[str] = None

    @field_validator("generation_id", "transcript_path")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value

    @property
    def is_countable_turn(self) -> bool:
        # Internal retries (loop_count > 0) belong to a turn already counted.
        return self.status == STATUS_COMPLETED and self.loop_count == 0


@dataclass(frozen=True)
class TriggerOutcome:
    fired: bool
    skipped: bool
    reason: str
    state: EngineState
    thresholds: Optional[ThresholdSet] = None
    trial_window: Optional[TrialWindow] = None
    followup_message: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        if self.fired and self.followup_message:
            return {FOLLOWUP_MESSAGE_KEY: self.followup_message}
        return {}


def read_transcript_mtime_ms(transcript_path: Optional[str]) -> Optional[float]:
    """Best-effort transcript mtime in milliseconds; ``None`` when unknown."""
    if not transcript_path:
        return None
    try:
        return os.stat(transcript_path).st_mtime_ns / 1_000_000
    except (OSError, ValueError):
        return None


def minutes_since_last_run(state: EngineState, now_ms: float) -> float:
    if not state.has_run:
        return math.inf
    return float(math.floor((now_ms - state.last_run_at_ms) / MS_PER_MINUTE))


def transcript_has_advanced(
    state: EngineState, transcript_mtime_ms: Optional[float]
) -> bool:
    if transcript_mtime_ms is None:
        return False
    previous = state.last_transcript_mtime_ms
    return previous is None or transcript_mtime_ms > previous


def evaluate_stop_event(
    event: StopEvent,
    state: EngineState,
    *,
    config: TriggerConfig,
    now_ms: float,
    transcript_mtime_reader: Optional[TranscriptMtimeReader] = None,
) -> TriggerOutcome:
    if event.generation_id and event.generation_id == state.last_processed_generation_id:
        return TriggerOutcome(
            fired=False,
            skipped=True,
            reason=REASON_DUPLICATE_GENERATION,
            state=state,
        )

    next_state = dataclasses.replace(
        state, last_processed_generation_id=event.generation_id
    )
    counted_turn = event.is_countable_turn
    turns = next_state.turns_since_last_run + (1 if counted_turn else 0)

    selection = apply_trial_policy(next_state, now_ms, counted_turn, config)
    next_state = selection.state
    thresholds = selection.thresholds

    elapsed_minutes = minutes_since_last_run(next_state, now_ms)
    reader = transcript_mtime_reader or read_transcript_mtime_ms
    transcript_mtime_ms = reader(event.transcript_path)
    transcript_advanced = transcript_has_advanced(next_state, transcript_mtime_ms)

    if not counted_turn:
        reason = REASON_NOT_COUNTED_TURN
    elif turns < thresholds.min_turns:
        reason = REASON_BELOW_MIN_TURNS
    elif elapsed_minutes < thresholds.min_minutes:
        reason = REASON_BELOW_MIN_MINUTES
    elif not transcript_advanced:
        reason = REASON_TRANSCRIPT_NOT_ADVANCED
    else:
        reason = REASON_FIRED

    if reason == REASON_FIRED:
        return TriggerOutcome(
            fired=True,
            skipped=False,
            reason=reason,
            state=dataclasses.replace(
                next_state,
                last_run_at_ms=now_ms,
                turns_since_last_run=0,
                last_transcript_mtime_ms=transcript_mtime_ms,
            ),
            thresholds=thresholds,
            trial_window=selection.window,
            followup_message=FOLLOWUP_MESSAGE,
        )

    return TriggerOutcome(
        fired=False,
        skipped=False,
        reason=reason,
        state=dataclasses.replace(next_state, turns_since_last_run=turns),
        thresholds=thresholds,
        trial_window=selection.window,
    )
