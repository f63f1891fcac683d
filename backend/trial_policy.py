"""
Trial-mode threshold policy.

Trial mode lets an operator watch the consolidation follow-up fire often
during onboarding. The window opens on the first countable turn after trial
mode is enabled, lasts ``trial_duration_minutes``, and then the normal
thresholds apply again without further configuration.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Optional

from hook_config import TriggerConfig
from store import EngineState

MS_PER_MINUTE = 60_000

TRIAL_DISABLED = "disabled"
TRIAL_NOT_STARTED = "not_started"
TRIAL_ACTIVE = "active"
TRIAL_EXPIRED = "expired"


@dataclass(frozen=True)
class ThresholdSet:
    min_turns: int
    min_minutes: int
    source: str


@dataclass(frozen=True)
class TrialWindow:
    phase: str
    started_at_ms: Optional[float] = None
    active_until_ms: Optional[float] = None

    @property
    def is_active(self) -> bool:
        return self.phase == TRIAL_ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase,
            "started_at_ms": self.started_at_ms,
            "active_until_ms": self.active_until_ms,
        }


@dataclass(frozen=True)
class PolicySelection:
    state: EngineState
    window: TrialWindow
    thresholds: ThresholdSet


def resolve_trial_window(
    state: EngineState, now_ms: float, config: TriggerConfig
) -> TrialWindow:
    started = state.trial_started_at_ms
    if not config.trial_enabled:
        return TrialWindow(phase=TRIAL_DISABLED, started_at_ms=started)
    if started is None:
        return TrialWindow(phase=TRIAL_NOT_STARTED)
    active_until = started + config.trial_duration_minutes * MS_PER_MINUTE
    phase = TRIAL_ACTIVE if now_ms < active_until else TRIAL_EXPIRED
    return TrialWindow(phase=phase, started_at_ms=started, active_until_ms=active_until)


def select_thresholds(window: TrialWindow, config: TriggerConfig) -> ThresholdSet:
    if window.is_active:
        return ThresholdSet(
            min_turns=config.trial_min_turns,
            min_minutes=config.trial_min_minutes,
            source="trial",
        )
    return ThresholdSet(
        min_turns=config.normal_min_turns,
        min_minutes=config.normal_min_minutes,
        source="normal",
    )


def apply_trial_policy(
    state: EngineState,
    now_ms: float,
    counted_turn: bool,
    config: TriggerConfig,
) -> PolicySelection:
    """
    Stamp the trial start on the first countable turn, then pick thresholds.

    The stamp is one-shot: an existing ``trial_started_at_ms`` is never
    overwritten, even after the window has expired. The input state is not
    modified; the returned selection carries the (possibly stamped) copy.
    """
    if config.trial_enabled and counted_turn and state.trial_started_at_ms is None:
        state = dataclasses.replace(state, trial_started_at_ms=now_ms)
    window = resolve_trial_window(state, now_ms, config)
    return PolicySelection(
        state=state,
        window=window,
        thresholds=select_thresholds(window, config),
    )
