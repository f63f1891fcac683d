from hook_config import TriggerConfig
from store import EngineState
from trial_policy import (
    MS_PER_MINUTE,
    TRIAL_ACTIVE,
    TRIAL_DISABLED,
    TRIAL_EXPIRED,
    TRIAL_NOT_STARTED,
    apply_trial_policy,
    resolve_trial_window,
)

NOW_MS = 1_700_000_000_000
TRIAL_CONFIG = TriggerConfig(trial_enabled=True, trial_duration_minutes=60)


def test_first_countable_turn_stamps_trial_start_and_uses_trial_thresholds() -> None:
    state = EngineState()

    selection = apply_trial_policy(state, NOW_MS, True, TRIAL_CONFIG)

    assert selection.state.trial_started_at_ms == NOW_MS
    assert state.trial_started_at_ms is None
    assert selection.window.phase == TRIAL_ACTIVE
    assert selection.window.active_until_ms == NOW_MS + 60 * MS_PER_MINUTE
    assert selection.thresholds.source == "trial"
    assert selection.thresholds.min_turns == TRIAL_CONFIG.trial_min_turns
    assert selection.thresholds.min_minutes == TRIAL_CONFIG.trial_min_minutes


def test_uncounted_turn_does_not_start_trial() -> None:
    selection = apply_trial_policy(EngineState(), NOW_MS, False, TRIAL_CONFIG)

    assert selection.state.trial_started_at_ms is None
    assert selection.window.phase == TRIAL_NOT_STARTED
    assert selection.thresholds.source == "normal"


def test_trial_disabled_never_stamps_and_uses_normal_thresholds() -> None:
    config = TriggerConfig(trial_enabled=False)

    selection = apply_trial_policy(EngineState(), NOW_MS, True, config)

    assert selection.state.trial_started_at_ms is None
    assert selection.window.phase == TRIAL_DISABLED
    assert selection.thresholds.min_turns == config.normal_min_turns
    assert selection.thresholds.min_minutes == config.normal_min_minutes


def test_disabled_trial_keeps_existing_stamp_but_ignores_it() -> None:
    state = EngineState(trial_started_at_ms=NOW_MS - 1000)

    selection = apply_trial_policy(state, NOW_MS, True, TriggerConfig())

    assert selection.state.trial_started_at_ms == NOW_MS - 1000
    assert selection.window.phase == TRIAL_DISABLED
    assert selection.thresholds.source == "normal"


def test_trial_window_expires_at_duration_boundary() -> None:
    started = NOW_MS - 60 * MS_PER_MINUTE
    state = EngineState(trial_started_at_ms=started)

    just_before = resolve_trial_window(state, NOW_MS - 1, TRIAL_CONFIG)
    at_boundary = resolve_trial_window(state, NOW_MS, TRIAL_CONFIG)

    assert just_before.phase == TRIAL_ACTIVE
    assert at_boundary.phase == TRIAL_EXPIRED
    assert at_boundary.is_active is False


def test_trial_start_is_one_shot_even_after_expiry() -> None:
    started = NOW_MS - 5 * 60 * MS_PER_MINUTE
    state = EngineState(trial_started_at_ms=started)

    selection = apply_trial_policy(state, NOW_MS, True, TRIAL_CONFIG)

    assert selection.state.trial_started_at_ms == started
    assert selection.window.phase == TRIAL_EXPIRED
    assert selection.thresholds.source == "normal"
    assert selection.window.to_dict() == {
        "phase": TRIAL_EXPIRED,
        "started_at_ms": started,
        "active_until_ms": started + 60 * MS_PER_MINUTE,
    }
