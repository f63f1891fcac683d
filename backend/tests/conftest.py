import pytest

import hook_config

_HOOK_ENV_NAMES = [
    name
    for pair in (
        hook_config.ENV_TRIAL_MODE,
        hook_config.ENV_TRIAL_DURATION_MINUTES,
        hook_config.ENV_TRIAL_MIN_TURNS,
        hook_config.ENV_TRIAL_MIN_MINUTES,
        hook_config.ENV_MIN_TURNS,
        hook_config.ENV_MIN_MINUTES,
    )
    for name in pair
]


@pytest.fixture(autouse=True)
def _isolated_hook_env(monkeypatch) -> None:
    for name in _HOOK_ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
