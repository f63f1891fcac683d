from .state_store import DEFAULT_STATE_PATH, STATE_VERSION, EngineState, StateStore

__all__ = ["DEFAULT_STATE_PATH", "STATE_VERSION", "EngineState", "StateStore"]
