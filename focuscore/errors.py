"""Error kinds reported by the focus engine.

The accountant and the sound scheduler never raise these at their callers;
they are emitted on the ``error`` signal so a UI can show a dismissible
notice while the state machines stay usable.
"""

from __future__ import annotations


class FocusError(Exception):
    """Base class for every reported focus-engine error."""

    kind = "unknown"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FocusError):
            return NotImplemented
        return type(self) is type(other) and self.args == other.args

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class NoActiveTaskError(FocusError):
    kind = "no_active_task"

    def __init__(self, message: str = "No task is scheduled for now") -> None:
        super().__init__(message)


class NoActiveSessionError(FocusError):
    kind = "no_active_session"

    def __init__(self, message: str = "No focus session is in progress") -> None:
        super().__init__(message)


class InvalidStateError(FocusError):
    kind = "invalid_state"


class _CausedError(FocusError):
    """An error wrapping an underlying exception."""

    def __init__(self, cause: BaseException | str) -> None:
        self.cause = cause
        super().__init__(str(cause))
        if isinstance(cause, BaseException):
            self.__cause__ = cause


class SaveFailed(_CausedError):
    kind = "save_failed"


class FetchFailed(_CausedError):
    kind = "fetch_failed"


class AudioPlaybackFailed(_CausedError):
    kind = "audio_playback_failed"
