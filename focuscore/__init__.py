"""FocusLedger core library — timer, sound and session accounting engines.

Public API re-exports for convenient imports:
    from focuscore import build_focus_controller, FocusPresenter, ...
"""

# Workspace & paths
from focuscore.workspace import (
    workspace_root,
    get_user_timezone,
    now_local,
    profile_path,
    focus_config_path,
    ledger_path,
    hooks_config_path,
    sounds_dir,
    log_dir,
)

# File I/O
from focuscore.fileio import (
    read_text,
    read_json,
    read_yaml,
    write_json_atomic,
    write_yaml_atomic,
)

# Config & logging
from focuscore.config import FocusConfig, load_config, save_config
from focuscore.logging_setup import setup_logger

# Errors
from focuscore.errors import (
    FocusError,
    NoActiveTaskError,
    NoActiveSessionError,
    InvalidStateError,
    SaveFailed,
    FetchFailed,
    AudioPlaybackFailed,
)

# Models
from focuscore.models import (
    TimerState,
    SessionStatus,
    AmbientSound,
    FocusSession,
    FocusTask,
)

# Engines
from focuscore.events import Signal
from focuscore.scheduling import Clock, Scheduler, SystemClock, AsyncioScheduler
from focuscore.timer import ClockTimer
from focuscore.audio import SilentPlayerFactory, PygamePlayerFactory, make_player_factory
from focuscore.crossfade import CrossfadeScheduler
from focuscore.repository import TaskRepository, MemoryTaskRepository, JsonTaskRepository
from focuscore.accounting import SessionAccountant, session_delta, previously_accumulated
from focuscore.controller import FocusController, build_focus_controller

# Presentation
from focuscore.formatting import (
    format_clock,
    format_total_time,
    format_short_time,
    start_of_week,
)
from focuscore.presenter import FocusPresenter, TimerViewModel, TaskCardViewModel, SoundViewModel
from focuscore.stats import focus_stats, total_focus_seconds, weekly_totals, daily_records

# Hooks
from focuscore.hooks import HookDispatcher, run_hooks, workspace_hook_runner
