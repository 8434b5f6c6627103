"""Tests for focuscore/controller.py — lifecycle wiring and hooks."""

import json
import time

import yaml

from conftest import make_task
from focuscore.audio import SilentPlayerFactory
from focuscore.controller import FocusController, build_focus_controller
from focuscore.models import AmbientSound, SessionStatus, TimerState
from focuscore.repository import JsonTaskRepository
from focuscore.workspace import hooks_config_path


def test_sound_follows_timer(controller, player_factory, scheduler):
    controller.load_current_task()
    controller.select_sound(AmbientSound.RAIN)
    scheduler.advance(1.5)
    player = player_factory.created[0]

    controller.start_focus()
    assert player.state == "playing"
    controller.pause_focus()
    assert player.state == "paused"
    assert not controller.sound.is_playing
    controller.resume_focus()
    assert player.state == "playing"
    controller.stop_focus()
    assert player.state == "paused"
    assert controller.sound.current_sound == AmbientSound.RAIN


def test_start_without_sound_stays_silent(controller, player_factory):
    controller.load_current_task()
    controller.start_focus()
    assert player_factory.created == []
    assert controller.sound.current_sound == AmbientSound.NONE


def test_toggle_focus_cycles(controller):
    controller.load_current_task()
    controller.toggle_focus()
    assert controller.state == TimerState.RUNNING
    controller.toggle_focus()
    assert controller.state == TimerState.PAUSED
    controller.toggle_focus()
    assert controller.state == TimerState.RUNNING


def test_hooks_receive_session_context(timer, sound, accountant, scheduler):
    calls = []
    controller = FocusController(timer, sound, accountant, hook_runner=lambda point, ctx: calls.append((point, ctx)))
    controller.load_current_task()
    controller.start_focus()
    scheduler.advance(42)
    controller.stop_focus()
    controller.select_sound(AmbientSound.BIRDS)

    points = [p for p, _ in calls]
    assert points == ["on_focus_start", "on_focus_stop", "on_sound_change"]
    stop_ctx = calls[1][1]
    assert stop_ctx["taskTitle"] == "Deep work"
    assert stop_ctx["session"]["elapsedSeconds"] == 42
    assert stop_ctx["totalFocusedSeconds"] == 42
    assert calls[2][1] == {"sound": "birds"}


def test_handle_suspend_and_foreground(controller, clock, scheduler):
    controller.load_current_task()
    controller.start_focus()
    controller.handle_suspend()
    clock.advance(300)
    controller.handle_foreground()
    assert controller.elapsed_seconds == 300
    assert controller.current_session is not None


def test_shutdown_persists_running_session(controller, repository, scheduler, player_factory):
    controller.load_current_task()
    controller.select_sound(AmbientSound.RAIN)
    session = controller.start_focus()
    scheduler.advance(9)
    controller.shutdown()
    assert session.status == SessionStatus.PAUSED
    assert session.elapsed_seconds == 9
    assert player_factory.live == []
    assert scheduler.active == []


def test_build_focus_controller_from_workspace(workspace, clock, scheduler):
    repo = JsonTaskRepository()
    repo.add_task(make_task())
    repo.save()

    controller = build_focus_controller(scheduler, root=workspace, clock=clock)
    assert isinstance(controller.sound.player_factory, SilentPlayerFactory)
    assert controller.sound.volume == 0.8
    assert controller.timer.tick_interval == 1.0

    controller.load_current_task()
    controller.start_focus()
    scheduler.advance(15)
    controller.stop_focus()

    stored = json.loads((workspace / "planner" / "focus_tasks.json").read_text(encoding="utf-8"))
    assert stored["tasks"][0]["sessions"][0]["elapsedSeconds"] == 15


def test_build_focus_controller_runs_workspace_hooks(workspace, clock, scheduler):
    out = workspace / "hook_out.json"
    hooks_config_path(workspace).write_text(
        yaml.dump({"on_focus_start": [f"cat > {out}"]}), encoding="utf-8"
    )
    repo = JsonTaskRepository()
    repo.add_task(make_task("Hooked"))
    repo.save()

    controller = build_focus_controller(scheduler, root=workspace, clock=clock)
    controller.load_current_task()
    controller.start_focus()
    controller.hook_runner.wait(timeout=10)

    context = json.loads(out.read_text(encoding="utf-8"))
    assert context["action"] == "start"
    assert context["taskTitle"] == "Hooked"


def test_slow_hook_does_not_block_operations(workspace, clock, scheduler):
    hooks_config_path(workspace).write_text(
        yaml.dump({"on_focus_start": ["sleep 2"], "on_focus_stop": ["sleep 2"]}), encoding="utf-8"
    )
    repo = JsonTaskRepository()
    repo.add_task(make_task())
    repo.save()

    controller = build_focus_controller(scheduler, root=workspace, clock=clock)
    controller.load_current_task()
    started = time.monotonic()
    controller.start_focus()
    scheduler.advance(5)
    controller.stop_focus()
    assert time.monotonic() - started < 1.0
    assert controller.current_task.sessions[0].elapsed_seconds == 5
    controller.shutdown()
