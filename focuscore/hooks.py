"""Plugin/hook system for FocusLedger.

Lifecycle hooks run shell commands when the focus state changes.
Configured via planner/hooks.yaml:

    on_focus_stop:
      - notify-send "Focus session saved"
      - command: ./scripts/log_session.sh
        timeout: 10

Hook points:
- on_focus_start, on_focus_pause, on_focus_resume, on_focus_stop
- on_task_switch
- on_sound_change

The engine hands hooks to a ``HookDispatcher``, which runs them on a
single worker thread in the order they were fired. Only the JSON context
crosses threads; the engine itself stays on its own loop.
"""

from __future__ import annotations

import json
import logging
import subprocess
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable

from focuscore.fileio import read_yaml
from focuscore.workspace import hooks_config_path, workspace_root

logger = logging.getLogger(__name__)

VALID_HOOK_POINTS = {
    "on_focus_start",
    "on_focus_pause",
    "on_focus_resume",
    "on_focus_stop",
    "on_task_switch",
    "on_sound_change",
}

DEFAULT_TIMEOUT = 30
OUTPUT_CAP = 4096

HookRunner = Callable[[str, dict[str, Any]], Any]


def load_hooks_config(root: Path | None = None) -> dict[str, Any]:
    """Load hooks configuration from planner/hooks.yaml."""
    return read_yaml(hooks_config_path(root or workspace_root()))


def _parse_hook(entry: Any) -> tuple[str, float] | None:
    """A hook entry is a bare command string or {command, timeout}."""
    if isinstance(entry, str):
        command, timeout = entry, DEFAULT_TIMEOUT
    elif isinstance(entry, dict):
        command = entry.get("command", "")
        timeout = entry.get("timeout", DEFAULT_TIMEOUT)
    else:
        return None
    return (command, timeout) if command else None


def _run_command(command: str, timeout: float, stdin: str, cwd: Path) -> dict[str, Any]:
    try:
        proc = subprocess.run(
            command,
            shell=True,
            input=stdin,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=str(cwd),
        )
    except subprocess.TimeoutExpired:
        return {"exit_code": -1, "error": f"Hook timed out after {timeout}s"}
    except OSError as e:
        return {"exit_code": -1, "error": str(e)}
    return {
        "exit_code": proc.returncode,
        "stdout": proc.stdout[:OUTPUT_CAP],
        "stderr": proc.stderr[:OUTPUT_CAP],
    }


def _run_serialized(hook_point: str, context_json: str, root: Path) -> list[dict[str, Any]]:
    hooks = load_hooks_config(root).get(hook_point) or []
    if not isinstance(hooks, list):
        return []

    results = []
    for entry in hooks:
        parsed = _parse_hook(entry)
        if parsed is None:
            continue
        command, timeout = parsed
        result = {"command": command, "hook_point": hook_point}
        result.update(_run_command(command, timeout, context_json, root))
        if result["exit_code"] != 0:
            logger.warning("Hook %r at %s exited with %s", command, hook_point, result["exit_code"])
        results.append(result)
    return results


def run_hooks(
    hook_point: str,
    context: dict[str, Any],
    root: Path | None = None,
) -> list[dict[str, Any]]:
    """Run all hooks registered for a hook point and wait for them.

    Context is passed as JSON via stdin to each hook subprocess.
    Returns list of results with stdout/stderr and exit codes.
    """
    if hook_point not in VALID_HOOK_POINTS:
        return []
    return _run_serialized(hook_point, json.dumps(context, ensure_ascii=False), root or workspace_root())


class HookDispatcher:
    """Fire-and-forget hook runner bound to one workspace.

    Calling it serializes the context immediately and returns a Future
    with the hook results; subprocesses run on the worker thread.
    """

    def __init__(self, root: Path | None = None) -> None:
        self.root = root or workspace_root()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="focus-hooks")

    def __call__(self, hook_point: str, context: dict[str, Any]) -> Future:
        if hook_point not in VALID_HOOK_POINTS:
            done: Future = Future()
            done.set_result([])
            return done
        context_json = json.dumps(context, ensure_ascii=False)
        future = self._executor.submit(_run_serialized, hook_point, context_json, self.root)
        future.add_done_callback(self._log_failure)
        return future

    def wait(self, timeout: float | None = None) -> None:
        """Block until every hook fired so far has finished."""
        self._executor.submit(lambda: None).result(timeout)

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    @staticmethod
    def _log_failure(future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning("Hook dispatch failed: %s", error)


def workspace_hook_runner(root: Path | None = None) -> HookDispatcher:
    """A runner bound to one workspace, for injection into the controller."""
    return HookDispatcher(root)
