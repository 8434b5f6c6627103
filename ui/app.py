from __future__ import annotations

import os
import secrets
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from focuscore import (
    AmbientSound,
    AsyncioScheduler,
    FocusError,
    FocusPresenter,
    FocusTask,
    JsonTaskRepository,
    SaveFailed,
    build_focus_controller,
    focus_stats,
    ledger_path,
    load_config,
    setup_logger,
    workspace_root,
)
from focuscore.audio import PlayerFactory
from focuscore.scheduling import Clock


# ── Auth ──────────────────────────────────────────────────────

security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("FOCUSLEDGER_USERNAME", "")
    expected_password = os.environ.get("FOCUSLEDGER_PASSWORD", "")

    if credentials is None:
        if not expected_username or not expected_password:
            return "guest"
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    if not expected_username or not expected_password:
        return "guest"

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# ── Focus engine wiring ───────────────────────────────────────


class FocusService:
    """Holds the one controller a server process drives.

    Every endpoint touching it is ``async def`` so the engine only ever
    runs on the event-loop thread, next to its AsyncioScheduler callbacks.
    """

    def __init__(self, root: Path, clock: Clock | None = None, player_factory: PlayerFactory | None = None) -> None:
        config = load_config(root)
        setup_logger(root, config.log_level)
        self.root = root
        self.repository = JsonTaskRepository(ledger_path(root))
        self.controller = build_focus_controller(
            AsyncioScheduler(),
            root=root,
            config=config,
            repository=self.repository,
            clock=clock,
            player_factory=player_factory,
        )
        self.presenter = FocusPresenter(self.controller)
        self._errors: list[FocusError] = []
        self.controller.accountant.error.connect(self._errors.append)
        self.controller.sound.error.connect(self._errors.append)

    def run(self, operation, *args: Any) -> Any:
        """Run one controller operation; reported errors become HTTP errors."""
        self._errors.clear()
        result = operation(*args)
        if self._errors:
            error = self._errors[-1]
            code = 500 if isinstance(error, SaveFailed) else status.HTTP_409_CONFLICT
            raise HTTPException(status_code=code, detail={"kind": error.kind, "message": str(error)})
        return result

    def snapshot(self) -> dict[str, Any]:
        data = self.presenter.to_dict()
        data["elapsedSeconds"] = self.controller.elapsed_seconds
        return data


def create_app(
    root: Path | None = None,
    clock: Clock | None = None,
    player_factory: PlayerFactory | None = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service = FocusService(root or workspace_root(), clock=clock, player_factory=player_factory)
        service.controller.load_current_task()
        app.state.focus = service
        yield
        service.controller.shutdown()

    app = FastAPI(title="FocusLedger", version="0.1.0", lifespan=lifespan)
    _register_routes(app)
    return app


def _service(app: FastAPI) -> FocusService:
    return app.state.focus


def _register_routes(app: FastAPI) -> None:

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"ok": "true"}

    # ── Focus ─────────────────────────────────────────────────

    @app.get("/api/focus")
    async def api_focus(username: str = Depends(get_current_user)) -> dict[str, Any]:
        """Current timer, task card and sound view state (read-only)."""
        return _service(app).snapshot()

    @app.post("/api/focus/refresh")
    async def api_focus_refresh(username: str = Depends(get_current_user)) -> dict[str, Any]:
        """Move on to the next scheduled task once the current slot has ended."""
        service = _service(app)
        service.run(service.controller.load_current_task)
        return service.snapshot()

    @app.post("/api/focus/start")
    async def api_focus_start(payload: dict[str, Any] = Body(default={}), username: str = Depends(get_current_user)) -> dict[str, Any]:
        """Start focusing on the current task, or on ``taskId`` when given."""
        service = _service(app)
        task = None
        task_id = payload.get("taskId")
        if task_id:
            task = service.repository.get_task(str(task_id))
            if task is None:
                raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
        session = service.run(service.controller.start_focus, task)
        return {"ok": True, "session": session.to_dict() if session else None, **service.snapshot()}

    @app.post("/api/focus/pause")
    async def api_focus_pause(username: str = Depends(get_current_user)) -> dict[str, Any]:
        service = _service(app)
        service.run(service.controller.pause_focus)
        return {"ok": True, **service.snapshot()}

    @app.post("/api/focus/resume")
    async def api_focus_resume(username: str = Depends(get_current_user)) -> dict[str, Any]:
        service = _service(app)
        service.run(service.controller.resume_focus)
        return {"ok": True, **service.snapshot()}

    @app.post("/api/focus/stop")
    async def api_focus_stop(username: str = Depends(get_current_user)) -> dict[str, Any]:
        service = _service(app)
        session = service.run(service.controller.stop_focus)
        return {"ok": True, "session": session.to_dict() if session else None, **service.snapshot()}

    # ── Sound ─────────────────────────────────────────────────

    @app.post("/api/sound")
    async def api_select_sound(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
        """Crossfade to ``sound`` (one of the AmbientSound values)."""
        service = _service(app)
        try:
            sound = AmbientSound(str(payload.get("sound", "")))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown sound: {payload.get('sound')!r}")
        service.run(service.controller.select_sound, sound)
        if "volume" in payload:
            service.controller.set_volume(float(payload["volume"]))
        return {"ok": True, "sound": service.presenter.sound_view.to_dict()}

    @app.post("/api/sound/toggle")
    async def api_toggle_sound(username: str = Depends(get_current_user)) -> dict[str, Any]:
        service = _service(app)
        playing = service.run(service.controller.toggle_sound_playback)
        return {"ok": True, "isPlaying": playing, "sound": service.presenter.sound_view.to_dict()}

    # ── Tasks ─────────────────────────────────────────────────

    @app.get("/api/tasks")
    async def api_list_tasks(username: str = Depends(get_current_user)) -> dict[str, Any]:
        service = _service(app)
        return {
            "tasks": [
                {**t.to_dict(), "totalFocusedSeconds": t.total_focused_time, "progress": t.progress}
                for t in service.repository.fetch_tasks()
            ]
        }

    @app.post("/api/tasks")
    async def api_create_task(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
        """Create a scheduled task from ``title``, ``startTime`` and ``endTime``."""
        service = _service(app)
        payload = {k: v for k, v in payload.items() if k != "sessions"}
        try:
            task = service.repository.add_task(FocusTask.from_dict(payload))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        service.repository.save()
        service.controller.load_current_task()
        return {"ok": True, "task": task.to_dict()}

    @app.delete("/api/tasks/{task_id}")
    async def api_delete_task(task_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
        """Delete a task together with its sessions."""
        service = _service(app)
        task = service.repository.get_task(task_id)
        if task is None:
            raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
        if task is service.controller.current_task:
            service.controller.switch_active_task(None)
        service.repository.delete_task(task_id)
        service.repository.save()
        return {"ok": True, "task_id": task_id}

    # ── Stats ─────────────────────────────────────────────────

    @app.get("/api/stats")
    async def api_stats(username: str = Depends(get_current_user)) -> dict[str, Any]:
        service = _service(app)
        now = service.controller.accountant.clock.now()
        return focus_stats(service.repository.fetch_tasks(), now)


app = create_app()
