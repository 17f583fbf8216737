# tierguard/server.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .compliance.matrix import build_matrix
from .compliance.models import ComplianceReport
from .compliance.rules import RULES
from .monitor import ComplianceEvaluationError, ComplianceMonitor
from .settings import MonitorSettings, get_settings
from .signals.fleet import filter_observations, report_observations, summarize_fleet

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Websocket clients waiting for freshly published reports."""

    def __init__(self) -> None:
        self.active: Set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active.add(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        self.active.discard(websocket)

    async def broadcast(self, message: str) -> None:
        for ws in list(self.active):
            try:
                await ws.send_text(message)
            except Exception as e:
                logger.debug(f"Dropping websocket client: {e}")
                self.disconnect(ws)


class AutoRefreshRequest(BaseModel):
    enabled: bool


def _report_payload(monitor: ComplianceMonitor, report: ComplianceReport) -> Dict[str, Any]:
    return {
        "report": report.model_dump(mode="json"),
        "monitor": monitor.status().model_dump(mode="json"),
    }


def create_app(
    monitor: Optional[ComplianceMonitor] = None,
    settings: Optional[MonitorSettings] = None,
) -> FastAPI:
    """
    Build the HTTP handoff for compliance reports.

    The monitor's periodic loop runs for the lifetime of the app.
    """
    if monitor is None:
        monitor = ComplianceMonitor.from_settings(settings or get_settings())
    ws_manager = ConnectionManager()

    async def push_report(report: ComplianceReport) -> None:
        if ws_manager.active:
            await ws_manager.broadcast(report.model_dump_json())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        unsubscribe = monitor.subscribe(push_report)
        await monitor.start()
        try:
            yield
        finally:
            unsubscribe()
            await monitor.stop()

    app = FastAPI(title="tierguard", lifespan=lifespan)
    app.state.monitor = monitor

    @app.get("/health")
    async def health_check():
        status = monitor.status()
        return {
            "status": "ok",
            "version": f"tierguard-{__version__}",
            "running": status.running,
            "last_error": status.last_error,
        }

    @app.get("/api/compliance")
    async def api_compliance() -> JSONResponse:
        report = monitor.report
        if report is None:
            return JSONResponse(
                {"ok": False, "error": "No compliance report yet", "monitor": monitor.status().model_dump(mode="json")},
                status_code=503,
            )
        return JSONResponse(_report_payload(monitor, report))

    @app.post("/api/compliance/refresh")
    async def api_compliance_refresh() -> JSONResponse:
        try:
            report = await monitor.refresh()
        except ComplianceEvaluationError as e:
            return JSONResponse({"ok": False, "error": str(e)}, status_code=500)
        return JSONResponse(_report_payload(monitor, report))

    @app.get("/api/compliance/matrix")
    async def api_compliance_matrix() -> JSONResponse:
        report = monitor.report
        if report is None:
            return JSONResponse({"ok": False, "error": "No compliance report yet"}, status_code=503)
        rows = [row.model_dump(mode="json") for row in build_matrix(report)]
        return JSONResponse({"rows": rows, "generated_at": report.generated_at.isoformat()})

    @app.get("/api/compliance/rules")
    async def api_compliance_rules():
        return {
            "rules": [
                {"id": r.id, "severity": r.severity, "description": r.description}
                for r in RULES
            ]
        }

    @app.put("/api/compliance/auto-refresh")
    async def api_auto_refresh(req: AutoRefreshRequest):
        monitor.set_auto_refresh(req.enabled)
        return {"auto_refresh": monitor.auto_refresh}

    @app.get("/api/fleet")
    async def api_fleet(
        project_id: Optional[int] = None,
        environment: Optional[str] = None,
        region: Optional[str] = None,
    ) -> JSONResponse:
        report = monitor.report
        if report is None:
            return JSONResponse({"ok": False, "error": "No compliance report yet"}, status_code=503)
        observations = filter_observations(
            report_observations(report), project_id=project_id, tier=environment, region=region
        )
        return JSONResponse(summarize_fleet(observations).model_dump(mode="json"))

    @app.websocket("/ws/compliance")
    async def ws_compliance(websocket: WebSocket):
        await ws_manager.connect(websocket)
        try:
            if monitor.report is not None:
                await websocket.send_text(monitor.report.model_dump_json())
            while True:
                # keep alive; clients do not send anything meaningful
                await websocket.receive_text()
        except WebSocketDisconnect:
            ws_manager.disconnect(websocket)

    return app
