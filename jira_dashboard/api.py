"""
FastAPI Backend for the Jira Dashboard

Provides the notification and workload REST API used by the dashboard.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from logging.config import dictConfig
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .config import Config
from .errors import InvalidSheetUrlError, SprintNotFoundError, UpstreamError
from .integrations import GoogleSheetsClient, SheetsCollaborator, extract_sheet_id
from .notifier import NotificationEngine
from .sheet_data import SheetDataService
from .workload import MAX_TREND_DAYS, WorkloadService

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    """Route the package logger through uvicorn's formatter."""
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "()": "uvicorn.logging.DefaultFormatter",
                    "fmt": "%(levelprefix)s %(asctime)s %(name)s: %(message)s",
                    "use_colors": None,
                },
            },
            "handlers": {
                "default": {
                    "formatter": "default",
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                "jira_dashboard": {
                    "handlers": ["default"],
                    "level": level,
                    "propagate": False,
                },
            },
        }
    )


# Pydantic models for API
class AcknowledgeRequest(BaseModel):
    alert_id: str


class UpdateSettingsRequest(BaseModel):
    warning_threshold: Optional[float] = Field(default=None, ge=0)
    danger_threshold: Optional[float] = Field(default=None, ge=0)
    email_notifications: Optional[bool] = None
    dashboard_notifications: Optional[bool] = None
    cooldown_minutes: Optional[int] = Field(default=None, ge=0)


class UpdateSheetConfigRequest(BaseModel):
    google_sheet_url: str


# Dependencies
def get_engine(request: Request) -> NotificationEngine:
    return request.app.state.notifications


def get_workload(request: Request) -> WorkloadService:
    return request.app.state.workload


def get_sheets(request: Request) -> SheetsCollaborator:
    return request.app.state.sheets


def get_sheet_data(request: Request) -> SheetDataService:
    return request.app.state.sheet_data


def create_app(
    config: Optional[Config] = None,
    sheets: Optional[SheetsCollaborator] = None,
    notifications: Optional[NotificationEngine] = None,
    workload: Optional[WorkloadService] = None,
    sheet_data: Optional[SheetDataService] = None
) -> FastAPI:
    """
    Build the API with its services.

    Services not passed in are created from the configuration.
    """
    config = config or Config()
    configure_logging(config.log_level)

    if sheets is None:
        sheets = GoogleSheetsClient(
            sheet_id=config.sheet_id,
            issues_sheet=config.issues_tab,
            sprints_sheet=config.sprints_tab,
            timeout=config.sheets_timeout
        )
    if notifications is None:
        notifications = NotificationEngine(
            sheets=sheets,
            settings=config.notification_settings(),
            timeout=config.sheets_timeout
        )
    if workload is None:
        workload = WorkloadService(sheets=sheets, timeout=config.sheets_timeout)
    if sheet_data is None:
        sheet_data = SheetDataService(sheets=sheets, timeout=config.sheets_timeout)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        logger.info("Jira Dashboard API starting up")
        yield
        logger.info("Jira Dashboard API shutting down")

    app = FastAPI(
        title="Jira Dashboard",
        description="API for sprint progress notifications and team workload analysis",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.config = config
    app.state.sheets = sheets
    app.state.notifications = notifications
    app.state.workload = workload
    app.state.sheet_data = sheet_data

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


def register_routes(app: FastAPI):

    # Health check
    @app.get("/health")
    async def health_check(sheets: SheetsCollaborator = Depends(get_sheets)):
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "sheet_configured": bool(getattr(sheets, "is_configured", True))
        }

    # Table endpoints
    @app.get("/api/table/data")
    async def get_table_data(
        page: int = Query(1, ge=1),
        page_size: int = Query(100, ge=1, le=1000),
        sort_by: str = "key",
        sort_order: str = Query("asc", pattern="^(asc|desc)$"),
        sprint: Optional[str] = None,
        service: SheetDataService = Depends(get_sheet_data)
    ):
        """Get one page of issue rows, optionally filtered to a sprint."""
        try:
            return await service.get_table_page(page, page_size, sort_by, sort_order, sprint)
        except UpstreamError as e:
            raise HTTPException(status_code=502, detail=f"Failed to get table data: {e}")

    @app.get("/api/table/sprints")
    async def get_table_sprints(service: SheetDataService = Depends(get_sheet_data)):
        try:
            return {"sprints": await service.get_sprint_options()}
        except UpstreamError as e:
            raise HTTPException(status_code=502, detail=f"Failed to get sprint options: {e}")

    @app.get("/api/table/summary")
    async def get_table_summary(service: SheetDataService = Depends(get_sheet_data)):
        try:
            return await service.get_summary()
        except UpstreamError as e:
            raise HTTPException(status_code=502, detail=f"Failed to get table summary: {e}")

    # Dashboard endpoints
    @app.get("/api/dashboard/stats")
    async def get_dashboard_stats(
        sprint: Optional[str] = None,
        service: SheetDataService = Depends(get_sheet_data)
    ):
        """Get issue and story point totals."""
        try:
            return await service.get_dashboard_stats(sprint)
        except UpstreamError as e:
            raise HTTPException(status_code=502, detail=f"Failed to get dashboard stats: {e}")

    @app.get("/api/dashboard/status-distribution")
    async def get_status_distribution(
        sprint: Optional[str] = None,
        service: SheetDataService = Depends(get_sheet_data)
    ):
        """Get issue counts per status."""
        try:
            return await service.get_status_distribution(sprint)
        except UpstreamError as e:
            raise HTTPException(status_code=502, detail=f"Failed to get status distribution: {e}")

    # Sprint endpoints
    @app.get("/api/sprint/list")
    async def get_sprint_list(service: SheetDataService = Depends(get_sheet_data)):
        try:
            return {"sprints": await service.get_sprint_list()}
        except UpstreamError as e:
            raise HTTPException(status_code=502, detail=f"Failed to get sprint list: {e}")

    @app.get("/api/sprint/burndown/{sprint_name}")
    async def get_sprint_burndown(
        sprint_name: str,
        service: SheetDataService = Depends(get_sheet_data)
    ):
        """Get burndown figures for a sprint."""
        try:
            snapshot = await service.get_sprint_burndown(sprint_name)
        except SprintNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except UpstreamError as e:
            raise HTTPException(status_code=502, detail=f"Failed to get sprint burndown data: {e}")

        return snapshot.to_dict()

    @app.get("/api/sprint/info/{sprint_name}")
    async def get_sprint_info(
        sprint_name: str,
        service: SheetDataService = Depends(get_sheet_data)
    ):
        try:
            return await service.get_sprint_info(sprint_name)
        except SprintNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except UpstreamError as e:
            raise HTTPException(status_code=502, detail=f"Failed to get sprint info: {e}")

    # Notification endpoints
    @app.get("/api/notifications")
    async def get_notifications(engine: NotificationEngine = Depends(get_engine)):
        """Get active alerts, settings and last check time."""
        return engine.get_active_notifications().to_dict()

    @app.post("/api/notifications/check")
    async def check_sprint_progress(engine: NotificationEngine = Depends(get_engine)):
        """Check all active sprints outside their cooldown window."""
        report = await engine.check_all_active_sprints()
        return report.to_dict()

    @app.post("/api/notifications/check-sprint/{sprint_name}")
    async def check_specific_sprint(
        sprint_name: str,
        engine: NotificationEngine = Depends(get_engine)
    ):
        """Check one sprint now, ignoring its cooldown."""
        try:
            alerts = await engine.check_sprint(sprint_name)
        except SprintNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except UpstreamError as e:
            raise HTTPException(
                status_code=502,
                detail=f"Failed to check sprint progress for {sprint_name}: {e}"
            )

        return {"alerts_created": len(alerts), "alerts": [a.to_dict() for a in alerts]}

    @app.post("/api/notifications/acknowledge")
    async def acknowledge_notification(
        request: AcknowledgeRequest,
        engine: NotificationEngine = Depends(get_engine)
    ):
        """Acknowledge an alert by id."""
        if not engine.acknowledge(request.alert_id):
            raise HTTPException(status_code=404, detail="Notification not found")
        return {"success": True, "message": "Notification acknowledged successfully"}

    @app.get("/api/notifications/settings")
    async def get_notification_settings(engine: NotificationEngine = Depends(get_engine)):
        return engine.settings.to_dict()

    @app.post("/api/notifications/settings")
    async def update_notification_settings(
        request: UpdateSettingsRequest,
        engine: NotificationEngine = Depends(get_engine)
    ):
        """Update only the settings present in the request."""
        try:
            settings = engine.update_settings(**request.model_dump())
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        return {
            "success": True,
            "message": "Settings updated successfully",
            "settings": settings.to_dict()
        }

    @app.post("/api/notifications/cleanup")
    async def cleanup_notifications(engine: NotificationEngine = Depends(get_engine)):
        """Remove acknowledged alerts."""
        removed = engine.cleanup_acknowledged()
        return {
            "success": True,
            "message": "Acknowledged notifications cleaned up",
            "removed": removed
        }

    # Workload endpoints
    @app.get("/api/workload/{sprint_name}")
    async def get_workload_distribution(
        sprint_name: str,
        service: WorkloadService = Depends(get_workload)
    ):
        """Get the team workload distribution for a sprint."""
        try:
            distribution = await service.get_distribution(sprint_name)
        except SprintNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except UpstreamError as e:
            raise HTTPException(status_code=502, detail=f"Failed to get workload distribution: {e}")

        return distribution.to_dict()

    @app.get("/api/workload/{sprint_name}/alerts")
    async def get_workload_alerts(
        sprint_name: str,
        service: WorkloadService = Depends(get_workload)
    ):
        """Get overloaded and underloaded members for a sprint."""
        try:
            alerts = await service.get_alerts(sprint_name)
        except SprintNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except UpstreamError as e:
            raise HTTPException(status_code=502, detail=f"Failed to get workload alerts: {e}")

        return {"alerts": [a.to_dict() for a in alerts]}

    @app.get("/api/workload/{sprint_name}/trend")
    async def get_workload_trend(
        sprint_name: str,
        days: int = Query(7, ge=1, le=MAX_TREND_DAYS),
        service: WorkloadService = Depends(get_workload)
    ):
        """Get workload trend data (synthetic)."""
        trend = await service.get_trend(sprint_name, days)
        return trend.to_dict()

    @app.post("/api/workload/{sprint_name}/refresh")
    async def refresh_workload(
        sprint_name: str,
        service: WorkloadService = Depends(get_workload)
    ):
        """Recompute a sprint's workload, bypassing the cache."""
        try:
            distribution = await service.refresh(sprint_name)
        except SprintNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except UpstreamError as e:
            raise HTTPException(status_code=502, detail=f"Failed to refresh workload data: {e}")

        return {"success": True, "distribution": distribution.to_dict()}

    # Sheet configuration
    @app.get("/api/config/sheet")
    async def get_sheet_config(sheets: SheetsCollaborator = Depends(get_sheets)):
        return {
            "sheet_id": getattr(sheets, "sheet_id", None),
            "sheet_url": getattr(sheets, "sheet_url", None)
        }

    @app.post("/api/config/sheet")
    async def update_sheet_config(
        request: UpdateSheetConfigRequest,
        sheets: SheetsCollaborator = Depends(get_sheets),
        service: WorkloadService = Depends(get_workload)
    ):
        """Switch to another Google Sheet and drop cached workload data."""
        try:
            sheet_id = extract_sheet_id(request.google_sheet_url)
        except InvalidSheetUrlError as e:
            raise HTTPException(status_code=400, detail=str(e))

        if not hasattr(sheets, "update_sheet_id"):
            raise HTTPException(status_code=400, detail="The data source does not support switching sheets")

        sheets.update_sheet_id(sheet_id)
        service.invalidate()

        return {
            "success": True,
            "message": f"Sheet ID updated successfully to: {sheet_id}. Changes are now active.",
            "sheet_id": sheet_id
        }


app = create_app()


# Run with: uvicorn jira_dashboard.api:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
