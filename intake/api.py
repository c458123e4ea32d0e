"""HTTP surface: provider webhook and administrative extraction trigger."""

from __future__ import annotations

import logging
from typing import Any, Literal

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from intake.common.errors import ConfigError, PipelineError, WebhookPayloadError
from intake.common.ids import generate_run_id
from intake.common.logging import log_event
from intake.common.time_utils import utc_timestamp_iso
from intake.pipeline.webhook import handle_webhook
from intake.service import Services


class AdminTriggerRequest(BaseModel):
    """Request for a bulk extraction run."""

    action: Literal["extract_participants", "extract_landlords", "extract_investors", "process_historical", "get_forms"]
    form_ids: list[str] | None = None
    limit: int | None = None


def _error_response(status_code: int, message: str, error_code: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": message,
            "error_code": error_code,
            "timestamp": utc_timestamp_iso(),
            **extra,
        },
    )


def create_app(services: Services) -> FastAPI:
    app = FastAPI(title="SDA Form Intake", version="1.0.0")
    app.state.services = services
    logger: logging.Logger = services.context.logger

    @app.post("/webhook")
    async def webhook(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
        except ValueError:
            return _error_response(400, "Webhook body must be JSON", WebhookPayloadError.error_code)
        try:
            # handle_webhook blocks on downloads and rate-limit waits.
            outcome = await run_in_threadpool(handle_webhook, payload, services.context)
        except WebhookPayloadError as exc:
            return _error_response(400, str(exc), exc.error_code)
        return JSONResponse(
            content={
                "success": outcome.success,
                "result": outcome.to_dict(),
                "timestamp": utc_timestamp_iso(),
            }
        )

    @app.post("/admin/extract")
    def admin_extract(body: AdminTriggerRequest) -> JSONResponse:
        run_id = generate_run_id()
        try:
            if body.action == "get_forms":
                forms = services.api_client().list_forms(limit=body.limit or 1000)
                result: dict[str, Any] = {"total_forms": len(forms), "forms": [form.to_dict() for form in forms]}
            else:
                result = services.run_action(
                    body.action,
                    body.form_ids,
                    run_id=run_id,
                    submission_limit=body.limit,
                ).to_dict()
        except ConfigError as exc:
            return _error_response(500, str(exc), exc.error_code, action=body.action)
        except PipelineError as exc:
            log_event(
                logger,
                f"{body.action} failed: {exc}",
                level=logging.ERROR,
                run_id=run_id,
                stage="admin",
                event="RUN_FAIL",
                status="error",
                error_code=exc.error_code,
            )
            return _error_response(502, str(exc), exc.error_code, action=body.action)
        return JSONResponse(
            content={
                "success": True,
                "action": body.action,
                "result": result,
                "timestamp": utc_timestamp_iso(),
            }
        )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
