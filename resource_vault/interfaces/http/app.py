from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from resource_vault.core.config import settings
from resource_vault.core.errors import ResourceImportError
from resource_vault.query.engine import tag_frequency, view
from resource_vault.query.summary import summarize
from resource_vault.store.preferences import ThemePreference
from resource_vault.store.repository import ResourceRepository
from resource_vault.transfer import export_resources, import_resources
from resource_vault.utils.resource_models import (
    ALL,
    FilterSpec,
    ResourcePatch,
    ResourcePayload,
    ResourceRecord,
    ResourceStatus,
    Theme,
)

logger = logging.getLogger(__name__)


class StatusChange(BaseModel):
    status: ResourceStatus


class ThemeChange(BaseModel):
    theme: Theme


def create_app(
    repository: Optional[ResourceRepository] = None,
    theme: Optional[ThemePreference] = None,
) -> FastAPI:
    app = FastAPI(title="Resource Vault", version="0.1.0")
    # Sync endpoints run in a thread pool; commands stay single-actor.
    lock = threading.Lock()

    app.state.repository = repository or ResourceRepository.open(settings)
    app.state.theme = theme or ThemePreference.open(settings)
    logger.info("Resource vault serving %s resources", len(app.state.repository))

    def repo() -> ResourceRepository:
        return app.state.repository

    def find(resource_id: str) -> ResourceRecord:
        record = repo().get(resource_id)
        if record is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, f"No resource matches id {resource_id}")
        return record

    @app.get("/healthz")
    def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/resources")
    def list_resources(
        search: str = "",
        type: str = ALL,
        status_filter: str = Query(default=ALL, alias="status"),
        tag: List[str] = Query(default=[]),
        pinned: bool = False,
    ) -> List[Dict[str, Any]]:
        try:
            spec = FilterSpec(
                search_term=search,
                type=type,
                status=status_filter,
                tags=tuple(tag),
                show_pinned_only=pinned,
            )
        except ValueError as exc:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc)) from exc
        return [record.to_dict() for record in view(repo().records, spec)]

    @app.get("/resources/{resource_id}")
    def get_resource(resource_id: str) -> Dict[str, Any]:
        return find(resource_id).to_dict()

    @app.post("/resources", status_code=status.HTTP_201_CREATED)
    def create_resource(payload: ResourcePayload) -> Dict[str, Any]:
        with lock:
            created = repo().create(payload)[0]
        return created.to_dict()

    @app.patch("/resources/{resource_id}")
    def update_resource(resource_id: str, patch: ResourcePatch) -> Dict[str, Any]:
        with lock:
            find(resource_id)
            repo().update(resource_id, patch)
            return find(resource_id).to_dict()

    @app.post("/resources/{resource_id}/pin")
    def pin_resource(resource_id: str) -> Dict[str, Any]:
        with lock:
            find(resource_id)
            repo().set_pinned(resource_id, True)
            return find(resource_id).to_dict()

    @app.post("/resources/{resource_id}/unpin")
    def unpin_resource(resource_id: str) -> Dict[str, Any]:
        with lock:
            find(resource_id)
            repo().set_pinned(resource_id, False)
            return find(resource_id).to_dict()

    @app.post("/resources/{resource_id}/toggle-pin")
    def toggle_pin(resource_id: str) -> Dict[str, Any]:
        with lock:
            find(resource_id)
            repo().toggle_pinned(resource_id)
            return find(resource_id).to_dict()

    @app.put("/resources/{resource_id}/status")
    def change_status(resource_id: str, change: StatusChange) -> Dict[str, Any]:
        with lock:
            find(resource_id)
            repo().set_status(resource_id, change.status)
            return find(resource_id).to_dict()

    @app.delete("/resources/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_resource(resource_id: str) -> Response:
        with lock:
            find(resource_id)
            repo().delete(resource_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get("/tags")
    def tags() -> List[Dict[str, Any]]:
        return [{"tag": tag, "count": count} for tag, count in tag_frequency(repo().records)]

    @app.get("/summary")
    def summary() -> Dict[str, int]:
        return summarize(repo().records).to_dict()

    def _import_locked(text: str) -> int:
        with lock:
            return import_resources(repo(), text).count

    @app.post("/import")
    async def import_collection(request: Request) -> JSONResponse:
        body = await request.body()
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            logger.info("Rejected import: body is not UTF-8 (%s)", exc.reason)
            return JSONResponse(
                {"status": "error", "detail": "Import body must be UTF-8 encoded JSON"},
                status_code=status.HTTP_400_BAD_REQUEST,
            )
        try:
            imported = await run_in_threadpool(_import_locked, text)
        except ResourceImportError as exc:
            logger.info("Rejected import: %s", exc)
            return JSONResponse(
                {"status": "error", "detail": str(exc)},
                status_code=status.HTTP_400_BAD_REQUEST,
            )
        return JSONResponse({"status": "ok", "imported": imported})

    @app.get("/export", response_class=PlainTextResponse)
    def export_collection() -> PlainTextResponse:
        return PlainTextResponse(
            export_resources(repo().records), media_type="application/json"
        )

    @app.get("/theme")
    def get_theme() -> Dict[str, str]:
        return {"theme": app.state.theme.get()}

    @app.put("/theme")
    def set_theme(change: ThemeChange) -> Dict[str, str]:
        return {"theme": app.state.theme.set(change.theme)}

    return app
