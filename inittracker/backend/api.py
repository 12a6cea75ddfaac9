"""FastAPI endpoints for encounter tracking, wrapped in a success/error envelope."""

from __future__ import annotations

import logging
import re
from typing import Any, Literal
from urllib.parse import quote

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from .config import load_settings
from .errors import NotFoundError, TrackerError, ValidationFailedError
from .service import EncounterService
from .store import EncounterRepository, create_store


logger = logging.getLogger(__name__)

EntityType = Literal["player", "monster"]
Status = Literal["poisoned", "stunned", "bleed"]


class CreateEncounterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class AddEntityRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    type: EntityType
    maxHP: int = Field(ge=1)
    currentHP: int | None = None
    initiative: int | None = Field(default=None, ge=0, le=99)


class UpdateEntityRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    type: EntityType | None = None
    maxHP: int | None = Field(default=None, ge=1)
    currentHP: int | None = None
    initiative: int | None = Field(default=None, ge=0, le=99)
    statuses: list[Status] | None = None


_UNQUOTABLE_FILENAME_CHARS = re.compile(r'[^\x20-\x7e]|["\\]')

_ERROR_STATUS_CODES: dict[type[TrackerError], int] = {
    NotFoundError: 404,
    ValidationFailedError: 400,
}


def _ok(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name and the RFC 6266 UTF-8 form."""
    fallback = _UNQUOTABLE_FILENAME_CHARS.sub("_", filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _default_store() -> EncounterRepository:
    return create_store(database_url=load_settings().database_url)


def create_app(store: EncounterRepository | None = None) -> FastAPI:
    app = FastAPI(title="Initiative Tracker API", version="0.3.0")
    encounter_service = EncounterService(store if store is not None else _default_store())
    app.state.encounter_service = encounter_service

    @app.exception_handler(TrackerError)
    async def handle_tracker_error(request: Request, exc: TrackerError) -> JSONResponse:
        status_code = _ERROR_STATUS_CODES.get(type(exc), 400)
        logger.info("%s %s failed: %s: %s", request.method, request.url.path, exc.kind, exc)
        return _error(status_code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
            for error in exc.errors()
        )
        return _error(400, details or "Invalid request body")

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "Internal server error")

    def get_service() -> EncounterService:
        return encounter_service

    @app.post("/api/combat")
    def create_encounter(
        payload: CreateEncounterRequest,
        service: EncounterService = Depends(get_service),
    ) -> dict[str, Any]:
        return _ok(service.create_encounter(payload.name))

    @app.get("/api/combat")
    def list_encounters(service: EncounterService = Depends(get_service)) -> dict[str, Any]:
        return _ok([summary.to_payload() for summary in service.list_encounters()])

    @app.post("/api/combat/import")
    async def import_encounter(
        request: Request,
        service: EncounterService = Depends(get_service),
    ) -> dict[str, Any]:
        return _ok(service.import_encounter(await request.body()))

    @app.get("/api/combat/{encounter_id}")
    def get_encounter(
        encounter_id: str,
        service: EncounterService = Depends(get_service),
    ) -> dict[str, Any]:
        return _ok(service.get_encounter(encounter_id))

    @app.post("/api/combat/{encounter_id}/entity")
    def add_entity(
        encounter_id: str,
        payload: AddEntityRequest,
        service: EncounterService = Depends(get_service),
    ) -> dict[str, Any]:
        return _ok(service.add_entity(encounter_id, payload.model_dump()))

    @app.put("/api/combat/{encounter_id}/entity/{entity_id}")
    def update_entity(
        encounter_id: str,
        entity_id: str,
        payload: UpdateEntityRequest,
        service: EncounterService = Depends(get_service),
    ) -> dict[str, Any]:
        return _ok(service.update_entity(encounter_id, entity_id, payload.model_dump(exclude_unset=True)))

    @app.post("/api/combat/{encounter_id}/entity/{entity_id}/status/{status}")
    def toggle_status(
        encounter_id: str,
        entity_id: str,
        status: str,
        service: EncounterService = Depends(get_service),
    ) -> dict[str, Any]:
        return _ok(service.toggle_entity_status(encounter_id, entity_id, status))

    @app.delete("/api/combat/{encounter_id}/entity/{entity_id}")
    def delete_entity(
        encounter_id: str,
        entity_id: str,
        service: EncounterService = Depends(get_service),
    ) -> dict[str, Any]:
        return _ok(service.delete_entity(encounter_id, entity_id))

    @app.post("/api/combat/{encounter_id}/next-turn")
    def next_turn(
        encounter_id: str,
        service: EncounterService = Depends(get_service),
    ) -> dict[str, Any]:
        return _ok(service.next_turn(encounter_id))

    @app.post("/api/combat/{encounter_id}/reset")
    def reset_combat(
        encounter_id: str,
        service: EncounterService = Depends(get_service),
    ) -> dict[str, Any]:
        return _ok(service.reset_combat(encounter_id))

    @app.post("/api/combat/{encounter_id}/import")
    async def import_encounter_into(
        encounter_id: str,
        request: Request,
        service: EncounterService = Depends(get_service),
    ) -> dict[str, Any]:
        return _ok(service.import_encounter(await request.body(), encounter_id=encounter_id))

    @app.get("/api/combat/{encounter_id}/export")
    def export_encounter(
        encounter_id: str,
        service: EncounterService = Depends(get_service),
    ) -> Response:
        exported = service.export_encounter(encounter_id)
        return Response(
            content=exported.document,
            media_type="application/json",
            headers={"Content-Disposition": _content_disposition(exported.filename)},
        )

    return app


app = create_app()
