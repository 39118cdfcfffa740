from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse

from checklist.core.config import Settings, get_settings
from checklist.core.errors import BackendError, ChecklistError, NotFoundError
from checklist.core.log import configure_logging
from checklist.schemas import ClientRead, ClientWrite, OkResponse, ResetResponse
from checklist.store import ClientStore, build_store


LOGGER = logging.getLogger("checklist.server")


# ---------- Dependencies ----------
def get_store(request: Request) -> ClientStore:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# ---------- Error handlers ----------
def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def handle_checklist_error(request: Request, exc: ChecklistError) -> JSONResponse:
    if isinstance(exc, BackendError):
        LOGGER.error(
            "%s failed (client=%s): %s",
            exc.operation,
            exc.client_id or "-",
            exc.__cause__ or exc,
            exc_info=exc.__cause__,
        )
    return _error(exc.status_code, exc.message)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(400, "Invalid request body")


# ---------- Static frontend ----------
def _static_response(static_dir: Path, full_path: str) -> FileResponse | JSONResponse:
    root = static_dir.resolve()
    if full_path and "\x00" not in full_path:
        try:
            candidate = (root / full_path).resolve()
            if candidate.is_relative_to(root) and candidate.is_file():
                return FileResponse(candidate)
        except (OSError, ValueError):
            # Unresolvable paths fall through to the entry document.
            pass
    index = root / "index.html"
    if not index.is_file():
        return _error(404, "Not found")
    return FileResponse(index, media_type="text/html")


# ---------- App ----------
def create_app(settings: Optional[Settings] = None, store: Optional[ClientStore] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    store = store or build_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            store.init_schema()
        except BackendError:
            LOGGER.exception("Failed to initialize database")
            raise
        try:
            yield
        finally:
            store.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.add_exception_handler(ChecklistError, handle_checklist_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)

    # ---------- Clients API ----------
    @app.get("/api/clients", response_model=List[ClientRead])
    def list_clients(store: ClientStore = Depends(get_store)):
        return store.list_clients()

    @app.post("/api/clients", response_model=ClientRead)
    def create_client(payload: ClientWrite, store: ClientStore = Depends(get_store)):
        return store.upsert_client(payload.name)

    @app.put("/api/clients/{client_id}", response_model=ClientRead)
    def rename_client(client_id: str, payload: ClientWrite, store: ClientStore = Depends(get_store)):
        return store.rename_client(client_id, payload.name)

    @app.delete("/api/clients/{client_id}", response_model=OkResponse)
    def delete_client(client_id: str, store: ClientStore = Depends(get_store)):
        store.delete_client(client_id)
        return OkResponse()

    # ---------- State API ----------
    @app.get("/api/clients/{client_id}/state")
    def get_client_state(client_id: str, store: ClientStore = Depends(get_store)) -> Dict[str, Any]:
        return store.get_state(client_id)

    @app.put("/api/clients/{client_id}/state", response_model=OkResponse)
    def put_client_state(client_id: str, state: Any = Body(default=None), store: ClientStore = Depends(get_store)):
        store.put_state(client_id, state)
        return OkResponse()

    # ---------- Ops ----------
    @app.get("/healthz", response_model=OkResponse)
    def healthz():
        return OkResponse()

    @app.get("/api/admin/reset-all", response_model=ResetResponse)
    def reset_all(store: ClientStore = Depends(get_store), settings: Settings = Depends(get_app_settings)):
        if not settings.admin_reset_enabled:
            raise NotFoundError("Not found")
        store.reset_all()
        LOGGER.warning("All clients and state were deleted via reset-all")
        return ResetResponse(message="All clients and checklist state deleted")

    # ---------- SPA fallback (must stay last) ----------
    @app.get("/{full_path:path}", include_in_schema=False)
    def spa_fallback(full_path: str, settings: Settings = Depends(get_app_settings)):
        return _static_response(settings.static_dir, full_path)

    return app


def run() -> None:
    settings = get_settings()
    app = create_app(settings)
    LOGGER.info("Onboarding checklist server starting on port %s", settings.port)
    # Schema setup runs in the lifespan; if it fails uvicorn aborts startup.
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
