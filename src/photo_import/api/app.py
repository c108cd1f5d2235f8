"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from photo_import.api.auth import require_cron, require_owner
from photo_import.app_logging import configure_logging
from photo_import.containers import AppContainer
from photo_import.errors import DataError, TransientError

REDIRECT_PATH = "/oauth_callback"


class StatusResponse(BaseModel):
    """Progress payload consumed by the polling page."""

    message: str
    finished: bool
    retryable: bool


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(DataError)
    async def handle_data_error(request: Request, exc: DataError) -> JSONResponse:
        logger.error("Request failed: %s", exc, extra={"path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal error"},
        )

    @app.exception_handler(TransientError)
    async def handle_transient_error(
        request: Request, exc: TransientError
    ) -> JSONResponse:
        logger.warning("Upstream failure: %s", exc, extra={"path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": "Upstream service failed, try again"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/login")
    async def login(request: Request) -> RedirectResponse:
        """Redirect to the identity provider consent page."""
        state_container: AppContainer = request.app.state.container
        url = state_container.import_service.authorization_url(
            _callback_url(request)
        )
        return RedirectResponse(url)

    @app.get(REDIRECT_PATH)
    async def oauth_callback(
        request: Request,
        background_tasks: BackgroundTasks,
        code: str | None = None,
        owner_id: str = Depends(require_owner),
    ) -> RedirectResponse:
        """Start an import for the signed-in user and open the picker."""
        if not code:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Required code param not passed",
            )
        state_container: AppContainer = request.app.state.container
        session = await state_container.import_service.start_import(
            owner_id=owner_id, code=code, redirect_url=_callback_url(request)
        )
        background_tasks.add_task(state_container.step_runner.run, owner_id)
        return RedirectResponse(session.picker_uri)

    @app.get("/check_status", response_model=StatusResponse)
    async def check_status(
        request: Request,
        background_tasks: BackgroundTasks,
        owner_id: str = Depends(require_owner),
    ) -> StatusResponse | JSONResponse:
        """Return import progress and schedule the next driver step."""
        state_container: AppContainer = request.app.state.container
        background_tasks.add_task(state_container.step_runner.run, owner_id)
        record = state_container.import_service.check_status(owner_id)
        if record is None:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"detail": "No session exists for user"},
                background=background_tasks,
            )
        return StatusResponse(
            message=record.message,
            finished=record.finished,
            retryable=record.retryable,
        )

    @app.get("/cron/step", dependencies=[Depends(require_cron)])
    async def cron_step(request: Request) -> dict[str, object]:
        """Run one driver step for every pending job."""
        state_container: AppContainer = request.app.state.container
        results = await state_container.step_runner.sweep()
        return {"results": {owner: str(result) for owner, result in results.items()}}

    return app


def _callback_url(request: Request) -> str:
    """Return the absolute OAuth redirect URL on the current host."""
    return str(request.url.replace(path=REDIRECT_PATH, query=""))
