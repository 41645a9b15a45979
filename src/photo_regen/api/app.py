"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from photo_regen.app_logging import configure_logging
from photo_regen.containers import AppContainer

USAGE_TEXT = "Scheduled processor endpoint. Use POST to manually trigger."


def _get_trigger_token(request: Request) -> str | None:
    container: AppContainer = request.app.state.container
    return container.settings.trigger_token


async def require_trigger_token(
    x_trigger_token: str | None = Header(default=None),
    trigger_token: str | None = Depends(_get_trigger_token),
) -> None:
    """Ensure trigger requests carry the configured token, when one is set."""
    if trigger_token and x_trigger_token != trigger_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/process-next", dependencies=[Depends(require_trigger_token)])
    async def process_next(request: Request) -> JSONResponse:
        """Process the first pending order."""
        state_container: AppContainer = request.app.state.container
        logger.info("Manual run: checking for pending work")
        result = await state_container.orchestrator.process_next(
            state_container.batch_config()
        )
        status_code = (
            status.HTTP_500_INTERNAL_SERVER_ERROR
            if result.error is not None
            else status.HTTP_200_OK
        )
        return JSONResponse(result.to_dict(), status_code=status_code)

    @app.get("/scheduled-processor", response_class=PlainTextResponse)
    async def scheduled_processor_usage() -> str:
        """Describe the batch trigger."""
        return USAGE_TEXT

    @app.post(
        "/scheduled-processor", dependencies=[Depends(require_trigger_token)]
    )
    async def scheduled_processor(request: Request) -> JSONResponse:
        """Process every eligible order and return the run report."""
        state_container: AppContainer = request.app.state.container
        report = await state_container.orchestrator.run_batch(
            state_container.batch_config()
        )
        status_code = (
            status.HTTP_500_INTERNAL_SERVER_ERROR
            if report.fatal
            else status.HTTP_200_OK
        )
        return JSONResponse(report.to_dict(), status_code=status_code)

    return app
