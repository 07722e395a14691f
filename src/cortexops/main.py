"""FastAPI application with lifespan startup."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from cortexops.logging_config import setup_logging

setup_logging()

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from cortexops import __version__  # noqa: E402
from cortexops.api.middleware.auth import ApiKeyMiddleware  # noqa: E402
from cortexops.api.routes import (  # noqa: E402
    deployment,
    documents,
    generate,
    health,
    history,
    prompts,
)
from cortexops.config import Settings  # noqa: E402
from cortexops.constants import API_KEY_HEADER  # noqa: E402
from cortexops.generation.registry import default_registry  # noqa: E402
from cortexops.logger import RequestLogger  # noqa: E402
from cortexops.logging_config import set_level  # noqa: E402
from cortexops.repositories.memory import (  # noqa: E402
    InMemoryHistoryRepository,
)

_logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = _settings
    set_level(settings.log_level)

    app.state.settings = settings
    app.state.registry = default_registry()
    app.state.history = InMemoryHistoryRepository(
        limit=settings.history_limit
    )
    app.state.request_logger = RequestLogger(
        log_dir=settings.log_dir, level=settings.log_level
    )

    if not settings.api_key:
        _logger.warning(
            "event=no_api_key action=all_endpoints_public"
        )
    _logger.info(
        "event=startup templates=%d history_limit=%d",
        len(app.state.registry),
        settings.history_limit,
    )

    yield


app = FastAPI(
    title="CortexOps",
    description=(
        "Prompt guard rails, deployment classification and"
        " playbook validation"
    ),
    version=__version__,
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

# Middleware stack (Starlette LIFO: last added = outermost = runs first)
#
# CORS must be outermost so OPTIONS preflight is answered before
# ApiKeyMiddleware rejects for a missing API key header.
_settings = Settings()

app.add_middleware(ApiKeyMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origin_list,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", API_KEY_HEADER],
    allow_credentials=False,
)

app.include_router(health.router)
app.include_router(prompts.router)
app.include_router(deployment.router)
app.include_router(documents.router)
app.include_router(generate.router)
app.include_router(history.router)
