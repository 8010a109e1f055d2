"""
Core API backend for the puppy portal.

It exposes the following endpoints:
- **GET /health**  - liveness check.
- **POST /api/agent** - AI assistant: {"messages": [{"role", "content"}, ...]} -> {"reply": ...}
- **GET /puppies/{puppy_id}/growth** - weight log, milestones and projected adult weight.

Collaborators (settings, identity provider, completion client, data store) are FastAPI
dependencies so they can be swapped per deployment or overridden in tests.
"""

import logging
from typing import (
    Any,
    Dict,
    Iterator,
    Tuple,
)

from fastapi import (
    Depends,
    FastAPI,
    Header,
    Request,
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from puppyportal.agent.completion_client import (
    CompletionClient,
    CompletionServiceError,
)
from puppyportal.agent.orchestrator import (
    AgentOrchestrator,
    UnauthorizedError,
)
from puppyportal.api.models import (
    AgentResponse,
    ErrorResponse,
    normalize_conversation,
)
from puppyportal.auth import (
    IdentityProvider,
    StaticIdentityProvider,
    SupabaseIdentityProvider,
    bearer_token,
)
from puppyportal.common import (
    AnsiColors,
    colored_print,
)
from puppyportal.config import (
    Settings,
    settings,
)
from puppyportal.core.schema import Caller
from puppyportal.growth import (
    GrowthReport,
    build_growth_report,
)
from puppyportal.store import (
    DataStore,
    MemoryStore,
    StoreError,
    open_store,
)

logger = logging.getLogger(__name__)

LOCAL_CALLER = Caller(id="local-buyer", email="buyer@localhost")

app = FastAPI(
    title="Puppy Portal API", version="0.1.0", description="SWVA Chihuahua buyer portal API"
)

# Shared tables for STORE=memory (local development only)
app.state.memory_store = MemoryStore()

# Add CORS middleware to allow requests from the portal site
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.SITE_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def get_settings() -> Settings:
    """Application settings."""
    return settings


# Providers and clients hold HTTP connection pools, so one instance is kept per distinct
# configuration instead of one per request.
_identity_providers: Dict[Tuple[Any, ...], IdentityProvider] = {}
_completion_clients: Dict[Tuple[Any, ...], CompletionClient] = {}


def get_identity_provider(cfg: Settings = Depends(get_settings)) -> IdentityProvider:
    """Identity provider matching the configured back-end."""
    key = (cfg.STORE.lower(), cfg.PORTAL_ACCESS_TOKEN, cfg.SUPABASE_URL, cfg.SUPABASE_ANON_KEY)
    provider = _identity_providers.get(key)
    if provider is None:
        if cfg.STORE.lower() == "memory":
            token = cfg.PORTAL_ACCESS_TOKEN
            provider = StaticIdentityProvider({token: LOCAL_CALLER} if token else {})
        else:
            provider = SupabaseIdentityProvider(cfg)
        _identity_providers[key] = provider
    return provider


def get_completion_client(cfg: Settings = Depends(get_settings)) -> CompletionClient:
    """Completion service client, shared across requests (it holds no conversation state)."""
    key = (cfg.LLM_API_URL, cfg.LLM_API_KEY, cfg.LLM_MODEL, cfg.LLM_TEMPERATURE, cfg.LLM_TIMEOUT)
    client = _completion_clients.get(key)
    if client is None:
        client = CompletionClient(cfg)
        _completion_clients[key] = client
    return client


def get_orchestrator(
    client: CompletionClient = Depends(get_completion_client),
    cfg: Settings = Depends(get_settings),
) -> AgentOrchestrator:
    return AgentOrchestrator(client, cfg)


def get_caller(
    authorization: str | None = Header(default=None),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Caller:
    """Resolve the caller from the bearer token; fail closed."""
    caller = provider.resolve(bearer_token(authorization))
    if caller is None:
        raise UnauthorizedError("Unauthorized")
    return caller


def get_store(
    request: Request,
    caller: Caller = Depends(get_caller),
    cfg: Settings = Depends(get_settings),
) -> Iterator[DataStore]:
    """Data store bound to the caller for the duration of one request."""
    store = open_store(cfg, caller, memory_store=request.app.state.memory_store)
    try:
        yield store
    finally:
        store.close()


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
@app.exception_handler(UnauthorizedError)
async def _unauthorized(_request: Request, _exc: UnauthorizedError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": "Unauthorized"})


@app.exception_handler(CompletionServiceError)
async def _completion_failed(_request: Request, exc: CompletionServiceError) -> JSONResponse:
    logger.error("Completion service failure: %s", exc)
    return JSONResponse(status_code=502, content={"error": "Upstream completion service failed"})


@app.exception_handler(StoreError)
async def _store_failed(_request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Data store failure: %s", exc)
    return JSONResponse(status_code=502, content={"error": "Data store request failed"})


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/health", summary="Health check")
async def health() -> dict[str, str]:
    """Return a simple liveness payload."""
    return {"status": "ok"}


@app.post(
    "/api/agent",
    response_model=AgentResponse,
    responses={401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Ask the AI assistant",
)
async def agent_endpoint(
    request: Request,
    caller: Caller = Depends(get_caller),
    store: DataStore = Depends(get_store),
    orchestrator: AgentOrchestrator = Depends(get_orchestrator),
) -> AgentResponse:
    """Run the two-round assistant exchange for the signed-in caller."""
    body: Any
    try:
        body = await request.json()
    except ValueError:
        body = None

    conversation = normalize_conversation(body)
    logger.debug("Agent request from %s with %d messages", caller.id, len(conversation))

    reply = await run_in_threadpool(orchestrator.handle, conversation, caller, store)
    return AgentResponse(reply=reply)


@app.get(
    "/puppies/{puppy_id}/growth",
    response_model=GrowthReport,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Puppy growth report",
)
def puppy_growth(
    puppy_id: str,
    caller: Caller = Depends(get_caller),
    store: DataStore = Depends(get_store),
) -> Any:
    """Weight log, milestones and projected adult weight for a puppy assigned to the caller."""
    logger.debug("Growth report for %s requested by %s", puppy_id, caller.id)
    puppy = store.get_assigned_puppy(caller.id, puppy_id)
    if puppy is None:
        return JSONResponse(status_code=404, content={"error": "Puppy not found"})
    return build_growth_report(
        puppy, store.list_puppy_weights(puppy_id), store.list_puppy_milestones(puppy_id)
    )


# ---------------------------------------------------------------------------
# Public helper to launch the API (imported by main.py)
# ---------------------------------------------------------------------------
def run_api(
    host: str = "0.0.0.0", port: int = 8000, reload: bool = False, log_level: str | None = None
) -> None:
    """Start a uvicorn server hosting *app*.

    Parameters
    ----------
    host, port:
        Bind address for the HTTP server.
    reload:
        If *True*, enable auto-reload (useful in development).
    log_level:
        Logging level to use (default from settings if not provided).
    """

    # Lazy import - keeps uvicorn an optional dependency at pkg-import time
    import uvicorn  # pylint: disable=import-outside-toplevel

    if log_level is None:  # Use the default from settings if not provided
        log_level = settings.LOG_LEVEL

    logger.info(
        "Starting portal API at %s:%d (reload=%s, log_level=%s, store=%s)",
        host,
        port,
        reload,
        log_level,
        settings.STORE,
    )

    colored_print(f"Puppy portal API is running at http://localhost:{port}.", AnsiColors.GREEN)
    colored_print(f"Visit http://localhost:{port}/docs for API documentation.", AnsiColors.BLUE)
    uvicorn.run(
        "puppyportal.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


# ---------------------------------------------------------------------------
# `python -m puppyportal.api.app` helper
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    run_api(reload=True)
