import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from envmanager.core.config import settings
from envmanager.core.exceptions import AuthenticationError, GitHubAPIError, InvalidKeyError, SealError
from envmanager.routers import auth, repos, tools
from envmanager.routers.scoped import build_scoped_router, environment_scope, repository_scope
from envmanager.services.sessions import InMemorySessionStore

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)

app.state.session_store = InMemorySessionStore()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    return JSONResponse(
        status_code=401,
        content={"detail": exc.message},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(GitHubAPIError)
async def github_error_handler(request: Request, exc: GitHubAPIError):
    return JSONResponse(status_code=exc.http_status, content={"detail": exc.message})


@app.exception_handler(InvalidKeyError)
async def invalid_key_handler(request: Request, exc: InvalidKeyError):
    logger.warning("Rejected public key for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": f"Invalid public key: {exc}"})


@app.exception_handler(SealError)
async def seal_error_handler(request: Request, exc: SealError):
    logger.error("Secret encryption failed for %s: %s", request.url.path, type(exc).__name__)
    return JSONResponse(status_code=500, content={"detail": "Failed to encrypt secret"})


prefix = settings.API_PREFIX

app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["auth"])
app.include_router(repos.router, prefix=f"{prefix}/repos", tags=["repositories"])
app.include_router(
    build_scoped_router(repository_scope),
    prefix=f"{prefix}/repos/{{owner}}/{{repo}}",
    tags=["repository variables and secrets"],
)
app.include_router(
    build_scoped_router(environment_scope),
    prefix=f"{prefix}/repos/{{owner}}/{{repo}}/environments/{{environment}}",
    tags=["environment variables and secrets"],
)
app.include_router(tools.router, prefix=prefix, tags=["tools"])


@app.get("/health")
async def healthcheck():
    """Healthcheck endpoint to check if the application is running."""
    return {"status": "ok", "timestamp": int(time.time())}
