from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from .auth import LoginRequired
from .logging_setup import setup_logging
from .routers import pages as pages_router
from .routers import tasks as tasks_router
from .settings import get_settings

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "pages", "description": "Landing page and sign-in."},
    {"name": "dashboard", "description": "Task list, task form, quick status update and delete."},
]

_settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(console_level=_settings.log_level, log_file=_settings.log_file)
    yield


app = FastAPI(
    title="Task Manager",
    description="Personal task manager web app on top of a hosted task store.",
    version="0.1.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SessionMiddleware, secret_key=_settings.session_secret, same_site="lax")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": exc.errors(),
        },
    )


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired) -> RedirectResponse:
    """Pages that need a session send anonymous visitors to the sign-in page."""
    return RedirectResponse("/auth", status_code=status.HTTP_303_SEE_OTHER)


# PUBLIC_INTERFACE
@app.get("/health", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.taskstore_backend}


app.include_router(pages_router.router)
app.include_router(tasks_router.router)
