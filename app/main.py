import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.academic_years.router import router as academic_years_router
from app.api.v1.classes.classes_router import router as classes_router
from app.api.v1.consolidated.router import router as consolidated_router
from app.api.v1.points_sync.router import router as points_sync_router
from app.api.v1.students.student_router import router as students_router
from app.core.config import settings
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)

SERVICE_NAME = "student-service"


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "header", "path"))
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": _first_validation_message(exc)},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Student Service", description="Students, classes and academic years")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Routers
    app.include_router(academic_years_router)
    app.include_router(classes_router)
    app.include_router(points_sync_router)
    app.include_router(consolidated_router)
    app.include_router(students_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "OK", "service": SERVICE_NAME}

    return app


app = create_app()
