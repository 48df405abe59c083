import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.v1.auth.router import router as auth_router
from app.api.v1.enrollments.admin_router import router as admin_enrollments_router
from app.api.v1.enrollments.instructor_router import router as instructor_enrollments_router
from app.api.v1.instructors.router import router as instructors_router
from app.api.v1.notifications.router import router as notifications_router
from app.api.v1.portal.router import router as portal_router
from app.api.v1.reports.router import admin_router as admin_reports_router
from app.api.v1.reports.router import instructor_router as instructor_reports_router
from app.api.v1.student_applications.router import router as student_applications_router
from app.core.config import settings
from app.core.exceptions import ErrorCode, error_detail
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"
    return JSONResponse(
        status_code=422,
        content={"detail": error_detail(ErrorCode.VALIDATION, message)},
    )


async def _internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": error_detail(ErrorCode.INTERNAL, "Internal server error")},
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Tutoring Marketplace Backend")

    # CORS: ALLOWED_ORIGINS (comma separated); all origins when unset
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, _internal_error_handler)
    app.add_exception_handler(Exception, _internal_error_handler)

    @app.get("/healthz", status_code=status.HTTP_200_OK)
    async def healthz() -> dict:
        return {"status": "ok"}

    # Routers
    app.include_router(auth_router)
    app.include_router(student_applications_router)
    app.include_router(instructors_router)
    app.include_router(admin_enrollments_router)
    app.include_router(instructor_enrollments_router)
    app.include_router(instructor_reports_router)
    app.include_router(admin_reports_router)
    app.include_router(portal_router)
    app.include_router(notifications_router)

    return app


app = create_app()
