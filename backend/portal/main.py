from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portal.api.routes import arrange, health, table
from portal.core.config import get_settings
from portal.core.exceptions import AppError
from portal.core.logging import setup_logging
from portal.core.middleware import RequestSizeLimitMiddleware
from portal.db.bootstrap import ensure_runtime_schema

settings = get_settings()

setup_logging(environment=settings.environment, log_level=settings.log_level)


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_runtime_schema()
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "details": exc.details},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [{"loc": list(item.get("loc", ())), "msg": item.get("msg", "")} for item in exc.errors()]
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": message, "details": {"errors": errors}},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(table.router, prefix=f"{settings.api_prefix}/table", tags=["table"])
app.include_router(arrange.router, prefix=f"{settings.api_prefix}/arrange", tags=["arrange"])
