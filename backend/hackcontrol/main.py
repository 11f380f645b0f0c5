from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from hackcontrol.config import settings
from hackcontrol.errors import ServiceError
from hackcontrol.logging_setup import configure_logging
from hackcontrol.routes.system import router as system_router
from hackcontrol.routes.auth import router as auth_router
from hackcontrol.routes.users import router as users_router
from hackcontrol.routes.hackathons import router as hackathons_router
from hackcontrol.routes.participations import router as participations_router
from hackcontrol.routes.judging import router as judging_router
from hackcontrol.routes.announcements import router as announcements_router
import structlog

configure_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha)
    yield
    # Shutdown
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} API for running hackathons: submissions, judging and announcements"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(system_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(hackathons_router)
app.include_router(participations_router)
app.include_router(judging_router)
app.include_router(announcements_router)

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    log.info("service_error", kind=exc.kind, detail=exc.detail, path=request.url.path, method=request.method)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "kind": exc.kind})

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors()), "kind": "ValidationFailed"},
    )

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid)
    response: Response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    structlog.contextvars.clear_contextvars()
    return response

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
