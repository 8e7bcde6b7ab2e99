from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import APIRouter, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from jose import JWTError

from factory_ops.core.logging import configure_logging, correlation_id_var
from factory_ops.core.security import Principal, principal_from_token
from factory_ops.core.settings import get_app_settings
from factory_ops.db.session import dispose_engine
from factory_ops.schemas.common import ErrorInfo, ErrorResponse, MessageResponse
from factory_ops.services.realtime import WATCHED_TABLES, broadcast_manager, parse_tables
from factory_ops.workflow.errors import WorkflowError

# Domain routers
from factory_ops.api.routes.external import router as external_router
from factory_ops.api.routes.finance import router as finance_router
from factory_ops.api.routes.logistics import router as logistics_router
from factory_ops.api.routes.procurement import router as procurement_router
from factory_ops.api.routes.production import router as production_router
from factory_ops.api.routes.quality import router as quality_router
from factory_ops.api.routes.reports import router as reports_router
from factory_ops.api.routes.sales import router as sales_router
from factory_ops.api.routes.she import router as she_router

settings = get_app_settings()

# Configure structured logging once at import
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Liveness probe."},
    {"name": "Production", "description": "Work orders, stage flow, batches and quantities."},
    {"name": "Quality", "description": "QC gate decisions, QC records and NCRs."},
    {"name": "External Processing", "description": "Work sent to partners and returned."},
    {"name": "Logistics", "description": "Packing, dispatch and packed-goods ageing."},
    {"name": "Sales", "description": "Customer sales orders."},
    {"name": "Procurement", "description": "Raw-material purchase orders."},
    {"name": "Finance", "description": "Overdue invoices."},
    {"name": "SHE", "description": "Safety, health and environment."},
    {"name": "Reports", "description": "Exportable business reports (CSV/Excel/PDF)."},
    {"name": "WebSocket", "description": "Change notification channel."},
]

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

# CORS - avoid wildcard with credentials
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Enrich request context with a correlation id for logging and error responses.
    Adds 'X-Correlation-ID' to every response.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    token_corr = correlation_id_var.set(corr)
    request.state.correlation_id = corr

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token_corr)

    response.headers["X-Correlation-ID"] = corr
    return response


def _build_error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    """Build a standardized ErrorResponse JSONResponse."""
    err = ErrorResponse(
        status=status_code,
        error=ErrorInfo(type=error_type, message=message, details=details),
        correlation_id=getattr(request.state, "correlation_id", None),
        path=request.url.path,
        method=request.method,
        timestamp=datetime.now(tz=timezone.utc),
    )
    headers = {"X-Correlation-ID": err.correlation_id} if err.correlation_id else None
    return JSONResponse(status_code=status_code, content=err.model_dump(mode="json"), headers=headers)


@app.exception_handler(WorkflowError)
async def workflow_exception_handler(request: Request, exc: WorkflowError):
    """
    Business-rule violations (quantity exceeded, dispatch blocked, unknown stage...).
    """
    logger.info("Rejected %s %s: %s (%s)", request.method, request.url.path, exc.message, exc.error_type)
    return _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type=exc.error_type,
        message=exc.message,
        details=exc.details,
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Global handler for HTTPException to produce a standardized error envelope.
    """
    detail = exc.detail if isinstance(exc.detail, str) else "HTTP Error"
    response = _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type="http_error",
        message=str(detail),
        details=None if isinstance(exc.detail, str) else exc.detail,
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Global handler for request validation errors with a standard structure.
    """
    return _build_error_response(
        request=request,
        status_code=422,
        error_type="validation_error",
        message="Request validation failed",
        details=[{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()],
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler to avoid leaking stack traces and to return a structured error.
    """
    logger.exception("Unhandled error processing request")
    return _build_error_response(
        request=request,
        status_code=500,
        error_type="internal_error",
        message="An unexpected error occurred",
        details=None,
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    """Release pooled database connections."""
    await dispose_engine()


# Build API v1 router and include sub-routers
api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health",
    response_model=MessageResponse,
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> MessageResponse:
    """
    Basic liveness health check endpoint.

    Returns:
        MessageResponse: Simple confirmation that the service is running.
    """
    return MessageResponse(message="Healthy")


# PUBLIC_INTERFACE
@api_v1.get(
    "/websocket-info",
    response_model=Dict[str, Any],
    summary="WebSocket Usage Information",
    description="Connection details for the change notification socket.",
    tags=["WebSocket"],
)
def websocket_info() -> Dict[str, Any]:
    """Describe how to connect to the change notification socket."""
    return {
        "path": "/ws/changes",
        "query": {
            "token": "JWT issued by the identity provider (required)",
            "tables": "Comma-separated table names; empty means all watched tables, none watched closes with 4400",
        },
        "tables": sorted(WATCHED_TABLES),
        "messages": {
            "server_to_client": ["table.changed"],
            "client_to_server": ["ping"],
        },
        "notes": "Clients re-fetch the affected view on every table.changed message.",
    }


api_v1.include_router(sales_router)
api_v1.include_router(production_router)
api_v1.include_router(quality_router)
api_v1.include_router(external_router)
api_v1.include_router(logistics_router)
api_v1.include_router(procurement_router)
api_v1.include_router(finance_router)
api_v1.include_router(she_router)
api_v1.include_router(reports_router)

# Attach api_v1 to app
app.include_router(api_v1)


async def _authenticate_ws(websocket: WebSocket) -> Optional[Principal]:
    """
    Validate the 'token' query param of an accepted websocket.

    Closes the socket with code 4401 and returns None when the token is missing or invalid.
    """
    token = websocket.query_params.get("token")
    if token:
        try:
            return principal_from_token(token)
        except JWTError:
            logger.info("WebSocket rejected: invalid token")
    await websocket.close(code=4401)
    return None


# PUBLIC_INTERFACE
@app.websocket("/ws/changes")
async def ws_changes(websocket: WebSocket):
    """
    WebSocket endpoint for table change notifications.

    Query Parameters:
      - token: JWT bearer token
      - tables: comma-separated tables to watch (default: all); closes with 4400 when none is watched

    Messages:
      - Server -> Client: type='table.changed' payload={table, event, wo_id, id}
      - Client -> Server: 'ping' is answered with 'pong'; other messages are ignored.
    """
    await websocket.accept()
    principal = await _authenticate_ws(websocket)
    if principal is None:
        return

    tables = parse_tables(websocket.query_params.get("tables"))
    if not tables:
        logger.info("WebSocket rejected: no watched table in %r", websocket.query_params.get("tables"))
        await websocket.close(code=4400)
        return

    topics: List[str] = [broadcast_manager.changes_topic(t) for t in tables]
    for topic in topics:
        await broadcast_manager.connect(topic, websocket)
    logger.info("User %s watching %d tables", principal.user_id, len(topics))

    try:
        while True:
            msg = await websocket.receive_text()
            if msg and msg.strip().lower() == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("Error on ws_changes connection")
        await websocket.close()
    finally:
        for topic in topics:
            await broadcast_manager.disconnect(topic, websocket)
