"""FastAPI fuel-request service.

Drivers submit fuel requests for fleet vehicles; supervisors, fuelers and
directors validate them in sequence. Every route authenticates the caller
with HTTP Basic credentials and passes that identity explicitly to the
domain layer.

Domain errors are mapped onto HTTP statuses by category, so route handlers
never translate exceptions themselves.
"""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from fleetfuel.api.routes import register_routes
from fleetfuel.config import get_settings
from fleetfuel.core.errors import FleetFuelError
from fleetfuel.observability.tracing import configure_logging, log_event, new_trace_id

tags_metadata = [
    {
        "name": "Auth",
        "description": "Self-registration and the authenticated caller's identity"
    },
    {
        "name": "Fuel Requests",
        "description": "Submission, the validation chain, served quantities and attachments"
    },
    {
        "name": "Fleet",
        "description": "Vehicles and vehicle types"
    },
    {
        "name": "Identities",
        "description": "Identity management for directors and admins"
    },
    {
        "name": "Reports",
        "description": "Dashboard figures and consumption reports"
    },
    {
        "name": "Audit",
        "description": "The action log"
    }
]

STATUS_BY_CATEGORY = {
    "invalid_input": 422,
    "not_allowed": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "stale": status.HTTP_409_CONFLICT,
    "retry": status.HTTP_503_SERVICE_UNAVAILABLE,
    "unauthenticated": status.HTTP_401_UNAUTHORIZED,
}


async def handle_domain_error(request: Request, exc: FleetFuelError) -> JSONResponse:
    status_code = STATUS_BY_CATEGORY.get(exc.category, status.HTTP_500_INTERNAL_SERVER_ERROR)
    log_event(
        "http.error",
        trace_id=new_trace_id(),
        path=request.url.path,
        method=request.method,
        category=exc.category,
        status_code=status_code,
        error=str(exc),
    )
    headers = {"WWW-Authenticate": "Basic"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.category, "detail": str(exc)},
        headers=headers,
    )


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    detail = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in errors
    )
    return JSONResponse(
        status_code=422,
        content={"error": "invalid_input", "detail": detail},
    )


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title='FleetFuel',
        version='1.0.0',
        description='Fuel request and approval service for vehicle fleets',
        openapi_tags=tags_metadata
    )
    app.add_exception_handler(FleetFuelError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)

    # Register all API routes
    register_routes(app)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
