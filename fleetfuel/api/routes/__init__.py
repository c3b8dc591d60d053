from fastapi import FastAPI

from .action_logs import router as action_logs_router
from .auth import router as auth_router
from .identities import router as identities_router
from .reports import router as reports_router
from .requests import router as requests_router
from .vehicle_types import router as vehicle_types_router
from .vehicles import router as vehicles_router


def register_routes(app: FastAPI):
    app.include_router(auth_router, prefix="/v1")
    app.include_router(requests_router, prefix="/v1")
    app.include_router(vehicles_router, prefix="/v1")
    app.include_router(vehicle_types_router, prefix="/v1")
    app.include_router(identities_router, prefix="/v1")
    app.include_router(reports_router, prefix="/v1")
    app.include_router(action_logs_router, prefix="/v1")
