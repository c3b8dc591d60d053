from fastapi import Depends
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.orm import Session

from fleetfuel.api.core.container import Container, get_container
from fleetfuel.db.connection import get_db
from fleetfuel.domain.approval import ApprovalEngine
from fleetfuel.domain.audit.service import AuditService
from fleetfuel.domain.fleet import FleetService
from fleetfuel.domain.identity import (
    Credentials,
    DatabaseIdentityProvider,
    Identity,
    IdentityProvider,
    IdentityRepository,
    IdentityService,
)
from fleetfuel.domain.reports import ReportService

basic_auth = HTTPBasic(auto_error=True)


def get_identity_provider(db: Session = Depends(get_db)) -> IdentityProvider:
    return DatabaseIdentityProvider(IdentityRepository(db))


def get_current_identity(
    credentials: HTTPBasicCredentials = Depends(basic_auth),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    """Authenticate the caller for this HTTP request only."""
    return provider.authenticate(Credentials(email=credentials.username, password=credentials.password))


def get_approval_engine(
    db: Session = Depends(get_db),
    container: Container = Depends(get_container),
) -> ApprovalEngine:
    settings = container.settings
    return ApprovalEngine(
        db,
        blob_store=container.blob_store,
        allowed_attachment_types=settings.allowed_attachment_types,
        max_attachment_bytes=settings.max_attachment_bytes,
    )


def get_identity_service(
    db: Session = Depends(get_db),
    container: Container = Depends(get_container),
) -> IdentityService:
    return IdentityService(db, allow_self_assigned_roles=container.settings.allow_self_assigned_roles)


def get_fleet_service(db: Session = Depends(get_db)) -> FleetService:
    return FleetService(db)


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    return ReportService(db)


def get_audit_service(db: Session = Depends(get_db)) -> AuditService:
    return AuditService(db)
