from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query

from fleetfuel.api.dependencies import get_current_identity, get_report_service
from fleetfuel.api.schemas import ConsumptionReportOut, DashboardOut
from fleetfuel.domain.identity import Identity
from fleetfuel.domain.reports import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/dashboard", response_model=DashboardOut)
def dashboard(
    actor: Identity = Depends(get_current_identity),
    service: ReportService = Depends(get_report_service),
):
    """Headline figures. Drivers only see their own requests."""
    return DashboardOut.model_validate(service.dashboard(actor), from_attributes=True)


@router.get("/consumption", response_model=ConsumptionReportOut)
def consumption(
    start: Optional[date] = None,
    end: Optional[date] = None,
    top: int = Query(default=5, ge=1, le=50),
    actor: Identity = Depends(get_current_identity),
    service: ReportService = Depends(get_report_service),
):
    """Consumption over [start, end]. Defaults to the last 30 days."""
    end = end or date.today()
    start = start or end - timedelta(days=29)
    report = service.consumption_report(actor, start=start, end=end, top=top)
    return ConsumptionReportOut.model_validate(report, from_attributes=True)
