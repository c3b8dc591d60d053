"""Dashboard and consumption aggregates."""
from .entities import ConsumptionReport, DashboardStats
from .service import ReportService
