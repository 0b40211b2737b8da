"""API routes."""

from payroll_ledger.api.routes.health import router as health_router
from payroll_ledger.api.routes.payroll_ledger import router as payroll_ledger_router

__all__ = ["payroll_ledger_router", "health_router"]
