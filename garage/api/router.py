"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from garage.api.auth import router as auth_router
from garage.api.admin import router as admin_router
from garage.api.branches import router as branches_router
from garage.api.customers import router as customers_router
from garage.api.technicians import router as technicians_router
from garage.api.variations import router as variations_router
from garage.api.quotations import router as quotations_router
from garage.api.work_orders import router as work_orders_router
from garage.api.qa import router as qa_router
from garage.api.invoices import router as invoices_router
from garage.api.cases import router as cases_router
from garage.api.expenses import router as expenses_router
from garage.api.payroll import router as payroll_router
from garage.api.notifications import router as notifications_router
from garage.api.conversations import router as conversations_router
from garage.api.uploads import router as uploads_router
from garage.api.websocket import router as websocket_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(admin_router)
api_router.include_router(branches_router)
api_router.include_router(customers_router)
api_router.include_router(technicians_router)
api_router.include_router(variations_router)
api_router.include_router(quotations_router)
api_router.include_router(work_orders_router)
api_router.include_router(qa_router)
api_router.include_router(invoices_router)
api_router.include_router(cases_router)
api_router.include_router(expenses_router)
api_router.include_router(payroll_router)
api_router.include_router(notifications_router)
api_router.include_router(conversations_router)
api_router.include_router(uploads_router)
api_router.include_router(websocket_router)
