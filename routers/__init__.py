# routers/__init__.py

from fastapi import APIRouter

# Identity
from .auth import router as auth_router
from .admin import router as admin_router

# Entity handlers
from .customers import router as customers_router
from .complaints import router as complaints_router
from .services import router as services_router
from .technicians import router as technicians_router
from .service_types import router as service_types_router
from .products import router as products_router
from .inventory import router as inventory_router
from .invoices import router as invoices_router
from .distribution import router as distribution_router
from .notifications import router as notifications_router
from .dashboard import router as dashboard_router

# Public
from .health import router as health_router


api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(admin_router)

api_router.include_router(customers_router)
api_router.include_router(complaints_router)
api_router.include_router(services_router)
api_router.include_router(technicians_router)
api_router.include_router(service_types_router)
api_router.include_router(products_router)
api_router.include_router(inventory_router)
api_router.include_router(invoices_router)
api_router.include_router(distribution_router)
api_router.include_router(notifications_router)
api_router.include_router(dashboard_router)

api_router.include_router(health_router)

__all__ = ["api_router"]
