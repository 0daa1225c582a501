from solar_portal.routes.payment import router as payment_router
from solar_portal.routes.admin import router as admin_router
from solar_portal.routes.pricing import router as pricing_router

__all__ = ["payment_router", "admin_router", "pricing_router"]
