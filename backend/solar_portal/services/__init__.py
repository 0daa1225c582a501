from solar_portal.services.auth_service import AuthService
from solar_portal.services.audit_service import AuditService
from solar_portal.services.payment_service import PaymentService
from solar_portal.services.pricing_service import PricingService

__all__ = ["AuthService", "AuditService", "PaymentService", "PricingService"]
