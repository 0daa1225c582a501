from solar_portal.models.payment import PaymentRecord
from solar_portal.models.profile import Profile, UserRole
from solar_portal.models.purchase import ElectricityPackage, Purchase
from solar_portal.models.audit import PaymentAuditLog

__all__ = ["PaymentRecord", "Profile", "UserRole", "ElectricityPackage", "Purchase", "PaymentAuditLog"]
