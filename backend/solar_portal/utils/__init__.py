from solar_portal.utils.validators import validate_payment_fields, normalize_mobile
from solar_portal.utils.rate_limiter import rate_limit, reset_rate_limits

__all__ = [
    "validate_payment_fields", "normalize_mobile",
    "rate_limit", "reset_rate_limits",
]
