"""
Pricing Service — Electricity price calculator behind the public quote form.
"""

# Rials per kWh by customer type
RATES = {
    "residential": 1500,
    "commercial": 2000,
    "industrial": 1800,
}


class PricingService:

    @staticmethod
    def quote(consumption_kwh: int, customer_type: str) -> dict:
        """Price = consumption x per-kWh rate of the customer type.

        Raises:
            ValueError: non-positive consumption or unknown customer type.
        """
        if consumption_kwh <= 0:
            raise ValueError("Consumption must be a positive number of kWh")
        rate = RATES.get(customer_type)
        if rate is None:
            raise ValueError(f"Unknown customer type: {customer_type}")

        return {
            "consumption_kwh": consumption_kwh,
            "customer_type": customer_type,
            "rate": rate,
            "total_price": consumption_kwh * rate,
        }
