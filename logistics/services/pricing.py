"""
Pricing Engine for KwiiGo

Calculates inter-city delivery prices from weight, route and options.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Tuple

from django.conf import settings

from core.models import City

logger = logging.getLogger(__name__)


class PricingEngine:
    """
    Price calculation engine for inter-city deliveries.

    Formula: Price = Max(MinimumBase, Weight * PricePerKg) + RouteFee
                     (+ UrgentFee) (+ FragileFee)
    Split: Platform 15% / Driver 85%
    """

    def __init__(self):
        self.price_per_kg = Decimal(str(settings.PRICING_PRICE_PER_KG))
        self.minimum_base = Decimal(str(settings.PRICING_MINIMUM_BASE))
        self.default_route_fee = Decimal(str(settings.PRICING_DEFAULT_ROUTE_FEE))
        self.urgent_fee = Decimal(str(settings.PRICING_URGENT_FEE))
        self.fragile_fee = Decimal(str(settings.PRICING_FRAGILE_FEE))
        self.max_weight = Decimal(str(settings.PRICING_MAX_WEIGHT_KG))
        self.commission_percent = Decimal(str(settings.PLATFORM_COMMISSION_PERCENT)) / 100

        # Route fees are symmetric: store both directions
        self.route_fees = {}
        for (origin, destination), fee in settings.PRICING_ROUTE_FEES.items():
            self.route_fees[(origin, destination)] = Decimal(str(fee))
            self.route_fees[(destination, origin)] = Decimal(str(fee))

    def round_to_unit(self, amount: Decimal) -> Decimal:
        """
        Round half-up to a whole XAF.

        Example: 1250.5 -> 1251, 1250.49 -> 1250
        """
        return amount.quantize(Decimal('1'), rounding=ROUND_HALF_UP)

    def _validate(self, weight_kg, from_city: str, to_city: str) -> Decimal:
        try:
            weight = Decimal(str(weight_kg))
        except ArithmeticError:
            raise ValueError("Poids invalide")
        if not weight.is_finite() or weight <= 0:
            raise ValueError("Le poids doit être supérieur à 0")
        if weight > self.max_weight:
            raise ValueError(f"Le poids ne peut pas dépasser {self.max_weight} kg")
        for city in (from_city, to_city):
            if city not in City.values:
                raise ValueError(f"Ville inconnue: {city}")
        return weight

    def route_fee(self, from_city: str, to_city: str) -> Decimal:
        """Distance fee for a city pair; same-city and unknown pairs pay the default."""
        return self.route_fees.get((from_city, to_city), self.default_route_fee)

    def base_price(self, weight_kg) -> Decimal:
        return max(self.minimum_base, Decimal(str(weight_kg)) * self.price_per_kg)

    def breakdown(
        self,
        weight_kg,
        from_city: str,
        to_city: str,
        urgent: bool = False,
        fragile: bool = False
    ) -> Dict[str, Decimal]:
        """
        Detailed price computation.

        Returns:
            Dict with base_price, distance_fee, urgent_fee, fragile_fee, total

        Raises:
            ValueError: If weight is out of range or a city is unknown
        """
        weight = self._validate(weight_kg, from_city, to_city)

        base = self.base_price(weight)
        distance_fee = self.route_fee(from_city, to_city)
        urgent_fee = self.urgent_fee if urgent else Decimal('0')
        fragile_fee = self.fragile_fee if fragile else Decimal('0')

        total = self.round_to_unit(base + distance_fee + urgent_fee + fragile_fee)

        return {
            'base_price': base,
            'distance_fee': distance_fee,
            'urgent_fee': urgent_fee,
            'fragile_fee': fragile_fee,
            'total': total,
        }

    def split(self, total: Decimal) -> Tuple[Decimal, Decimal]:
        """
        Split a price between platform and driver.

        Returns:
            Tuple of (platform_fee, driver_earning)
        """
        total = Decimal(str(total))
        platform_fee = self.round_to_unit(total * self.commission_percent)
        return platform_fee, total - platform_fee

    def calculate_price(
        self,
        weight_kg,
        from_city: str,
        to_city: str,
        urgent: bool = False,
        fragile: bool = False
    ) -> Tuple[Decimal, Decimal, Decimal]:
        """
        Calculate delivery price.

        Returns:
            Tuple of (total_price, platform_fee, driver_earning)
        """
        total = self.breakdown(weight_kg, from_city, to_city, urgent, fragile)['total']
        platform_fee, driver_earning = self.split(total)

        logger.debug(
            f"[PRICING] {from_city}->{to_city} {weight_kg}kg "
            f"urgent={urgent} fragile={fragile} => {total} XAF"
        )
        return total, platform_fee, driver_earning


# Singleton instance
pricing_engine = PricingEngine()
