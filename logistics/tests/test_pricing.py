"""
Tests for the inter-city PricingEngine.
"""

from decimal import Decimal

from django.test import SimpleTestCase, override_settings

from core.models import City
from logistics.services.pricing import PricingEngine, pricing_engine


class PricingEngineTest(SimpleTestCase):

    def test_minimum_base_applies_to_light_parcels(self):
        breakdown = pricing_engine.breakdown(Decimal('1'), City.YAOUNDE, City.DOUALA)

        self.assertEqual(breakdown['base_price'], Decimal('1000'))
        self.assertEqual(breakdown['distance_fee'], Decimal('5000'))
        self.assertEqual(breakdown['total'], Decimal('6000'))

    def test_weight_based_price(self):
        breakdown = pricing_engine.breakdown(Decimal('4'), City.YAOUNDE, City.BAFOUSSAM)

        self.assertEqual(breakdown['base_price'], Decimal('2000'))
        self.assertEqual(breakdown['total'], Decimal('5000'))

    def test_route_fees_are_symmetric(self):
        for origin, destination, fee in [
            (City.YAOUNDE, City.DOUALA, '5000'),
            (City.YAOUNDE, City.BAFOUSSAM, '3000'),
            (City.DOUALA, City.BAFOUSSAM, '7000'),
        ]:
            self.assertEqual(pricing_engine.route_fee(origin, destination), Decimal(fee))
            self.assertEqual(pricing_engine.route_fee(destination, origin), Decimal(fee))

    def test_same_city_pays_default_fee(self):
        total, _, _ = pricing_engine.calculate_price(Decimal('2'), City.DOUALA, City.DOUALA)
        self.assertEqual(total, Decimal('3000'))

    def test_options_are_added(self):
        breakdown = pricing_engine.breakdown(
            Decimal('3.5'), City.DOUALA, City.BAFOUSSAM, urgent=True, fragile=True
        )

        self.assertEqual(breakdown['urgent_fee'], Decimal('3000'))
        self.assertEqual(breakdown['fragile_fee'], Decimal('1500'))
        self.assertEqual(breakdown['total'], Decimal('13250'))

    def test_split_rounds_half_up(self):
        platform_fee, driver_earning = pricing_engine.split(Decimal('13250'))

        self.assertEqual(platform_fee, Decimal('1988'))
        self.assertEqual(driver_earning, Decimal('11262'))

    def test_split_always_adds_up(self):
        for total in ['3000', '6000', '6333', '13250', '99999']:
            fee, earning = pricing_engine.split(Decimal(total))
            self.assertEqual(fee + earning, Decimal(total))

    def test_total_rounded_to_whole_xaf(self):
        # 2.333 kg -> 1166.5 base
        total, _, _ = pricing_engine.calculate_price(Decimal('2.333'), City.YAOUNDE, City.YAOUNDE)
        self.assertEqual(total, Decimal('3167'))

    def test_zero_weight_rejected(self):
        with self.assertRaises(ValueError):
            pricing_engine.breakdown(Decimal('0'), City.YAOUNDE, City.DOUALA)

    def test_negative_weight_rejected(self):
        with self.assertRaises(ValueError):
            pricing_engine.breakdown(Decimal('-2'), City.YAOUNDE, City.DOUALA)

    def test_weight_limit(self):
        total, _, _ = pricing_engine.calculate_price(Decimal('1000'), City.YAOUNDE, City.DOUALA)
        self.assertEqual(total, Decimal('505000'))

        with self.assertRaisesMessage(ValueError, '1000 kg'):
            pricing_engine.breakdown(Decimal('1000.01'), City.YAOUNDE, City.DOUALA)

    @override_settings(PRICING_MAX_WEIGHT_KG=50)
    def test_weight_limit_comes_from_settings(self):
        with self.assertRaises(ValueError):
            PricingEngine().breakdown(Decimal('51'), City.YAOUNDE, City.DOUALA)

    def test_unknown_city_rejected(self):
        with self.assertRaisesMessage(ValueError, 'garoua'):
            pricing_engine.breakdown(Decimal('1'), 'garoua', City.DOUALA)

    @override_settings(PLATFORM_COMMISSION_PERCENT=20, PRICING_URGENT_FEE=4000)
    def test_rates_come_from_settings(self):
        engine = PricingEngine()
        total, fee, earning = engine.calculate_price(
            Decimal('1'), City.YAOUNDE, City.DOUALA, urgent=True
        )

        self.assertEqual(total, Decimal('10000'))
        self.assertEqual(fee, Decimal('2000'))
        self.assertEqual(earning, Decimal('8000'))
