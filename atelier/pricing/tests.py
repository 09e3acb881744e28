"""
Test suite for pricing
Tests: item, rush fee and tax calculations, config validation, rush rules and pricing endpoints
"""
from datetime import date

from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework import status

from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.orders.models import Order
from atelier.orders.stage_transitions import OrderStatus
from atelier.pricing.calculator import (
    PricingConfig, PricingItem, calculate_batch_pricing, calculate_item_price, calculate_order_pricing,
    calculate_percentage, calculate_rush_fee, calculate_tax, format_currency, get_pricing_config,
    get_pricing_summary, recalculate_order_pricing, validate_pricing_config,
)
from atelier.pricing.rush import (
    calculate_rush_multiplier_fee, calculate_rush_timeline, can_accept_rush_order, get_rush_indicator,
    get_rush_order_priority, rush_due_date, should_show_rush_indicator,
)

CONFIG = PricingConfig(rush_fee_small_cents=3000, rush_fee_large_cents=6000, gst_pst_rate_bps=1200)

ITEMS = [
    PricingItem(garment_id='garment-1', service_id='service-1', quantity=2, base_price_cents=2500),
    PricingItem(garment_id='garment-1', service_id='service-2', quantity=1, base_price_cents=3000, custom_price_cents=4000),
]


class CalculatorTests(SimpleTestCase):
    """Test the pure pricing functions"""

    def test_item_base_price(self):
        result = calculate_item_price(ITEMS[0])
        self.assertEqual(result.unit_price_cents, 2500)
        self.assertEqual(result.total_price_cents, 5000)
        self.assertFalse(result.is_custom)

    def test_item_custom_price_overrides_base(self):
        item = PricingItem(service_id='s', quantity=3, base_price_cents=2500, custom_price_cents=3000)
        result = calculate_item_price(item)
        self.assertEqual(result.unit_price_cents, 3000)
        self.assertEqual(result.total_price_cents, 9000)
        self.assertTrue(result.is_custom)

    def test_item_custom_price_zero_is_still_custom(self):
        item = PricingItem(service_id='s', quantity=1, base_price_cents=2500, custom_price_cents=0)
        self.assertEqual(calculate_item_price(item).total_price_cents, 0)

    def test_rush_fee_tiers(self):
        self.assertEqual(calculate_rush_fee(5000, CONFIG).rush_fee_cents, 3000)
        self.assertEqual(calculate_rush_fee(5000, CONFIG).tier, 'small')
        self.assertEqual(calculate_rush_fee(15000, CONFIG).rush_fee_cents, 6000)
        self.assertEqual(calculate_rush_fee(15000, CONFIG).tier, 'large')
        self.assertEqual(calculate_rush_fee(0, CONFIG).tier, 'small')

    def test_rush_fee_threshold_is_inclusive(self):
        self.assertEqual(calculate_rush_fee(10000, CONFIG).tier, 'large')
        self.assertEqual(calculate_rush_fee(9999, CONFIG).tier, 'small')

    def test_rush_fee_custom_threshold(self):
        result = calculate_rush_fee(10000, CONFIG, 8000)
        self.assertEqual(result.rush_fee_cents, 6000)
        self.assertEqual(result.tier, 'large')

    def test_tax(self):
        self.assertEqual(calculate_tax(10000, 3000, 1200), 1560)
        self.assertEqual(calculate_tax(10000, 0, 1200), 1200)
        self.assertEqual(calculate_tax(10000, 3000, 0), 0)
        self.assertEqual(calculate_tax(1000, 0, 1250), 125)

    def test_tax_rounds_half_up(self):
        # 1 cent at 50% is exactly half a cent
        self.assertEqual(calculate_tax(1, 0, 5000), 1)
        self.assertEqual(calculate_tax(3, 0, 5000), 2)

    def test_regular_order(self):
        result = calculate_order_pricing(ITEMS, False, CONFIG)
        self.assertEqual(result.subtotal_cents, 9000)
        self.assertEqual(result.rush_fee_cents, 0)
        self.assertEqual(result.tax_cents, 1080)
        self.assertEqual(result.total_cents, 10080)
        self.assertFalse(result.rush_applied)
        self.assertEqual(len(result.items), 2)

    def test_rush_order(self):
        result = calculate_order_pricing(ITEMS, True, CONFIG)
        self.assertEqual(result.subtotal_cents, 9000)
        self.assertEqual(result.rush_fee_cents, 3000)
        self.assertEqual(result.tax_cents, 1440)
        self.assertEqual(result.total_cents, 13440)
        self.assertTrue(result.as_dict()['breakdown']['rush_applied'])

    def test_empty_order(self):
        result = calculate_order_pricing([], False, CONFIG)
        self.assertEqual((result.subtotal_cents, result.rush_fee_cents, result.tax_cents, result.total_cents), (0, 0, 0, 0))

    def test_batch_pricing(self):
        results = calculate_batch_pricing([
            {'order_id': 'order-1', 'is_rush': False, 'items': [PricingItem(service_id='s1', quantity=1, base_price_cents=1000)]},
            {'order_id': 'order-2', 'is_rush': True, 'items': [PricingItem(service_id='s2', quantity=1, base_price_cents=2000)]},
        ], CONFIG)
        self.assertEqual(results['order-1'].total_cents, 1120)
        # 2000 + 3000 rush fee + 600 tax
        self.assertEqual(results['order-2'].total_cents, 5600)

    def test_recalculate_with_overrides(self):
        result = recalculate_order_pricing(ITEMS, True, {'rush_fee_small_cents': 5000, 'gst_pst_rate_bps': 1500})
        self.assertEqual(result.rush_fee_cents, 5000)
        self.assertEqual(result.tax_cents, 2100)
        self.assertEqual(result.total_cents, 16100)

    def test_validate_config(self):
        self.assertEqual(validate_pricing_config(CONFIG), (True, []))
        is_valid, errors = validate_pricing_config(PricingConfig(-1, 6000, 1200))
        self.assertFalse(is_valid)
        self.assertIn('Rush fee small must be non-negative', errors)
        _, errors = validate_pricing_config(PricingConfig(6000, 3000, 1200))
        self.assertIn('Rush fee large must be greater than or equal to rush fee small', errors)
        _, errors = validate_pricing_config(PricingConfig(3000, 6000, 10001))
        self.assertIn('GST/PST rate must be between 0 and 10000 basis points (0-100%)', errors)

    def test_format_currency(self):
        self.assertEqual(format_currency(1234), '$12.34')
        self.assertEqual(format_currency(100000), '$1,000.00')
        self.assertEqual(format_currency(-1234), '-$12.34')
        self.assertEqual(format_currency(0), '$0.00')

    def test_percentage(self):
        self.assertEqual(calculate_percentage(1, 3), 33.33)
        self.assertEqual(calculate_percentage(50, 0), 0)

    def test_summary(self):
        summary = get_pricing_summary(calculate_order_pricing(ITEMS, False, CONFIG))
        self.assertEqual(summary['total'], '$100.80')
        self.assertEqual(summary['breakdown']['subtotal_percentage'], 89.29)
        self.assertEqual(summary['breakdown']['rush_fee_percentage'], 0)

    @override_settings(RUSH_FEE_SMALL_CENTS=1000, RUSH_FEE_LARGE_CENTS=2000, GST_PST_RATE_BPS=500)
    def test_config_from_settings(self):
        config = get_pricing_config()
        self.assertEqual(config.rush_fee_small_cents, 1000)
        self.assertEqual(config.rush_fee_large_cents, 2000)
        self.assertEqual(config.gst_pst_rate_bps, 500)


class RushRuleTests(SimpleTestCase):
    """Test per order type rush rules"""

    def test_multiplier_fee(self):
        self.assertEqual(calculate_rush_multiplier_fee(10000, 'alteration', True), 5000)
        self.assertEqual(calculate_rush_multiplier_fee(10000, 'custom', True), 10000)
        self.assertEqual(calculate_rush_multiplier_fee(10000, 'custom', False), 0)
        self.assertEqual(calculate_rush_multiplier_fee(101, 'alteration', True), 51)

    def test_timeline(self):
        self.assertEqual(calculate_rush_timeline(10, 'alteration', True), 5)
        self.assertEqual(calculate_rush_timeline(10, 'custom', True), 7)
        self.assertEqual(calculate_rush_timeline(1, 'alteration', True), 1)
        self.assertEqual(calculate_rush_timeline(3, 'alteration', True), 2)
        self.assertEqual(calculate_rush_timeline(10, 'alteration', False), 10)

    def test_priority_and_indicator(self):
        self.assertEqual(get_rush_order_priority('alteration', True), 'high')
        self.assertEqual(get_rush_order_priority('custom', True), 'urgent')
        self.assertEqual(get_rush_order_priority('custom', False), 'normal')
        self.assertFalse(should_show_rush_indicator(False, 'custom'))
        self.assertEqual(get_rush_indicator('custom', True)['text'], 'URGENT')
        self.assertIsNone(get_rush_indicator('alteration', False))

    def test_capacity(self):
        self.assertTrue(can_accept_rush_order('alteration', 4))
        self.assertFalse(can_accept_rush_order('alteration', 5))
        self.assertFalse(can_accept_rush_order('custom', 2))

    def test_unknown_type_uses_alteration_rules(self):
        self.assertEqual(get_rush_order_priority('repair', True), 'high')

    def test_due_date(self):
        self.assertEqual(rush_due_date(10, 'alteration', True, start=date(2024, 3, 1)), date(2024, 3, 6))


class PricingAPITests(TestCase):
    """Test pricing endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.hem = TestDataFactory.create_service(name='Hem', base_price_cents=2500)
        self.zip = TestDataFactory.create_service(name='Zipper', base_price_cents=3000)

    def _order_with_lines(self, rush=False):
        order = TestDataFactory.create_order(rush=rush)
        garment = TestDataFactory.create_garment(order)
        TestDataFactory.create_garment_service(garment, service=self.hem, quantity=2)
        TestDataFactory.create_garment_service(garment, service=self.zip, custom_price_cents=4000)
        return order

    def test_quote(self):
        data = {
            'items': [
                {'service_id': self.hem.id, 'qty': 2},
                {'service_id': self.zip.id, 'custom_price_cents': 4000},
            ],
            'is_rush': True,
        }
        response = self.client.post('/api/v1/pricing/quote/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['subtotal_cents'], 9000)
        self.assertEqual(response.data['rush_fee_cents'], 3000)
        self.assertEqual(response.data['total_cents'], 13440)
        self.assertEqual(response.data['summary']['total'], '$134.40')

    def test_quote_forced_large_rush_fee(self):
        data = {'items': [{'service_id': self.hem.id}], 'is_rush': True, 'rush_fee_type': 'large'}
        response = self.client.post('/api/v1/pricing/quote/', data, format='json')
        self.assertEqual(response.data['rush_fee_cents'], 6000)

    def test_quote_requires_items(self):
        response = self.client.post('/api/v1/pricing/quote/', {'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_order_pricing(self):
        order = self._order_with_lines()
        response = self.client.get(f'/api/v1/orders/{order.id}/pricing/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_cents'], 10080)
        self.assertEqual(response.data['stored']['total_cents'], 0)

    def test_recalculate_persists_totals(self):
        order = self._order_with_lines()
        response = self.client.post(f'/api/v1/orders/{order.id}/pricing/recalculate/', {'is_rush': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertTrue(order.rush)
        self.assertEqual(order.total_cents, 13440)
        self.assertEqual(order.balance_due_cents, 13440)

    def test_recalculate_rejects_invalid_overrides(self):
        order = self._order_with_lines()
        data = {'overrides': {'rush_fee_small_cents': 9000, 'rush_fee_large_cents': 1000}}
        response = self.client.post(f'/api/v1/orders/{order.id}/pricing/recalculate/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Rush fee large must be greater than or equal to rush fee small', response.data['errors'])

    def test_recalculate_refused_for_archived_order(self):
        order = self._order_with_lines()
        Order.objects.filter(pk=order.pk).update(status=OrderStatus.ARCHIVED)
        response = self.client.post(f'/api/v1/orders/{order.id}/pricing/recalculate/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_rush_timeline(self):
        data = {'estimated_days': 10, 'order_type': 'custom', 'base_price_cents': 10000}
        response = self.client.post('/api/v1/pricing/rush-timeline/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['rush_days'], 7)
        self.assertEqual(response.data['priority'], 'urgent')
        self.assertEqual(response.data['rush_surcharge_cents'], 10000)
        self.assertTrue(response.data['can_accept'])
