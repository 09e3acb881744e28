"""
Order pricing.

All amounts are integer cents and the sales tax rate is in basis points
(1200 = 12%). Rounding is half-up to the cent.
"""
from dataclasses import dataclass, field, asdict, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from django.conf import settings

BPS_DENOMINATOR = 10000


@dataclass(frozen=True)
class PricingConfig:
    rush_fee_small_cents: int
    rush_fee_large_cents: int
    gst_pst_rate_bps: int
    rush_fee_large_threshold_cents: int = 10000


@dataclass(frozen=True)
class PricingItem:
    """One service line as entered at intake"""
    service_id: object
    quantity: int
    base_price_cents: int
    custom_price_cents: Optional[int] = None
    garment_id: object = None


@dataclass(frozen=True)
class ItemPrice:
    garment_id: object
    service_id: object
    quantity: int
    unit_price_cents: int
    total_price_cents: int
    is_custom: bool


@dataclass(frozen=True)
class RushFee:
    rush_fee_cents: int
    tier: str


@dataclass
class PricingCalculation:
    subtotal_cents: int
    rush_fee_cents: int
    tax_cents: int
    total_cents: int
    rush_applied: bool
    tax_rate_bps: int
    items: List[ItemPrice] = field(default_factory=list)

    def as_dict(self):
        data = asdict(self)
        data['breakdown'] = {
            'items': data.pop('items'),
            'rush_applied': data.pop('rush_applied'),
            'tax_rate_bps': data.pop('tax_rate_bps'),
        }
        return data


def _round_half_up(value):
    return int(Decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def get_pricing_config():
    """Pricing configuration from Django settings (environment driven)"""
    return PricingConfig(
        rush_fee_small_cents=int(getattr(settings, 'RUSH_FEE_SMALL_CENTS', 3000)),
        rush_fee_large_cents=int(getattr(settings, 'RUSH_FEE_LARGE_CENTS', 6000)),
        gst_pst_rate_bps=int(getattr(settings, 'GST_PST_RATE_BPS', 1200)),
        rush_fee_large_threshold_cents=int(getattr(settings, 'RUSH_FEE_LARGE_THRESHOLD_CENTS', 10000)),
    )


def validate_pricing_config(config):
    """Return (is_valid, errors) for a pricing configuration"""
    errors = []
    if config.rush_fee_small_cents < 0:
        errors.append('Rush fee small must be non-negative')
    if config.rush_fee_large_cents < 0:
        errors.append('Rush fee large must be non-negative')
    if config.rush_fee_large_cents < config.rush_fee_small_cents:
        errors.append('Rush fee large must be greater than or equal to rush fee small')
    if config.gst_pst_rate_bps < 0 or config.gst_pst_rate_bps > BPS_DENOMINATOR:
        errors.append('GST/PST rate must be between 0 and 10000 basis points (0-100%)')
    return len(errors) == 0, errors


def calculate_item_price(item):
    is_custom = item.custom_price_cents is not None
    unit_price = item.custom_price_cents if is_custom else item.base_price_cents
    return ItemPrice(
        garment_id=item.garment_id,
        service_id=item.service_id,
        quantity=item.quantity,
        unit_price_cents=unit_price,
        total_price_cents=unit_price * item.quantity,
        is_custom=is_custom,
    )


def calculate_rush_fee(subtotal_cents, config, threshold_cents=None):
    """Large tier at or above the threshold, small tier below it"""
    if threshold_cents is None:
        threshold_cents = config.rush_fee_large_threshold_cents
    if subtotal_cents >= threshold_cents:
        return RushFee(rush_fee_cents=config.rush_fee_large_cents, tier='large')
    return RushFee(rush_fee_cents=config.rush_fee_small_cents, tier='small')


def calculate_tax(subtotal_cents, rush_fee_cents, tax_rate_bps):
    taxable = Decimal(subtotal_cents + rush_fee_cents)
    return _round_half_up(taxable * tax_rate_bps / BPS_DENOMINATOR)


def calculate_order_pricing(items, is_rush, config=None):
    """Price a list of PricingItem for a rush or regular order"""
    if config is None:
        config = get_pricing_config()

    item_prices = [calculate_item_price(item) for item in items]
    subtotal = sum(price.total_price_cents for price in item_prices)
    rush_fee = calculate_rush_fee(subtotal, config).rush_fee_cents if is_rush else 0
    tax = calculate_tax(subtotal, rush_fee, config.gst_pst_rate_bps)

    return PricingCalculation(
        subtotal_cents=subtotal,
        rush_fee_cents=rush_fee,
        tax_cents=tax,
        total_cents=subtotal + rush_fee + tax,
        rush_applied=bool(is_rush),
        tax_rate_bps=config.gst_pst_rate_bps,
        items=item_prices,
    )


def calculate_batch_pricing(orders, config=None) -> Dict[object, PricingCalculation]:
    """
    Price several orders at once.

    ``orders`` is an iterable of dicts with order_id, items, is_rush and an
    optional per-order config. Returns {order_id: PricingCalculation}.
    """
    results = {}
    for order in orders:
        results[order['order_id']] = calculate_order_pricing(
            order['items'], order.get('is_rush', False), order.get('config') or config
        )
    return results


def recalculate_order_pricing(items, is_rush, overrides=None):
    """Price with the configured defaults, overriding some config values"""
    config = get_pricing_config()
    if overrides:
        config = replace(config, **{k: v for k, v in overrides.items() if v is not None})
    return calculate_order_pricing(items, is_rush, config)


def format_currency(cents):
    """1234 -> '$12.34', -1234 -> '-$12.34'"""
    sign = '-' if cents < 0 else ''
    dollars = (Decimal(abs(cents)) / 100).quantize(Decimal('0.01'))
    return f"{sign}${dollars:,.2f}"


def calculate_percentage(part, total):
    if not total:
        return 0
    return float((Decimal(part) * 100 / Decimal(total)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def get_pricing_summary(calculation):
    """Human readable totals with the share of each component"""
    total = calculation.total_cents
    return {
        'subtotal': format_currency(calculation.subtotal_cents),
        'rush_fee': format_currency(calculation.rush_fee_cents),
        'tax': format_currency(calculation.tax_cents),
        'total': format_currency(total),
        'breakdown': {
            'subtotal_percentage': calculate_percentage(calculation.subtotal_cents, total),
            'rush_fee_percentage': calculate_percentage(calculation.rush_fee_cents, total),
            'tax_percentage': calculate_percentage(calculation.tax_cents, total),
        },
    }
