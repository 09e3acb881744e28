"""Rush order rules per order type"""
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone


@dataclass(frozen=True)
class RushOrderConfig:
    enabled: bool
    rush_fee_multiplier: float
    priority: str
    timeline_reduction: int  # percent faster than the regular estimate
    indicator_text: str
    max_concurrent: int


RUSH_ORDER_CONFIGS = {
    'alteration': RushOrderConfig(
        enabled=True,
        rush_fee_multiplier=1.5,
        priority='high',
        timeline_reduction=50,
        indicator_text='RUSH',
        max_concurrent=5,
    ),
    'custom': RushOrderConfig(
        enabled=True,
        rush_fee_multiplier=2.0,
        priority='urgent',
        timeline_reduction=30,
        indicator_text='URGENT',
        max_concurrent=2,
    ),
}


def get_rush_order_config(order_type):
    return RUSH_ORDER_CONFIGS.get(order_type, RUSH_ORDER_CONFIGS['alteration'])


def calculate_rush_multiplier_fee(base_price_cents, order_type, is_rush):
    """Surcharge from the order type multiplier (1.5 -> +50%)"""
    if not is_rush:
        return 0
    config = get_rush_order_config(order_type)
    surcharge = Decimal(base_price_cents) * (Decimal(str(config.rush_fee_multiplier)) - 1)
    return int(surcharge.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def calculate_rush_timeline(estimated_days, order_type, is_rush):
    """Days needed for the order, never less than one for a rush"""
    if not is_rush:
        return estimated_days
    config = get_rush_order_config(order_type)
    remaining = Decimal(estimated_days) * (100 - config.timeline_reduction) / 100
    return max(1, int(remaining.quantize(Decimal('1'), rounding=ROUND_HALF_UP)))


def get_rush_order_priority(order_type, is_rush):
    if not is_rush:
        return 'normal'
    return get_rush_order_config(order_type).priority


def should_show_rush_indicator(is_rush, order_type):
    if not is_rush:
        return False
    return get_rush_order_config(order_type).enabled


def can_accept_rush_order(order_type, active_rush_count):
    """Whether the shop has capacity for another rush order of this type"""
    return active_rush_count < get_rush_order_config(order_type).max_concurrent


def rush_due_date(estimated_days, order_type, is_rush, start=None):
    start = start or timezone.localdate()
    return start + timedelta(days=calculate_rush_timeline(estimated_days, order_type, is_rush))


def get_rush_indicator(order_type, is_rush):
    """Board badge data for an order"""
    if not should_show_rush_indicator(is_rush, order_type):
        return None
    config = get_rush_order_config(order_type)
    return {
        'text': config.indicator_text,
        'priority': config.priority,
        'timeline_reduction': config.timeline_reduction,
    }
