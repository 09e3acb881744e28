import logging
from dataclasses import replace
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from atelier.core.utils import log_event
from atelier.orders.intake import pricing_config_for
from atelier.orders.models import Order, GarmentService
from atelier.orders.stage_transitions import OrderStatus
from .calculator import (
    PricingItem, calculate_order_pricing, recalculate_order_pricing, get_pricing_summary,
    validate_pricing_config, get_pricing_config,
)
from .rush import (
    calculate_rush_timeline, calculate_rush_multiplier_fee, get_rush_order_priority,
    can_accept_rush_order, rush_due_date, get_rush_indicator,
)
from .serializers import QuoteSerializer, RecalculateSerializer, RushTimelineSerializer

logger = logging.getLogger(__name__)


def _order_items(order):
    lines = GarmentService.objects.filter(garment__order=order).select_related('service', 'garment')
    return [
        PricingItem(
            garment_id=line.garment_id,
            service_id=line.service_id,
            quantity=line.quantity,
            base_price_cents=line.service.base_price_cents,
            custom_price_cents=line.custom_price_cents,
        )
        for line in lines
    ]


def _pricing_payload(calculation):
    data = calculation.as_dict()
    data['summary'] = get_pricing_summary(calculation)
    return data


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def pricing_quote(request):
    """Price services before an order exists"""
    serializer = QuoteSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    items = [
        PricingItem(
            service_id=line['service_id'].id,
            quantity=line.get('qty', 1),
            base_price_cents=line['service_id'].base_price_cents,
            custom_price_cents=line.get('custom_price_cents'),
        )
        for line in serializer.validated_data['items']
    ]
    config = pricing_config_for(serializer.validated_data)
    calculation = calculate_order_pricing(items, serializer.validated_data['is_rush'], config)
    return Response(_pricing_payload(calculation))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_pricing(request, pk):
    """Current price breakdown of an order, computed from its service lines"""
    order = get_object_or_404(Order, pk=pk)
    calculation = calculate_order_pricing(_order_items(order), order.rush)
    data = _pricing_payload(calculation)
    data['stored'] = {
        'subtotal_cents': order.subtotal_cents,
        'rush_fee_cents': order.rush_fee_cents,
        'tax_cents': order.tax_cents,
        'total_cents': order.total_cents,
        'deposit_cents': order.deposit_cents,
        'balance_due_cents': order.balance_due_cents,
    }
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_pricing_recalculate(request, pk):
    """Recalculate and store order totals, optionally with config overrides"""
    order = get_object_or_404(Order, pk=pk)
    if order.status in (OrderStatus.DELIVERED, OrderStatus.ARCHIVED):
        return Response(
            {'error': f"Cannot reprice an order that is {order.status}"},
            status=status.HTTP_400_BAD_REQUEST
        )

    serializer = RecalculateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    overrides = serializer.validated_data.get('overrides') or {}
    if overrides:
        is_valid, errors = validate_pricing_config(replace(get_pricing_config(), **overrides))
        if not is_valid:
            return Response({'error': 'Invalid pricing configuration', 'errors': errors}, status=status.HTTP_400_BAD_REQUEST)

    is_rush = serializer.validated_data.get('is_rush', order.rush)
    calculation = recalculate_order_pricing(_order_items(order), is_rush, overrides)

    previous_total = order.total_cents
    order.rush = is_rush
    order.subtotal_cents = calculation.subtotal_cents
    order.rush_fee_cents = calculation.rush_fee_cents
    order.tax_cents = calculation.tax_cents
    order.total_cents = calculation.total_cents
    order.refresh_balance()
    order.save(update_fields=[
        'rush', 'subtotal_cents', 'rush_fee_cents', 'tax_cents', 'total_cents', 'balance_due_cents', 'updated_at'
    ])
    log_event('order', order.id, 'repriced', {
        'previous_total_cents': previous_total,
        'total_cents': order.total_cents,
        'overrides': overrides,
    }, request=request)
    logger.info(f"Order {order.order_number} repriced: {previous_total}c -> {order.total_cents}c")
    return Response(_pricing_payload(calculation))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def rush_timeline(request):
    """Rush estimate for an order type: days, due date, priority and surcharge"""
    serializer = RushTimelineSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    order_type = data['order_type']
    is_rush = data['is_rush']
    active_rush = Order.objects.filter(
        type=order_type, rush=True, status__in=[OrderStatus.PENDING, OrderStatus.WORKING, OrderStatus.DONE]
    ).count()

    response = {
        'order_type': order_type,
        'is_rush': is_rush,
        'estimated_days': data['estimated_days'],
        'rush_days': calculate_rush_timeline(data['estimated_days'], order_type, is_rush),
        'due_date': rush_due_date(data['estimated_days'], order_type, is_rush),
        'priority': get_rush_order_priority(order_type, is_rush),
        'indicator': get_rush_indicator(order_type, is_rush),
        'active_rush_orders': active_rush,
        'can_accept': can_accept_rush_order(order_type, active_rush),
    }
    if 'base_price_cents' in data:
        response['rush_surcharge_cents'] = calculate_rush_multiplier_fee(data['base_price_cents'], order_type, is_rush)
    return Response(response)
