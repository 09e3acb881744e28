"""Inbound webhooks from the payment processor and automation platform"""
import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from django.db import transaction
from atelier.core.exceptions import ConflictError
from atelier.core.utils import get_correlation_id, log_event
from atelier.orders.models import Order, Payment
from atelier.orders.stage_transitions import KanbanDragPolicy, OrderStatus
from atelier.orders.workflow import apply_order_stage_change
from .authentication import WebhookSecretAuthentication
from .serializers import OrderReadyWebhookSerializer, PaymentWebhookSerializer

logger = logging.getLogger(__name__)


def _get_order(order_id):
    order = Order.objects.select_related('client').filter(pk=order_id).first()
    if order is None:
        raise NotFound('Order not found')
    return order


@api_view(['POST'])
@authentication_classes([WebhookSecretAuthentication])
@permission_classes([AllowAny])
def order_ready_webhook(request):
    """Mark an order ready from an external workflow"""
    serializer = OrderReadyWebhookSerializer(data=request.data)
    if not serializer.is_valid():
        raise ValidationError(serializer.errors)

    data = serializer.validated_data
    order = _get_order(data['order_id'])
    correlation_id = get_correlation_id(request)

    if order.status != OrderStatus.READY:
        apply_order_stage_change(order, OrderStatus.READY, request=request, notes='webhook')

    log_event('order', order.id, 'webhook_order_ready', {
        'order_number': order.order_number,
        'timestamp': data['timestamp'].isoformat() if data.get('timestamp') else None,
        'metadata': data.get('metadata') or {},
    }, request=request)

    return Response({
        'success': True,
        'message': f"Order {order.order_number} marked as ready",
        'correlation_id': correlation_id,
    })


@api_view(['POST'])
@authentication_classes([WebhookSecretAuthentication])
@permission_classes([AllowAny])
def payment_webhook(request):
    """
    Record an online payment for the full balance of an order

    The amount must equal total minus deposit. A paid order moves to ready
    when the board allows that move from its current status.
    """
    serializer = PaymentWebhookSerializer(data=request.data)
    if not serializer.is_valid():
        raise ValidationError(serializer.errors)

    data = serializer.validated_data
    order = _get_order(data['order_id'])
    correlation_id = get_correlation_id(request)

    if Payment.objects.filter(transaction_id=data['transaction_id'], source='webhook').exists():
        raise ConflictError(f"Payment {data['transaction_id']} already recorded")

    expected = order.total_cents - order.deposit_cents
    amount = data['amount_cents']
    if amount != expected:
        raise ValidationError(f"Payment amount mismatch. Expected: {expected}, Received: {amount}")

    previous_status = order.status
    with transaction.atomic():
        payment = Payment.objects.create(
            order=order,
            amount_cents=amount,
            method=data['payment_method'],
            source='webhook',
            transaction_id=data['transaction_id'],
            currency=data['currency'],
        )
        order.deposit_cents += amount
        order.refresh_balance()
        update_fields = ['deposit_cents', 'balance_due_cents', 'updated_at']
        if order.status != OrderStatus.READY and KanbanDragPolicy.can_transition(order.status, OrderStatus.READY):
            order.status = OrderStatus.READY
            update_fields.append('status')
        order.save(update_fields=update_fields)

    log_event('order', order.id, 'webhook_payment_received', {
        'payment_id': payment.id,
        'amount_cents': amount,
        'currency': payment.currency,
        'payment_method': payment.method,
        'transaction_id': payment.transaction_id,
        'metadata': data.get('metadata') or {},
        'previous_status': previous_status,
        'status': order.status,
    }, request=request)
    logger.info(f"Webhook payment {payment.transaction_id}: {amount}c for order {order.order_number}")

    return Response({
        'success': True,
        'message': f"Payment of {payment.currency} {amount / 100:.2f} received for order {order.order_number}",
        'correlation_id': correlation_id,
        'payment_id': payment.id,
        'status': order.status,
    }, status=status.HTTP_201_CREATED)
