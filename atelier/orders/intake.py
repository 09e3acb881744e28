"""
Order intake: client upsert, order, garments, services, tasks and pricing
created in one transaction.
"""
import logging
import sys
from dataclasses import replace

from django.db import IntegrityError, transaction
from django.db.models import Max

from atelier.catalog.models import GarmentType
from atelier.clients.models import Client
from atelier.core.utils import log_event
from atelier.integrations.notifications import sync_client_contact
from atelier.labels.qr import QRCodeError, generate_qr_png, new_label_code, order_qr_value
from atelier.pricing.calculator import PricingItem, calculate_order_pricing, get_pricing_config
from .models import Order, Garment, GarmentService, Task
from .stage_transitions import OrderStatus, Stage

logger = logging.getLogger(__name__)

CLIENT_FIELDS = ('first_name', 'last_name', 'phone', 'email', 'language', 'preferred_contact', 'newsletter_consent')


def next_order_number():
    last = Order.objects.aggregate(last=Max('order_number'))['last']
    return (last or 0) + 1


def create_numbered_order(**fields):
    """
    Create an order with the next order number

    Two intakes racing for the same number collide on the unique constraint;
    the loser retries once with a fresh number.
    """
    for attempt in range(2):
        try:
            with transaction.atomic():
                return Order.objects.create(order_number=next_order_number(), **fields)
        except IntegrityError:
            if attempt:
                raise
            logger.warning("Order number collision, retrying with the next number")


def unique_label_code():
    code = new_label_code()
    while Garment.objects.filter(label_code=code).exists():
        code = new_label_code()
    return code


def upsert_client(data):
    """Find the client by email (then phone) and refresh it, or create it"""
    client = None
    if data.get('email'):
        client = Client.objects.filter(email__iexact=data['email']).first()
    if client is None and data.get('phone'):
        client = Client.objects.filter(phone=data['phone']).first()

    values = {field: data[field] for field in CLIENT_FIELDS if field in data and data[field] not in (None, '')}
    if client:
        for field, value in values.items():
            setattr(client, field, value)
        client.save()
        return client, False
    return Client.objects.create(**values), True


def pricing_config_for(order_data):
    """Pricing config, forcing the rush tier when the clerk picked one"""
    config = get_pricing_config()
    rush_fee_type = order_data.get('rush_fee_type')
    if rush_fee_type == 'large':
        config = replace(config, rush_fee_large_threshold_cents=0)
    elif rush_fee_type == 'small':
        config = replace(config, rush_fee_large_threshold_cents=sys.maxsize)
    return config


def create_order_from_intake(data, request=None):
    """
    Create a complete order from validated intake data

    Returns (order, calculation).
    """
    client_data = data['client']
    order_data = data['order']
    user = getattr(request, 'user', None)

    priority = order_data.get('priority', 'normal')
    if order_data.get('rush') and priority == 'normal':
        priority = 'rush'

    with transaction.atomic():
        client, client_created = upsert_client(client_data)
        log_event('client', client.id, 'created' if client_created else 'updated', request=request)

        order = create_numbered_order(
            client=client,
            type=order_data['type'],
            priority=priority,
            status=OrderStatus.PENDING,
            due_date=order_data.get('due_date'),
            rush=order_data.get('rush', False),
            rack_position=order_data.get('rack_position') or None,
            notes=order_data.get('notes') or None,
            created_by=user if user is not None and user.is_authenticated else None,
        )
        log_event('order', order.id, 'created', {
            'order_number': order.order_number,
            'type': order.type,
            'rush': order.rush,
        }, request=request)

        pricing_items = []
        for garment_data in data['garments']:
            garment_type = None
            if garment_data.get('garment_type_id'):
                garment_type = GarmentType.objects.filter(pk=garment_data['garment_type_id']).first()
            garment = Garment.objects.create(
                order=order,
                garment_type=garment_type,
                type=garment_data['type'],
                color=garment_data.get('color') or None,
                brand=garment_data.get('brand') or None,
                notes=garment_data.get('notes') or None,
                label_code=unique_label_code(),
            )
            log_event('garment', garment.id, 'created', {'order_id': order.id, 'type': garment.type}, request=request)

            for line in garment_data['services']:
                service = line['service_id']
                quantity = line.get('qty', 1)
                garment_service = GarmentService.objects.create(
                    garment=garment,
                    service=service,
                    quantity=quantity,
                    custom_price_cents=line.get('custom_price_cents'),
                    notes=line.get('notes') or None,
                )
                pricing_items.append(PricingItem(
                    garment_id=garment.id,
                    service_id=service.id,
                    quantity=quantity,
                    custom_price_cents=line.get('custom_price_cents'),
                    base_price_cents=service.base_price_cents,
                ))
                Task.objects.create(
                    order=order,
                    garment=garment,
                    garment_service=garment_service,
                    operation=service.name,
                    stage=Stage.PENDING,
                    planned_minutes=service.estimated_minutes * quantity if service.estimated_minutes else None,
                )

        calculation = calculate_order_pricing(pricing_items, order.rush, pricing_config_for(order_data))
        order.subtotal_cents = calculation.subtotal_cents
        order.rush_fee_cents = calculation.rush_fee_cents
        order.tax_cents = calculation.tax_cents
        order.total_cents = calculation.total_cents
        order.qrcode = order_qr_value(order.order_number)
        order.refresh_balance()
        order.save()

    # CRM sync happens outside the transaction; it is a network call
    sync_client_contact(client)

    logger.info(f"Intake created order {order.order_number} for client {client.id} ({len(pricing_items)} services, total {order.total_cents}c)")
    return order, calculation


def intake_response(order, calculation):
    try:
        qrcode_image = generate_qr_png(order.qrcode)
    except QRCodeError as e:
        logger.warning(f"Order {order.order_number}: QR image not generated: {e}")
        qrcode_image = None
    return {
        'order_id': order.id,
        'order_number': order.order_number,
        'totals': {
            'subtotal_cents': calculation.subtotal_cents,
            'tax_cents': calculation.tax_cents,
            'total_cents': calculation.total_cents,
            'rush_fee_cents': calculation.rush_fee_cents,
        },
        'qrcode': order.qrcode,
        'qrcode_image': qrcode_image,
    }
