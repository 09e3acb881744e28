import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from atelier.orders.models import Order, Garment
from atelier.orders.serializers import OrderListSerializer, GarmentSerializer
from .qr import QRCodeError, order_label_codes, parse_qr_value

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_labels(request, pk):
    """
    QR labels for an order: one header code plus one per garment
    Pass images=false to get the values only.
    """
    order = get_object_or_404(Order.objects.select_related('client').prefetch_related('garments'), pk=pk)
    if not order.garments.exists():
        return Response({'error': 'Order has no garments to label'}, status=status.HTTP_400_BAD_REQUEST)

    include_images = request.query_params.get('images', 'true').lower() != 'false'
    try:
        labels = order_label_codes(order, include_images=include_images)
    except QRCodeError as e:
        return Response({'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response({
        'order_id': order.id,
        'order_number': order.order_number,
        'client_name': order.client.full_name,
        'rack_position': order.rack_position,
        'due_date': order.due_date,
        'rush': order.rush,
        'labels': labels,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def label_scan(request):
    """Resolve a scanned QR value to its order"""
    value = request.query_params.get('value', '')
    kind, key = parse_qr_value(value)

    if kind == 'order':
        order = Order.objects.select_related('client').prefetch_related('garments', 'tasks').filter(order_number=key).first()
        if not order:
            return Response({'error': f"Order {key} not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response({'type': 'order', 'order': OrderListSerializer(order).data})

    if kind == 'garment':
        garment = Garment.objects.select_related('order__client').prefetch_related('services__service').filter(label_code=key).first()
        if not garment:
            return Response({'error': f"Garment {key} not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response({
            'type': 'garment',
            'garment': GarmentSerializer(garment).data,
            'order': OrderListSerializer(garment.order).data,
        })

    logger.info(f"Unrecognised label scan: {value!r}")
    return Response({'error': 'Unrecognised label value'}, status=status.HTTP_400_BAD_REQUEST)
