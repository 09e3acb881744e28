import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from atelier.core.utils import log_event
from .garment_templates import (
    MEASUREMENT_TEMPLATES, UNITS, build_measurement_set, convert_measurements,
    get_measurement_template, validate_measurements,
)
from .models import Measurement
from .serializers import MeasurementSerializer, MeasurementCreateSerializer

logger = logging.getLogger(__name__)


def _garment_type_key(garment):
    if garment.garment_type_id:
        return garment.garment_type.code
    return garment.type


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def measurement_templates(request):
    """All templates, or the one matching ?garment_type="""
    garment_type = request.query_params.get('garment_type')
    if garment_type:
        return Response(get_measurement_template(garment_type).as_dict())
    return Response([t.as_dict() for t in MEASUREMENT_TEMPLATES.values()])


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def measurement_list_create(request):
    """List measurements (filter by order_id, garment_id) or record a new set"""
    if request.method == 'GET':
        queryset = Measurement.objects.select_related('garment', 'taken_by')
        order_id = request.query_params.get('order_id')
        if order_id:
            queryset = queryset.filter(order_id=order_id)
        garment_id = request.query_params.get('garment_id')
        if garment_id:
            queryset = queryset.filter(garment_id=garment_id)
        return Response(MeasurementSerializer(queryset, many=True).data)

    serializer = MeasurementCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    order = data['order_id']
    garment = data['garment_id']
    measurement_set = build_measurement_set(
        data.get('garment_type') or _garment_type_key(garment),
        data['values'],
        notes=data['point_notes'],
        unit=data['unit'],
    )
    errors = validate_measurements(measurement_set)
    if errors:
        return Response({'error': 'Invalid measurements', 'details': errors}, status=status.HTTP_400_BAD_REQUEST)

    measurement = Measurement.objects.create(
        order=order,
        garment=garment,
        taken_by=request.user,
        measurements=measurement_set,
        notes=data.get('notes') or None,
    )
    log_event('measurement', measurement.id, 'created', {
        'order_id': order.id,
        'garment_id': garment.id,
        'template': measurement_set['template'],
        'point_count': len(measurement_set['points']),
    }, request=request)
    logger.info(f"Measurements {measurement.id} taken for order {order.order_number}, garment {garment.label_code}")
    return Response(MeasurementSerializer(measurement).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def measurement_detail(request, pk):
    """One measurement set, optionally converted with ?unit=inches|centimeters"""
    measurement = get_object_or_404(Measurement.objects.select_related('garment', 'taken_by'), pk=pk)
    data = MeasurementSerializer(measurement).data

    unit = request.query_params.get('unit')
    if unit:
        if unit not in UNITS:
            return Response({'error': f"unit must be one of: {', '.join(UNITS)}"}, status=status.HTTP_400_BAD_REQUEST)
        data['measurements'] = convert_measurements(measurement.measurements, unit)
    return Response(data)
