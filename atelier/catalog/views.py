import json
import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404
from atelier.core.cache_utils import get_cached, set_cached, invalidate_services_cache, SERVICES_LIST_PREFIX
from atelier.core.permissions import IsOwner, is_owner_user
from atelier.core.utils import log_event
from .importers import import_services, parse_price_csv, PriceListError
from .models import Category, GarmentType, Service
from .serializers import (
    CategorySerializer, GarmentTypeSerializer, ServiceSerializer, MoveCategorySerializer
)

logger = logging.getLogger(__name__)


def _forbidden():
    return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)


# Service views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def service_list_create(request):
    """List services (active only unless include_inactive) or create one"""
    if request.method == 'GET':
        category = request.query_params.get('category', '')
        search = request.query_params.get('search', '').strip()
        include_inactive = request.query_params.get('include_inactive', '').lower() == 'true'

        cached_data, cache_key = get_cached(
            SERVICES_LIST_PREFIX, category=category, search=search, include_inactive=include_inactive
        )
        if cached_data is not None:
            return Response(cached_data)

        queryset = Service.objects.all().order_by('category', 'display_order', 'name')
        if not include_inactive:
            queryset = queryset.filter(is_active=True)
        if category and category != 'all':
            queryset = queryset.filter(category=category)
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(code__icontains=search) | Q(description__icontains=search)
            )
        data = ServiceSerializer(queryset, many=True).data
        set_cached(cache_key, data)
        return Response(data)

    if not is_owner_user(request.user):
        return _forbidden()
    serializer = ServiceSerializer(data=request.data)
    if serializer.is_valid():
        service = serializer.save()
        log_event('service', service.id, 'created', {'code': service.code, 'price_cents': service.base_price_cents}, request=request)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def service_detail(request, pk):
    """Retrieve, update or delete a service"""
    service = get_object_or_404(Service, pk=pk)

    if request.method == 'GET':
        return Response(ServiceSerializer(service).data)

    if not is_owner_user(request.user):
        return _forbidden()

    if request.method in ('PUT', 'PATCH'):
        old_price = service.base_price_cents
        serializer = ServiceSerializer(service, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            service = serializer.save()
            if service.base_price_cents != old_price:
                log_event('service', service.id, 'price_changed', {
                    'old_price_cents': old_price,
                    'new_price_cents': service.base_price_cents,
                }, request=request)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE: services used on orders are only deactivated
    if service.garment_services.exists():
        service.is_active = False
        service.save(update_fields=['is_active', 'updated_at'])
        log_event('service', service.id, 'deactivated', {'code': service.code}, request=request)
        return Response({'message': 'Service is used by orders and was deactivated', 'deactivated': True})
    log_event('service', service.id, 'deleted', {'code': service.code}, request=request)
    service.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOwner])
def service_bulk_delete(request):
    """Delete several services; those referenced by orders are deactivated"""
    service_ids = request.data.get('service_ids') or []
    if not isinstance(service_ids, list) or not service_ids:
        return Response({'error': 'service_ids must be a non-empty list'}, status=status.HTTP_400_BAD_REQUEST)

    services = Service.objects.filter(id__in=service_ids)
    in_use = services.filter(garment_services__isnull=False).distinct()
    in_use_ids = list(in_use.values_list('id', flat=True))
    deactivated = Service.objects.filter(id__in=in_use_ids).update(is_active=False)
    deleted, _ = services.exclude(id__in=in_use_ids).delete()
    # Bulk queries bypass model signals
    invalidate_services_cache()

    log_event('service', ','.join(str(i) for i in service_ids), 'bulk_deleted', {
        'deleted': deleted, 'deactivated': deactivated
    }, request=request)
    return Response({'deleted_count': deleted, 'deactivated_count': deactivated})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOwner])
def service_move_category(request):
    """Move every service of one category into another"""
    serializer = MoveCategorySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    from_category = serializer.validated_data['from_category']
    to_category = serializer.validated_data['to_category']
    services = Service.objects.filter(category=from_category)
    moved_ids = list(services.values_list('id', flat=True))
    if not moved_ids:
        return Response({
            'success': True,
            'message': f"No services found in category '{from_category}'",
            'moved_count': 0,
            'moved_services': [],
        })

    Service.objects.filter(id__in=moved_ids).update(category=to_category)
    invalidate_services_cache()

    moved = Service.objects.filter(id__in=moved_ids)
    log_event('category', to_category, 'services_moved', {
        'from_category': from_category, 'service_ids': moved_ids
    }, request=request)
    return Response({
        'success': True,
        'message': f"Successfully moved {len(moved_ids)} service(s) from '{from_category}' to '{to_category}'",
        'moved_count': len(moved_ids),
        'moved_services': ServiceSerializer(moved, many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsOwner])
def service_import(request):
    """
    Import a price list

    Accepts a multipart 'file' (CSV with prices in dollars, or JSON), a
    'csv' text field, or a JSON body {"services": [...], "replace_existing": bool}.
    """
    replace_existing = str(request.data.get('replace_existing', '')).lower() in ('1', 'true', 'yes')
    upload = request.FILES.get('file')
    try:
        if upload:
            content = upload.read().decode('utf-8-sig')
            if upload.name.lower().endswith('.json'):
                rows = json.loads(content)
                if isinstance(rows, dict):
                    rows = rows.get('services', [])
            else:
                rows = parse_price_csv(content)
        elif request.data.get('csv'):
            rows = parse_price_csv(request.data['csv'])
        else:
            rows = request.data.get('services')
    except (ValueError, PriceListError) as e:
        return Response({'error': f'Could not read price list: {e}'}, status=status.HTTP_400_BAD_REQUEST)

    if not isinstance(rows, list) or not rows:
        return Response({'error': 'No services to import'}, status=status.HTTP_400_BAD_REQUEST)

    result = import_services(rows, replace_existing=replace_existing)
    log_event('service', 'import', 'price_list_imported', {
        'imported': result['imported'], 'errors': len(result['errors'])
    }, request=request)
    return Response(result, status=status.HTTP_200_OK if result['success'] else status.HTTP_400_BAD_REQUEST)


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request):
    """List or create service categories"""
    if request.method == 'GET':
        queryset = Category.objects.all().order_by('display_order', 'name')
        if request.query_params.get('include_inactive', '').lower() != 'true':
            queryset = queryset.filter(is_active=True)
        return Response(CategorySerializer(queryset, many=True).data)

    if not is_owner_user(request.user):
        return _forbidden()
    serializer = CategorySerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def category_detail(request, pk):
    """Retrieve, update or delete a category"""
    category = get_object_or_404(Category, pk=pk)

    if request.method == 'GET':
        return Response(CategorySerializer(category).data)

    if not is_owner_user(request.user):
        return _forbidden()

    if request.method in ('PUT', 'PATCH'):
        old_key = category.key
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            category = serializer.save()
            if category.key != old_key:
                Service.objects.filter(category=old_key).update(category=category.key)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if Service.objects.filter(category=category.key).exists():
        return Response(
            {'error': 'Category still has services. Move them first.'},
            status=status.HTTP_400_BAD_REQUEST
        )
    category.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# Garment type views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def garment_type_list_create(request):
    """List or create garment types"""
    if request.method == 'GET':
        queryset = GarmentType.objects.filter(is_active=True).order_by('-is_common', 'name')
        category = request.query_params.get('category')
        if category:
            queryset = queryset.filter(category=category)
        return Response(GarmentTypeSerializer(queryset, many=True).data)

    serializer = GarmentTypeSerializer(data=request.data)
    if serializer.is_valid():
        # Types added from the intake screen are flagged as custom
        serializer.save(is_custom=not is_owner_user(request.user) or serializer.validated_data.get('is_custom', False))
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def garment_type_detail(request, pk):
    """Retrieve, update or delete a garment type"""
    garment_type = get_object_or_404(GarmentType, pk=pk)

    if request.method == 'GET':
        return Response(GarmentTypeSerializer(garment_type).data)

    if not is_owner_user(request.user):
        return _forbidden()

    if request.method in ('PUT', 'PATCH'):
        serializer = GarmentTypeSerializer(garment_type, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if garment_type.garments.exists():
        garment_type.is_active = False
        garment_type.save(update_fields=['is_active'])
        return Response({'message': 'Garment type is used by orders and was deactivated', 'deactivated': True})
    garment_type.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)
