from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q, Count
from django.shortcuts import get_object_or_404
from atelier.core.permissions import is_owner_user
from atelier.core.utils import log_event
from .models import Client
from .serializers import ClientSerializer


def search_clients(queryset, term):
    """Match a free-text term against name, phone and email"""
    for part in term.split():
        digits = ''.join(ch for ch in part if ch.isdigit())
        condition = (
            Q(first_name__icontains=part) |
            Q(last_name__icontains=part) |
            Q(email__icontains=part) |
            Q(phone__icontains=part)
        )
        if digits and digits != part:
            condition |= Q(phone__icontains=digits)
        queryset = queryset.filter(condition)
    return queryset


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def client_list_create(request):
    """List clients (optionally searched) or create a client"""
    if request.method == 'GET':
        search = (request.query_params.get('q') or request.query_params.get('search') or '').strip()
        queryset = Client.objects.annotate(order_count=Count('orders')).order_by('last_name', 'first_name')
        if search:
            queryset = search_clients(queryset, search)
        language = request.query_params.get('language')
        if language:
            queryset = queryset.filter(language=language)
        serializer = ClientSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = ClientSerializer(data=request.data)
        if serializer.is_valid():
            client = serializer.save()
            log_event('client', client.id, 'created', {'name': client.full_name}, request=request)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def client_detail(request, pk):
    """Retrieve, update or delete a client"""
    client = get_object_or_404(Client, pk=pk)

    if request.method == 'GET':
        serializer = ClientSerializer(client)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ClientSerializer(client, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            log_event('client', client.id, 'updated', {'fields': sorted(request.data.keys())}, request=request)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not is_owner_user(request.user):
            return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
        if client.orders.exists():
            return Response(
                {'error': 'Cannot delete a client that has orders'},
                status=status.HTTP_400_BAD_REQUEST
            )
        log_event('client', client.id, 'deleted', {'name': client.full_name}, request=request)
        client.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def client_orders(request, pk):
    """Order history of a client, newest first"""
    from atelier.orders.serializers import OrderListSerializer

    client = get_object_or_404(Client, pk=pk)
    orders = client.orders.select_related('client').prefetch_related('garments', 'tasks').order_by('-created_at')
    serializer = OrderListSerializer(orders, many=True)
    return Response(serializer.data)
