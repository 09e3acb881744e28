import csv
import logging
import math
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.core.paginator import Paginator
from django.db import transaction
from django.db.models import Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from atelier.core.exceptions import ConflictError
from atelier.core.permissions import is_owner_user
from atelier.core.utils import log_event
from .filters import OrderFilter
from .intake import create_order_from_intake, intake_response
from .models import Order, Task, Payment
from .serializers import (
    IntakeSerializer, OrderListSerializer, OrderDetailSerializer, OrderStageSerializer,
    TaskSerializer, TaskStageSerializer, TaskStopSerializer, PaymentSerializer, ArchiveSerializer,
)
from .stage_transitions import OrderStatus, Stage, TaskAggregationPolicy, TaskNotFoundError, get_valid_next_stages
from .workflow import apply_order_stage_change, apply_task_stage_change, order_snapshot, sync_order_status

logger = logging.getLogger(__name__)

BOARD_COLUMNS = [OrderStatus.PENDING, OrderStatus.WORKING, OrderStatus.DONE, OrderStatus.READY, OrderStatus.DELIVERED]


def _order_queryset():
    return Order.objects.select_related('client').prefetch_related('garments', 'tasks__assignee')


def _paginated(request, queryset, serializer_class):
    try:
        page = int(request.query_params.get('page', 1))
        limit = int(request.query_params.get('limit', 50))
    except (TypeError, ValueError):
        page, limit = 1, 50

    paginator = Paginator(queryset, max(limit, 1))
    page_obj = paginator.get_page(page)

    serializer = serializer_class(page_obj, many=True)
    return Response({
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })


def _filtered_orders(request):
    queryset = _order_queryset().order_by('due_date', 'order_number')
    filterset = OrderFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return None, filterset.errors
    queryset = filterset.qs
    include_archived = request.query_params.get('include_archived', '').lower() == 'true'
    if not include_archived and OrderStatus.ARCHIVED not in request.query_params.getlist('status'):
        queryset = queryset.exclude(status=OrderStatus.ARCHIVED)
    return queryset, None


# Intake

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def intake(request):
    """Create client, order, garments, services and tasks from the intake form"""
    serializer = IntakeSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    order, calculation = create_order_from_intake(serializer.validated_data, request=request)
    return Response(intake_response(order, calculation), status=status.HTTP_201_CREATED)


# Orders

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_list(request):
    """List orders with board filters (archived excluded unless asked for)"""
    queryset, errors = _filtered_orders(request)
    if errors:
        return Response(errors, status=status.HTTP_400_BAD_REQUEST)
    return _paginated(request, queryset, OrderListSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_board(request):
    """Active orders grouped into board columns by order status"""
    queryset, errors = _filtered_orders(request)
    if errors:
        return Response(errors, status=status.HTTP_400_BAD_REQUEST)

    columns = {column.value: [] for column in BOARD_COLUMNS}
    for order in queryset:
        columns.setdefault(order.status, []).append(order)
    return Response({
        'columns': {
            key: OrderListSerializer(orders, many=True).data
            for key, orders in columns.items()
        },
        'counts': {key: len(orders) for key, orders in columns.items()},
    })


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    """Retrieve, update (notes, rack, due date, priority) or delete an order"""
    order = get_object_or_404(
        Order.objects.select_related('client').prefetch_related(
            'garments__services__service', 'tasks__assignee', 'tasks__garment', 'payments__received_by'
        ),
        pk=pk
    )

    if request.method == 'GET':
        return Response(OrderDetailSerializer(order).data)
    elif request.method == 'PATCH':
        serializer = OrderDetailSerializer(order, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            log_event('order', order.id, 'updated', {'fields': sorted(serializer.validated_data.keys())}, request=request)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not is_owner_user(request.user):
            return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
        if order.payments.exists():
            return Response({'error': 'Orders with payments cannot be deleted. Archive it instead.'}, status=status.HTTP_400_BAD_REQUEST)
        log_event('order', order.id, 'deleted', {'order_number': order.order_number}, request=request)
        order.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_stage(request, pk):
    """Move an order to another board column"""
    order = get_object_or_404(Order.objects.select_related('client'), pk=pk)
    serializer = OrderStageSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    result = apply_order_stage_change(
        order,
        serializer.validated_data['stage'],
        request=request,
        notes=serializer.validated_data.get('notes'),
    )
    return Response(result)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_search(request):
    """Quick lookup by order number, client name or phone"""
    query = request.query_params.get('q', '').strip()
    if not query:
        return Response([])

    condition = (
        Q(client__first_name__icontains=query) |
        Q(client__last_name__icontains=query) |
        Q(client__phone__icontains=query) |
        Q(client__email__icontains=query)
    )
    number = query.upper().replace('ORD-', '').lstrip('#')
    if number.isdigit():
        condition |= Q(order_number=int(number))

    orders = _order_queryset().filter(condition).distinct().order_by('-created_at')[:20]
    return Response(OrderListSerializer(orders, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_archive(request):
    """Archive specific orders, or every delivered order"""
    serializer = ArchiveSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if serializer.validated_data.get('archive_all_delivered'):
        queryset = Order.objects.filter(status=OrderStatus.DELIVERED)
    else:
        queryset = Order.objects.filter(id__in=serializer.validated_data['order_ids']).exclude(status=OrderStatus.ARCHIVED)

    order_ids = list(queryset.values_list('id', flat=True))
    with transaction.atomic():
        archived = Order.objects.filter(id__in=order_ids).update(status=OrderStatus.ARCHIVED, updated_at=timezone.now())
    for order_id in order_ids:
        log_event('order', order_id, 'archived', request=request)

    return Response({
        'success': True,
        'archived_count': archived,
        'order_ids': order_ids,
        'message': f"Archived {archived} order(s)",
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_history(request):
    """Delivered and archived orders, newest first"""
    queryset = _order_queryset().filter(
        status__in=[OrderStatus.DELIVERED, OrderStatus.ARCHIVED]
    ).order_by('-updated_at')
    status_filter = request.query_params.get('status')
    if status_filter in (OrderStatus.DELIVERED, OrderStatus.ARCHIVED):
        queryset = queryset.filter(status=status_filter)
    search = request.query_params.get('search', '').strip()
    if search:
        queryset = OrderFilter({'search': search}, queryset=queryset).qs
    return _paginated(request, queryset, OrderListSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def worklist_export(request):
    """CSV of the orders currently in work, one line per service"""
    category = request.query_params.get('category', 'all')
    orders = Order.objects.filter(status=OrderStatus.WORKING).select_related('client').prefetch_related(
        'garments__services__service'
    ).order_by('created_at')

    response = HttpResponse(content_type='text/csv')
    filename = f"worklist-{timezone.localdate().isoformat()}.csv"
    response['Content-Disposition'] = f'attachment; filename="{filename}"'

    writer = csv.writer(response)
    writer.writerow(['Order #', 'Client', 'Phone', 'Due Date', 'Garment', 'Color', 'Service', 'Category', 'Qty', 'Notes'])
    row_count = 0
    for order in orders:
        for garment in order.garments.all():
            for line in garment.services.all():
                if category != 'all' and line.service.category != category:
                    continue
                writer.writerow([
                    order.order_number,
                    order.client.full_name,
                    order.client.phone or '',
                    order.due_date.isoformat() if order.due_date else '',
                    garment.type,
                    garment.color or '',
                    line.service.name,
                    line.service.category or '',
                    line.quantity,
                    line.notes or garment.notes or '',
                ])
                row_count += 1
    logger.info(f"Worklist export ({category}): {row_count} rows")
    return response


def _phone_digits(value):
    """Digits of a phone number without the North American trunk prefix"""
    digits = ''.join(ch for ch in (value or '') if ch.isdigit())
    if len(digits) == 11 and digits.startswith('1'):
        digits = digits[1:]
    return digits


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def order_status_lookup(request, pk):
    """Public order status check; the caller must give the client's full phone number"""
    phone = _phone_digits(request.query_params.get('phone'))
    if not phone:
        return Response({'error': 'phone parameter is required'}, status=status.HTTP_400_BAD_REQUEST)

    order = Order.objects.select_related('client').filter(pk=pk).first()
    client_phone = _phone_digits(order.client.phone) if order else ''
    if not order or not client_phone or client_phone != phone:
        raise NotFound('Order not found')

    return Response({
        'order_number': order.order_number,
        'status': order.status,
        'due_date': order.due_date,
        'rush': order.rush,
        'is_ready': order.status == OrderStatus.READY,
        'balance_due_cents': order.balance_due_cents,
    })


# Payments

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_payments(request, pk):
    """List payments of an order or record a counter payment"""
    order = get_object_or_404(Order, pk=pk)

    if request.method == 'GET':
        return Response(PaymentSerializer(order.payments.select_related('received_by'), many=True).data)

    serializer = PaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    amount = serializer.validated_data['amount_cents']
    if amount > order.balance_due_cents:
        return Response(
            {'error': f"Payment exceeds balance due ({order.balance_due_cents} cents)"},
            status=status.HTTP_400_BAD_REQUEST
        )

    with transaction.atomic():
        payment = serializer.save(order=order, source='counter', received_by=request.user)
        order.deposit_cents += amount
        order.refresh_balance()
        order.save(update_fields=['deposit_cents', 'balance_due_cents', 'updated_at'])

    log_event('order', order.id, 'payment_received', {
        'payment_id': payment.id, 'amount_cents': amount, 'method': payment.method
    }, request=request)
    data = PaymentSerializer(payment).data
    data['balance_due_cents'] = order.balance_due_cents
    return Response(data, status=status.HTTP_201_CREATED)


# Order timer

def _timer_payload(order):
    elapsed = order.total_work_seconds
    if order.is_timer_running and order.timer_started_at:
        elapsed += int((timezone.now() - order.timer_started_at).total_seconds())
    return {
        'order_id': order.id,
        'is_running': order.is_timer_running,
        'timer_started_at': order.timer_started_at,
        'timer_paused_at': order.timer_paused_at,
        'total_work_seconds': order.total_work_seconds,
        'elapsed_seconds': elapsed,
        'elapsed_minutes': elapsed // 60,
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_timer(request, pk):
    order = get_object_or_404(Order, pk=pk)
    return Response(_timer_payload(order))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_timer_start(request, pk):
    """Start (or resume) the order work timer"""
    order = get_object_or_404(Order, pk=pk)
    if order.is_timer_running:
        return Response({'error': 'Timer is already running'}, status=status.HTTP_400_BAD_REQUEST)

    order.is_timer_running = True
    order.timer_started_at = timezone.now()
    order.save(update_fields=['is_timer_running', 'timer_started_at', 'updated_at'])
    log_event('order', order.id, 'timer_started', request=request)
    return Response(_timer_payload(order))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_timer_pause(request, pk):
    """Pause the timer, adding the running segment to the total"""
    order = get_object_or_404(Order, pk=pk)
    if not order.is_timer_running or not order.timer_started_at:
        return Response({'error': 'Timer is not running'}, status=status.HTTP_400_BAD_REQUEST)

    now = timezone.now()
    segment = int((now - order.timer_started_at).total_seconds())
    order.total_work_seconds += max(segment, 0)
    order.is_timer_running = False
    order.timer_paused_at = now
    order.save(update_fields=['total_work_seconds', 'is_timer_running', 'timer_paused_at', 'updated_at'])
    log_event('order', order.id, 'timer_paused', {'segment_seconds': segment}, request=request)
    return Response(_timer_payload(order))


# Tasks

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def task_detail(request, pk):
    task = get_object_or_404(Task.objects.select_related('assignee', 'garment'), pk=pk)
    return Response(TaskSerializer(task).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_start(request, pk):
    """Assign the task to the current user and start working on it"""
    task = get_object_or_404(Task.objects.select_related('order'), pk=pk)

    if task.is_active:
        raise ConflictError('Task is already active')
    if Task.objects.filter(assignee=request.user, is_active=True).exclude(pk=task.pk).exists():
        raise ConflictError('You already have an active task. Stop it before starting another one.')

    with transaction.atomic():
        task.assignee = request.user
        task.is_active = True
        task.started_at = timezone.now()
        task.stopped_at = None
        task.stage = Stage.WORKING
        task.save(update_fields=['assignee', 'is_active', 'started_at', 'stopped_at', 'stage', 'updated_at'])
        order_status = sync_order_status(task.order, request=request)

    log_event('task', task.id, 'started', {'order_id': task.order_id}, request=request)
    data = TaskSerializer(task).data
    data['order_status'] = order_status
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_stop(request, pk):
    """Stop working on a task and mark it done"""
    task = get_object_or_404(Task.objects.select_related('order'), pk=pk)
    serializer = TaskStopSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if task.assignee_id != request.user.id:
        raise ConflictError('Task is assigned to another user')
    if not task.is_active:
        raise ConflictError('Task is not active')

    now = timezone.now()
    actual_minutes = serializer.validated_data.get('actual_minutes')
    if actual_minutes is None:
        elapsed = (now - task.started_at).total_seconds() / 60 if task.started_at else 0
        actual_minutes = int(math.floor(elapsed))

    with transaction.atomic():
        task.is_active = False
        task.stopped_at = now
        task.actual_minutes = actual_minutes
        task.stage = Stage.DONE
        task.save(update_fields=['is_active', 'stopped_at', 'actual_minutes', 'stage', 'updated_at'])
        order_status = sync_order_status(task.order, request=request)

    log_event('task', task.id, 'stopped', {'order_id': task.order_id, 'actual_minutes': actual_minutes}, request=request)
    data = TaskSerializer(task).data
    data['order_status'] = order_status
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_stage(request, pk):
    """Move a task along the stage graph and update the order status"""
    task = get_object_or_404(Task, pk=pk)
    serializer = TaskStageSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        transition = apply_task_stage_change(task, serializer.validated_data['stage'], request=request)
    except TaskNotFoundError as e:
        raise NotFound(str(e))

    payload = transition.as_dict()
    payload['task_id'] = task.id
    if not transition.is_valid:
        payload['error'] = f"Invalid stage transition from {transition.from_stage} to {transition.to_stage}"
        payload['valid_next_stages'] = get_valid_next_stages(transition.from_stage)
        return Response(payload, status=status.HTTP_409_CONFLICT)
    payload['valid_next_stages'] = get_valid_next_stages(transition.to_stage)
    return Response(payload)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_stage_preview(request, pk):
    """Evaluate a task stage change without applying it"""
    task = get_object_or_404(Task.objects.select_related('order'), pk=pk)
    serializer = TaskStageSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        transition = TaskAggregationPolicy.evaluate(task.id, serializer.validated_data['stage'], order_snapshot(task.order))
    except TaskNotFoundError as e:
        raise NotFound(str(e))
    payload = transition.as_dict()
    payload['task_id'] = task.id
    return Response(payload)
