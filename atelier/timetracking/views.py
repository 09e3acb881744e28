import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.contrib.auth import get_user_model
from django.db.models import Sum
from django.utils import timezone
from django.utils.dateparse import parse_date
from atelier.core.exceptions import ConflictError
from atelier.core.permissions import is_owner_user
from atelier.core.utils import log_event
from .models import TimeEntry
from .serializers import TimeEntrySerializer, TimeEntryStartSerializer, TimeEntryStopSerializer
from .utils import current_session_minutes, format_duration, minutes_between, period_start

logger = logging.getLogger(__name__)

User = get_user_model()

STATS_PERIODS = ('today', 'week', 'month', 'all')
HISTORY_DEFAULT_LIMIT = 100


def _target_user(request):
    """The requesting user, or another one when an owner asks for user_id"""
    user_id = request.query_params.get('user_id')
    if not user_id or str(user_id) == str(request.user.id):
        return request.user
    if not is_owner_user(request.user):
        return None
    try:
        return User.objects.get(pk=user_id)
    except (User.DoesNotExist, ValueError):
        raise NotFound('User not found')


def _minutes_since(entries, start):
    if start is not None:
        entries = entries.filter(start_time__gte=start)
    return entries.aggregate(total=Sum('duration_minutes'))['total'] or 0


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def time_entry_start(request):
    """Start a time tracking session on a task"""
    serializer = TimeEntryStartSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if TimeEntry.objects.filter(user=request.user, is_active=True).exists():
        raise ConflictError('User already has an active time tracking session')

    entry = TimeEntry.objects.create(
        task=serializer.validated_data['task_id'],
        user=request.user,
        start_time=timezone.now(),
        notes=serializer.validated_data.get('notes') or None,
        is_active=True,
    )
    log_event('time_entry', entry.id, 'started', {'task_id': entry.task_id}, request=request)
    return Response(TimeEntrySerializer(entry).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def time_entry_stop(request):
    """Stop the active session of the current user"""
    serializer = TimeEntryStopSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    entries = TimeEntry.objects.filter(user=request.user, is_active=True)
    if serializer.validated_data.get('entry_id'):
        entries = entries.filter(pk=serializer.validated_data['entry_id'])
    entry = entries.select_related('task__order').first()
    if entry is None:
        raise NotFound('Active time tracking session not found')

    now = timezone.now()
    entry.end_time = now
    entry.duration_minutes = minutes_between(entry.start_time, now)
    entry.is_active = False
    if serializer.validated_data.get('notes'):
        entry.notes = serializer.validated_data['notes']
    entry.save()

    log_event('time_entry', entry.id, 'stopped', {
        'task_id': entry.task_id, 'duration_minutes': entry.duration_minutes
    }, request=request)
    return Response(TimeEntrySerializer(entry).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def time_entry_active(request):
    entry = TimeEntry.objects.select_related('task__order', 'user').filter(user=request.user, is_active=True).first()
    if entry is None:
        return Response({'active': None})
    minutes = current_session_minutes(entry.start_time)
    return Response({
        'active': TimeEntrySerializer(entry).data,
        'current_minutes': minutes,
        'current_display': format_duration(minutes),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def time_entry_stats(request):
    """
    Completed session statistics for a user

    Query params: period (today, week, month, all; default all) and user_id
    (owners only).
    """
    period = request.query_params.get('period', 'all')
    if period not in STATS_PERIODS:
        return Response({'error': f"period must be one of: {', '.join(STATS_PERIODS)}"}, status=status.HTTP_400_BAD_REQUEST)

    user = _target_user(request)
    if user is None:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    now = timezone.now()
    completed = TimeEntry.objects.filter(user=user, is_active=False)
    start = period_start(period, now)
    if start is not None:
        completed = completed.filter(start_time__gte=start)

    total_minutes = completed.aggregate(total=Sum('duration_minutes'))['total'] or 0
    total_sessions = completed.count()
    average = int(total_minutes / total_sessions + 0.5) if total_sessions else 0

    return Response({
        'user_id': user.id,
        'period': period,
        'total_time_minutes': total_minutes,
        'total_sessions': total_sessions,
        'average_session_minutes': average,
        'today_time_minutes': _minutes_since(completed, period_start('today', now)),
        'week_time_minutes': _minutes_since(completed, period_start('week', now)),
        'month_time_minutes': _minutes_since(completed, period_start('month', now)),
        'total_time_display': format_duration(total_minutes),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def time_entry_history(request):
    """Sessions of a user, newest first, filtered by date range or task"""
    user = _target_user(request)
    if user is None:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    entries = TimeEntry.objects.select_related('task__order', 'user').filter(user=user)

    date_from = request.query_params.get('date_from')
    if date_from and parse_date(date_from):
        entries = entries.filter(start_time__date__gte=parse_date(date_from))
    date_to = request.query_params.get('date_to')
    if date_to and parse_date(date_to):
        entries = entries.filter(start_time__date__lte=parse_date(date_to))
    task_id = request.query_params.get('task_id')
    if task_id:
        entries = entries.filter(task_id=task_id)

    try:
        limit = int(request.query_params.get('limit', HISTORY_DEFAULT_LIMIT))
    except (TypeError, ValueError):
        limit = HISTORY_DEFAULT_LIMIT
    return Response(TimeEntrySerializer(entries[:max(limit, 1)], many=True).data)
