"""
Database side of order and task status changes.

The rules themselves live in stage_transitions; these functions load rows,
apply a decision and persist it together with its side effects (work
timestamps, auto-advance, client notifications, event log).
"""
import logging
import math

from django.db import transaction
from django.utils import timezone

from atelier.core.exceptions import ConflictError
from atelier.core.utils import log_event
from atelier.integrations.notifications import (
    send_sms_notification, SMS_ACTION_ADD, SMS_ACTION_REMOVE
)
from .models import Order, Task
from .stage_transitions import (
    KanbanDragPolicy, OrderSnapshot, OrderStatus, Stage, TaskAggregationPolicy, TaskSnapshot,
)

logger = logging.getLogger(__name__)

INCOMPLETE_STAGES = (Stage.PENDING, Stage.WORKING)


def order_snapshot(order):
    """Plain-data view of an order and all its tasks"""
    tasks = [
        TaskSnapshot(id=task.id, stage=Stage(task.stage), order_id=task.order_id)
        for task in order.tasks.all()
    ]
    return OrderSnapshot(id=order.id, status=OrderStatus(order.status), tasks=tuple(tasks))


def notify_client_for_status(order, status):
    """SMS sequence hook: ready adds the client, delivered removes them"""
    if status == OrderStatus.READY:
        action = SMS_ACTION_ADD
    elif status == OrderStatus.DELIVERED:
        action = SMS_ACTION_REMOVE
    else:
        return None

    contact_id = order.client.ghl_contact_id
    if not contact_id:
        logger.info(f"Order {order.order_number}: client has no CRM contact, SMS {action} skipped")
        return None

    try:
        result = send_sms_notification(contact_id, action)
    except Exception as e:
        logger.error(f"Order {order.order_number}: SMS notification failed: {str(e)}")
        return {'success': False, 'error': str(e)}
    if not result.get('success') and not result.get('skipped'):
        logger.warning(f"Order {order.order_number}: SMS notification failed: {result.get('error')}")
    return result


def apply_order_stage_change(order, new_status, request=None, notes=None):
    """
    Move an order on the board.

    Raises ConflictError when the board graph does not allow the move.
    Returns a dict with the previous and final status and whether all tasks
    are complete.
    """
    current = OrderStatus(order.status)
    new_status = OrderStatus(new_status)

    if not KanbanDragPolicy.can_transition(current, new_status):
        allowed = ', '.join(KanbanDragPolicy.allowed_targets(current)) or 'none'
        raise ConflictError(
            f"Invalid status transition from {current} to {new_status}. Allowed transitions: {allowed}"
        )

    now = timezone.now()
    all_tasks_complete = False
    auto_advanced = False

    with transaction.atomic():
        order.status = new_status
        update_fields = ['status', 'updated_at']

        if new_status == OrderStatus.WORKING:
            order.work_started_at = now
            update_fields.append('work_started_at')
        elif current == OrderStatus.WORKING and new_status in (OrderStatus.DONE, OrderStatus.READY) and order.work_started_at:
            elapsed_minutes = (now - order.work_started_at).total_seconds() / 60
            order.work_completed_at = now
            order.actual_work_minutes = int(math.floor(elapsed_minutes + 0.5))
            update_fields += ['work_completed_at', 'actual_work_minutes']

        if new_status in (OrderStatus.DONE, OrderStatus.READY):
            all_tasks_complete = not Task.objects.filter(order=order, stage__in=INCOMPLETE_STAGES).exists()
            if all_tasks_complete and new_status == OrderStatus.DONE:
                order.status = OrderStatus.READY
                auto_advanced = True

        order.save(update_fields=update_fields)

    log_event('order', order.id, 'status_changed', {
        'from': current,
        'to': new_status,
        'final_status': order.status,
        'notes': notes,
        'all_tasks_complete': all_tasks_complete,
    }, request=request)
    if auto_advanced:
        log_event('order', order.id, 'auto_advanced_to_ready', {'order_number': order.order_number}, request=request)
        logger.info(f"Order {order.order_number} auto-advanced from done to ready")

    notification = notify_client_for_status(order, new_status)

    return {
        'order_id': order.id,
        'previous_status': current,
        'requested_status': new_status,
        'status': order.status,
        'all_tasks_complete': all_tasks_complete,
        'auto_advanced': auto_advanced,
        'notification_sent': bool(notification and notification.get('success')),
        'message': f"Order status updated from {current} to {new_status}",
    }


def sync_order_status(order, request=None):
    """
    Re-derive the order status from its tasks and persist it when it changed.
    Archived orders keep their status.
    """
    if order.status == OrderStatus.ARCHIVED:
        return order.status
    derived = TaskAggregationPolicy.order_status(order.tasks.all())
    if derived != order.status:
        previous = order.status
        order.status = derived
        order.save(update_fields=['status', 'updated_at'])
        log_event('order', order.id, 'status_derived', {'from': previous, 'to': derived}, request=request)
    return order.status


def apply_task_stage_change(task, new_stage, request=None):
    """
    Move one task along the stage graph.

    Returns the StageTransition. Invalid moves are returned unapplied; valid
    ones update the task and set the order status to the projected value.
    """
    order = Order.objects.select_related('client').get(pk=task.order_id)
    transition = TaskAggregationPolicy.evaluate(task.id, new_stage, order_snapshot(order))
    if not transition.is_valid:
        return transition

    with transaction.atomic():
        task.stage = transition.to_stage
        fields = ['stage', 'updated_at']
        if transition.to_stage != Stage.WORKING and task.is_active:
            task.is_active = False
            task.stopped_at = timezone.now()
            fields += ['is_active', 'stopped_at']
        task.save(update_fields=fields)

        if order.status != OrderStatus.ARCHIVED and order.status != transition.order_status_update:
            order.status = transition.order_status_update
            order.save(update_fields=['status', 'updated_at'])

    log_event('task', task.id, 'stage_changed', {
        'order_id': order.id,
        'from': transition.from_stage,
        'to': transition.to_stage,
        'order_status': order.status,
    }, request=request)
    return transition
