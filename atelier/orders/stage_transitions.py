"""
Stage transition rules for tasks and orders.

Two status models live here:

* TaskAggregationPolicy: tasks move along a strict stage graph and the order
  status is derived from the stages of all its tasks.
* KanbanDragPolicy: the order status is set directly from the board, where
  any status may be dragged to any other one (archived only back to pending).

Everything in this module is pure: functions take plain data (objects with
``id``/``stage``/``status``/``tasks`` attributes, model rows work too) and
return new values without touching the database.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from django.db import models


class Stage(models.TextChoices):
    """Lifecycle stage of a single task"""
    PENDING = 'pending', 'Pending'
    WORKING = 'working', 'Working'
    DONE = 'done', 'Done'
    READY = 'ready', 'Ready'
    DELIVERED = 'delivered', 'Delivered'


class OrderStatus(models.TextChoices):
    """Lifecycle status of an order: task stages plus archived"""
    PENDING = 'pending', 'Pending'
    WORKING = 'working', 'Working'
    DONE = 'done', 'Done'
    READY = 'ready', 'Ready'
    DELIVERED = 'delivered', 'Delivered'
    ARCHIVED = 'archived', 'Archived'


VALID_STAGE_TRANSITIONS = {
    Stage.PENDING: (Stage.WORKING,),
    Stage.WORKING: (Stage.DONE, Stage.PENDING),
    Stage.DONE: (Stage.READY, Stage.WORKING),
    Stage.READY: (Stage.DELIVERED, Stage.DONE),
    Stage.DELIVERED: (Stage.READY,),
}

# Order-level moves checked against the status derived from tasks
ORDER_STATUS_TRANSITIONS = {
    OrderStatus.PENDING: (OrderStatus.WORKING, OrderStatus.ARCHIVED),
    OrderStatus.WORKING: (OrderStatus.DONE, OrderStatus.PENDING, OrderStatus.ARCHIVED),
    OrderStatus.DONE: (OrderStatus.READY, OrderStatus.WORKING, OrderStatus.ARCHIVED),
    OrderStatus.READY: (OrderStatus.DELIVERED, OrderStatus.DONE, OrderStatus.ARCHIVED),
    OrderStatus.DELIVERED: (OrderStatus.READY, OrderStatus.ARCHIVED),
    OrderStatus.ARCHIVED: (OrderStatus.PENDING,),
}

# Board drag and drop: every active status reaches every other one
KANBAN_STATUS_TRANSITIONS = {
    current: tuple(
        target for target in OrderStatus
        if target != current
    )
    for current in OrderStatus
    if current != OrderStatus.ARCHIVED
}
KANBAN_STATUS_TRANSITIONS[OrderStatus.ARCHIVED] = (OrderStatus.PENDING,)


class TaskNotFoundError(LookupError):
    """Raised when a task id is not part of the order it was looked up in"""

    def __init__(self, task_id, order_id):
        self.task_id = task_id
        self.order_id = order_id
        super().__init__(f"Task {task_id} not found in order {order_id}")


@dataclass(frozen=True)
class TaskSnapshot:
    """Minimal task view used by the aggregation and validator"""
    id: str
    stage: Stage
    order_id: Optional[str] = None


@dataclass(frozen=True)
class OrderSnapshot:
    id: str
    status: OrderStatus
    tasks: Sequence[TaskSnapshot] = ()


@dataclass(frozen=True)
class StageTransition:
    """Outcome of a proposed task stage change"""
    from_stage: Stage
    to_stage: Stage
    is_valid: bool
    order_status_update: Optional[OrderStatus] = None

    def as_dict(self):
        return {
            'from_stage': self.from_stage,
            'to_stage': self.to_stage,
            'is_valid': self.is_valid,
            'order_status_update': self.order_status_update,
        }


def _coerce(choices, value):
    # Unknown values map to None, which has no entry in any table
    try:
        return choices(value)
    except ValueError:
        return None


def is_valid_stage_transition(from_stage, to_stage) -> bool:
    return to_stage in VALID_STAGE_TRANSITIONS.get(_coerce(Stage, from_stage), ())


def get_valid_next_stages(stage) -> List[Stage]:
    return list(VALID_STAGE_TRANSITIONS.get(_coerce(Stage, stage), ()))


def get_order_status_from_tasks(tasks: Iterable) -> OrderStatus:
    """
    Derive the order status from its task stages.

    Evaluated top-down, first match wins:
    no tasks -> pending, all delivered -> delivered, all ready or delivered
    -> ready, all done or later -> done, any working -> working, otherwise
    pending (this also covers mixes such as pending with done).
    """
    stages = [task.stage for task in tasks]
    if not stages:
        return OrderStatus.PENDING

    if all(stage == Stage.DELIVERED for stage in stages):
        return OrderStatus.DELIVERED

    if all(stage in (Stage.READY, Stage.DELIVERED) for stage in stages):
        return OrderStatus.READY

    if all(stage in (Stage.DONE, Stage.READY, Stage.DELIVERED) for stage in stages):
        return OrderStatus.DONE

    if any(stage == Stage.WORKING for stage in stages):
        return OrderStatus.WORKING

    return OrderStatus.PENDING


def calculate_stage_transition(task_id, new_stage, order) -> StageTransition:
    """
    Validate moving one task of ``order`` to ``new_stage``.

    Returns the projected order status for a valid move and None for an
    invalid one. Raises TaskNotFoundError if the task is not in the order.
    """
    tasks = list(order.tasks)
    task = next((t for t in tasks if t.id == task_id), None)
    if task is None:
        raise TaskNotFoundError(task_id, order.id)

    from_stage = Stage(task.stage)
    to_stage = Stage(new_stage)

    if not is_valid_stage_transition(from_stage, to_stage):
        return StageTransition(from_stage=from_stage, to_stage=to_stage, is_valid=False)

    updated_tasks = [
        TaskSnapshot(
            id=t.id,
            stage=to_stage if t.id == task_id else t.stage,
            order_id=getattr(t, 'order_id', None),
        )
        for t in tasks
    ]
    return StageTransition(
        from_stage=from_stage,
        to_stage=to_stage,
        is_valid=True,
        order_status_update=get_order_status_from_tasks(updated_tasks),
    )


def can_order_move_to_status(order, target_status) -> bool:
    """Check an order-level move against the status derived from its tasks"""
    current = get_order_status_from_tasks(order.tasks)
    return target_status in ORDER_STATUS_TRANSITIONS[current]


def get_minimum_stage_for_order_status(status) -> Stage:
    """Lowest task stage compatible with an order status"""
    if status == OrderStatus.ARCHIVED:
        return Stage.PENDING
    return Stage(status)


class TaskAggregationPolicy:
    """Strict task stage graph with the order status derived from tasks"""

    transitions = VALID_STAGE_TRANSITIONS

    is_valid_transition = staticmethod(is_valid_stage_transition)
    next_stages = staticmethod(get_valid_next_stages)
    order_status = staticmethod(get_order_status_from_tasks)
    evaluate = staticmethod(calculate_stage_transition)
    can_order_move_to = staticmethod(can_order_move_to_status)
    minimum_stage = staticmethod(get_minimum_stage_for_order_status)


class KanbanDragPolicy:
    """Permissive order status graph used by board drag and drop"""

    transitions = KANBAN_STATUS_TRANSITIONS

    @classmethod
    def allowed_targets(cls, status) -> List[OrderStatus]:
        return list(cls.transitions.get(_coerce(OrderStatus, status), ()))

    @classmethod
    def can_transition(cls, from_status, to_status) -> bool:
        return to_status in cls.transitions.get(_coerce(OrderStatus, from_status), ())
