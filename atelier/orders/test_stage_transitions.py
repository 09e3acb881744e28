"""
Tests for the task stage graph, order status aggregation and board graph.
These are pure functions, so no database is needed.
"""
from itertools import product

from django.test import SimpleTestCase

from atelier.orders.stage_transitions import (
    KanbanDragPolicy, OrderSnapshot, OrderStatus, Stage, StageTransition, TaskAggregationPolicy,
    TaskNotFoundError, TaskSnapshot, calculate_stage_transition, can_order_move_to_status,
    get_minimum_stage_for_order_status, get_order_status_from_tasks, get_valid_next_stages,
    is_valid_stage_transition,
)

ALLOWED_MOVES = {
    ('pending', 'working'),
    ('working', 'done'),
    ('working', 'pending'),
    ('done', 'ready'),
    ('done', 'working'),
    ('ready', 'delivered'),
    ('ready', 'done'),
    ('delivered', 'ready'),
}


def tasks_with(*stages):
    return [TaskSnapshot(id=f'task-{i}', stage=Stage(stage)) for i, stage in enumerate(stages, start=1)]


def order_with(*stages, status=OrderStatus.PENDING):
    return OrderSnapshot(id='order-1', status=status, tasks=tuple(tasks_with(*stages)))


class StageTableTests(SimpleTestCase):
    """Test the literal task stage table"""

    def test_every_ordered_pair(self):
        """Every (from, to) pair is valid exactly when the table lists it"""
        stages = [stage.value for stage in Stage]
        for from_stage, to_stage in product(stages, stages):
            with self.subTest(from_stage=from_stage, to_stage=to_stage):
                self.assertEqual(
                    is_valid_stage_transition(from_stage, to_stage),
                    (from_stage, to_stage) in ALLOWED_MOVES
                )

    def test_examples(self):
        self.assertTrue(is_valid_stage_transition('pending', 'working'))
        self.assertFalse(is_valid_stage_transition('pending', 'done'))
        self.assertTrue(is_valid_stage_transition('delivered', 'ready'))
        self.assertFalse(is_valid_stage_transition('done', 'delivered'))

    def test_enum_members_and_strings_agree(self):
        self.assertTrue(is_valid_stage_transition(Stage.WORKING, Stage.DONE))
        self.assertTrue(is_valid_stage_transition('working', Stage.DONE))

    def test_unknown_stage_has_no_moves(self):
        self.assertFalse(is_valid_stage_transition('archived', 'pending'))
        self.assertFalse(is_valid_stage_transition('bogus', 'working'))
        self.assertEqual(get_valid_next_stages('bogus'), [])

    def test_valid_next_stages_order(self):
        """Next stages keep the table order"""
        self.assertEqual(get_valid_next_stages('working'), ['done', 'pending'])
        self.assertEqual(get_valid_next_stages('done'), ['ready', 'working'])
        self.assertEqual(get_valid_next_stages('ready'), ['delivered', 'done'])
        self.assertEqual(get_valid_next_stages('pending'), ['working'])
        self.assertEqual(get_valid_next_stages('delivered'), ['ready'])

    def test_next_stages_returns_a_copy(self):
        stages = get_valid_next_stages('working')
        stages.append('ready')
        self.assertEqual(get_valid_next_stages('working'), ['done', 'pending'])


class OrderStatusAggregationTests(SimpleTestCase):
    """Test deriving the order status from task stages"""

    def test_no_tasks_is_pending(self):
        self.assertEqual(get_order_status_from_tasks([]), 'pending')

    def test_all_delivered(self):
        self.assertEqual(get_order_status_from_tasks(tasks_with('delivered', 'delivered')), 'delivered')

    def test_ready_and_delivered(self):
        self.assertEqual(get_order_status_from_tasks(tasks_with('ready', 'delivered')), 'ready')

    def test_done_and_ready(self):
        self.assertEqual(get_order_status_from_tasks(tasks_with('done', 'ready')), 'done')

    def test_any_working(self):
        self.assertEqual(get_order_status_from_tasks(tasks_with('working', 'done')), 'working')
        self.assertEqual(get_order_status_from_tasks(tasks_with('pending', 'working', 'delivered')), 'working')

    def test_all_pending(self):
        self.assertEqual(get_order_status_from_tasks(tasks_with('pending', 'pending')), 'pending')

    def test_pending_mixed_with_done_falls_back_to_pending(self):
        self.assertEqual(get_order_status_from_tasks(tasks_with('pending', 'done')), 'pending')
        self.assertEqual(get_order_status_from_tasks(tasks_with('pending', 'delivered')), 'pending')

    def test_single_task_maps_to_its_stage(self):
        for stage in Stage:
            with self.subTest(stage=stage):
                self.assertEqual(get_order_status_from_tasks(tasks_with(stage)), stage.value)

    def test_accepts_plain_objects(self):
        class Row:
            def __init__(self, stage):
                self.stage = stage

        self.assertEqual(get_order_status_from_tasks([Row('ready'), Row('ready')]), 'ready')


class StageTransitionValidatorTests(SimpleTestCase):
    """Test evaluating a task move inside its order"""

    def test_valid_move_with_other_task_pending(self):
        """done plus pending matches no rung of the ladder and falls back to pending"""
        order = order_with('working', 'pending')
        result = calculate_stage_transition('task-1', 'done', order)
        self.assertEqual(result, StageTransition(
            from_stage=Stage.WORKING,
            to_stage=Stage.DONE,
            is_valid=True,
            order_status_update=OrderStatus.PENDING,
        ))

    def test_valid_move_reports_working_when_another_task_works(self):
        order = order_with('working', 'working')
        result = calculate_stage_transition('task-1', 'done', order)
        self.assertTrue(result.is_valid)
        self.assertEqual(result.order_status_update, 'working')

    def test_valid_move_completes_order(self):
        order = order_with('working', 'done')
        result = calculate_stage_transition('task-1', 'done', order)
        self.assertTrue(result.is_valid)
        self.assertEqual(result.order_status_update, 'done')

    def test_invalid_move_has_no_status_update(self):
        order = order_with('working', 'pending')
        result = calculate_stage_transition('task-1', 'ready', order)
        self.assertFalse(result.is_valid)
        self.assertEqual(result.from_stage, 'working')
        self.assertEqual(result.to_stage, 'ready')
        self.assertIsNone(result.order_status_update)

    def test_missing_task_raises(self):
        order = order_with('working', 'pending')
        with self.assertRaises(TaskNotFoundError) as ctx:
            calculate_stage_transition('missing-id', 'done', order)
        self.assertIn('missing-id', str(ctx.exception))
        self.assertIn('order-1', str(ctx.exception))
        self.assertIsInstance(ctx.exception, LookupError)

    def test_unknown_target_stage_raises(self):
        with self.assertRaises(ValueError):
            calculate_stage_transition('task-1', 'archived', order_with('working'))

    def test_same_input_same_output(self):
        order = order_with('done', 'ready')
        first = calculate_stage_transition('task-1', 'ready', order)
        second = calculate_stage_transition('task-1', 'ready', order)
        self.assertEqual(first, second)
        self.assertEqual(first.order_status_update, 'ready')

    def test_input_order_is_not_mutated(self):
        order = order_with('working', 'pending')
        calculate_stage_transition('task-1', 'done', order)
        self.assertEqual([t.stage for t in order.tasks], ['working', 'pending'])

    def test_as_dict(self):
        result = calculate_stage_transition('task-1', 'done', order_with('working'))
        self.assertEqual(result.as_dict(), {
            'from_stage': 'working',
            'to_stage': 'done',
            'is_valid': True,
            'order_status_update': 'done',
        })

    def test_policy_aliases(self):
        order = order_with('pending')
        self.assertEqual(
            TaskAggregationPolicy.evaluate('task-1', 'working', order),
            calculate_stage_transition('task-1', 'working', order)
        )
        self.assertTrue(TaskAggregationPolicy.is_valid_transition('pending', 'working'))
        self.assertEqual(TaskAggregationPolicy.next_stages('pending'), ['working'])


class OrderLevelGraphTests(SimpleTestCase):
    """Test order moves checked against the derived status"""

    def test_working_order_moves(self):
        order = order_with('working', 'pending')
        self.assertTrue(can_order_move_to_status(order, 'done'))
        self.assertTrue(can_order_move_to_status(order, 'pending'))
        self.assertTrue(can_order_move_to_status(order, 'archived'))
        self.assertFalse(can_order_move_to_status(order, 'ready'))
        self.assertFalse(can_order_move_to_status(order, 'delivered'))

    def test_uses_derived_status_not_stored_status(self):
        order = order_with('delivered', status=OrderStatus.PENDING)
        self.assertTrue(can_order_move_to_status(order, 'ready'))
        self.assertFalse(can_order_move_to_status(order, 'working'))

    def test_minimum_stage(self):
        self.assertEqual(get_minimum_stage_for_order_status('archived'), 'pending')
        self.assertEqual(get_minimum_stage_for_order_status('ready'), 'ready')
        self.assertEqual(get_minimum_stage_for_order_status(OrderStatus.WORKING), Stage.WORKING)


class KanbanDragPolicyTests(SimpleTestCase):
    """Test the permissive board graph"""

    def test_archived_only_back_to_pending(self):
        self.assertEqual(KanbanDragPolicy.allowed_targets('archived'), ['pending'])
        self.assertFalse(KanbanDragPolicy.can_transition('archived', 'ready'))

    def test_every_active_status_reaches_every_other(self):
        statuses = [status.value for status in OrderStatus]
        for from_status, to_status in product(statuses, statuses):
            if from_status == 'archived':
                continue
            with self.subTest(from_status=from_status, to_status=to_status):
                self.assertEqual(KanbanDragPolicy.can_transition(from_status, to_status), from_status != to_status)

    def test_board_allows_moves_the_task_graph_refuses(self):
        self.assertTrue(KanbanDragPolicy.can_transition('pending', 'delivered'))
        self.assertFalse(is_valid_stage_transition('pending', 'delivered'))

    def test_unknown_status(self):
        self.assertEqual(KanbanDragPolicy.allowed_targets('lost'), [])
        self.assertFalse(KanbanDragPolicy.can_transition('lost', 'pending'))
