from django.urls import path
from .views import (
    intake, order_list, order_board, order_detail, order_stage, order_search, order_archive,
    order_history, worklist_export, order_status_lookup, order_payments,
    order_timer, order_timer_start, order_timer_pause,
    task_detail, task_start, task_stop, task_stage, task_stage_preview,
)

urlpatterns = [
    # Intake
    path('intake/', intake, name='intake'),

    # Order endpoints
    path('orders/', order_list, name='order-list'),
    path('orders/board/', order_board, name='order-board'),
    path('orders/search/', order_search, name='order-search'),
    path('orders/archive/', order_archive, name='order-archive'),
    path('orders/history/', order_history, name='order-history'),
    path('orders/worklist-export/', worklist_export, name='worklist-export'),
    path('orders/<int:pk>/status/', order_status_lookup, name='order-status-lookup'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/stage/', order_stage, name='order-stage'),
    path('orders/<int:pk>/payments/', order_payments, name='order-payments'),
    path('orders/<int:pk>/timer/', order_timer, name='order-timer'),
    path('orders/<int:pk>/timer/start/', order_timer_start, name='order-timer-start'),
    path('orders/<int:pk>/timer/pause/', order_timer_pause, name='order-timer-pause'),

    # Task endpoints
    path('tasks/<int:pk>/', task_detail, name='task-detail'),
    path('tasks/<int:pk>/start/', task_start, name='task-start'),
    path('tasks/<int:pk>/stop/', task_stop, name='task-stop'),
    path('tasks/<int:pk>/stage/', task_stage, name='task-stage'),
    path('tasks/<int:pk>/stage/preview/', task_stage_preview, name='task-stage-preview'),
]
