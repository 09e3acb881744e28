from django.urls import path
from .views import time_entry_start, time_entry_stop, time_entry_active, time_entry_stats, time_entry_history

urlpatterns = [
    path('time-tracking/start/', time_entry_start, name='time-tracking-start'),
    path('time-tracking/stop/', time_entry_stop, name='time-tracking-stop'),
    path('time-tracking/active/', time_entry_active, name='time-tracking-active'),
    path('time-tracking/stats/', time_entry_stats, name='time-tracking-stats'),
    path('time-tracking/history/', time_entry_history, name='time-tracking-history'),
]
