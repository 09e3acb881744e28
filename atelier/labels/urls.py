from django.urls import path
from .views import order_labels, label_scan

urlpatterns = [
    path('orders/<int:pk>/labels/', order_labels, name='order-labels'),
    path('labels/scan/', label_scan, name='label-scan'),
]
