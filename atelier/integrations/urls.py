from django.urls import path
from .views import order_ready_webhook, payment_webhook

urlpatterns = [
    path('webhooks/order-ready/', order_ready_webhook, name='webhook-order-ready'),
    path('webhooks/payment/', payment_webhook, name='webhook-payment'),
]
