from django.urls import path
from .views import pricing_quote, order_pricing, order_pricing_recalculate, rush_timeline

urlpatterns = [
    path('pricing/quote/', pricing_quote, name='pricing-quote'),
    path('pricing/rush-timeline/', rush_timeline, name='pricing-rush-timeline'),
    path('orders/<int:pk>/pricing/', order_pricing, name='order-pricing'),
    path('orders/<int:pk>/pricing/recalculate/', order_pricing_recalculate, name='order-pricing-recalculate'),
]
