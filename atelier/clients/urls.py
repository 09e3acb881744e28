from django.urls import path
from .views import client_list_create, client_detail, client_orders

urlpatterns = [
    path('clients/', client_list_create, name='client-list-create'),
    path('clients/<int:pk>/', client_detail, name='client-detail'),
    path('clients/<int:pk>/orders/', client_orders, name='client-orders'),
]
