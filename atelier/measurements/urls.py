from django.urls import path
from .views import measurement_list_create, measurement_detail, measurement_templates

urlpatterns = [
    path('measurements/', measurement_list_create, name='measurement-list-create'),
    path('measurements/templates/', measurement_templates, name='measurement-templates'),
    path('measurements/<int:pk>/', measurement_detail, name='measurement-detail'),
]
