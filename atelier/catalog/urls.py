from django.urls import path
from .views import (
    service_list_create, service_detail, service_bulk_delete, service_move_category, service_import,
    category_list_create, category_detail,
    garment_type_list_create, garment_type_detail,
)

urlpatterns = [
    # Service endpoints
    path('services/', service_list_create, name='service-list-create'),
    path('services/bulk-delete/', service_bulk_delete, name='service-bulk-delete'),
    path('services/move-category/', service_move_category, name='service-move-category'),
    path('services/import/', service_import, name='service-import'),
    path('services/<int:pk>/', service_detail, name='service-detail'),

    # Category endpoints
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),

    # Garment type endpoints
    path('garment-types/', garment_type_list_create, name='garment-type-list-create'),
    path('garment-types/<int:pk>/', garment_type_detail, name='garment-type-detail'),
]
