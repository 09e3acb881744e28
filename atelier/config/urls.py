"""
URL configuration for the atelier project.

Every app mounts its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Atelier Admin Panel"
admin.site.site_title = "Atelier Admin Portal"
admin.site.index_title = "Tailoring shop administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('atelier.core.urls')),
    path('api/v1/', include('atelier.clients.urls')),
    path('api/v1/', include('atelier.catalog.urls')),
    path('api/v1/', include('atelier.orders.urls')),
    path('api/v1/', include('atelier.pricing.urls')),
    path('api/v1/', include('atelier.labels.urls')),
    path('api/v1/', include('atelier.timetracking.urls')),
    path('api/v1/', include('atelier.measurements.urls')),
    path('api/v1/', include('atelier.integrations.urls')),
]
