"""
URL configuration for the PDC Project.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # JSON API
    path('api/v1/', include('apps.pdc.urls')),
]
