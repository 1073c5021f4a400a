"""
URL configuration for the care coordination project.

The `urlpatterns` list routes URLs to views.  This module includes
both the Django admin and the API routes provided by the care app.
OpenAPI documentation is exposed at ``/swagger/`` and ``/redoc/``; the
raw schema is served at ``/swagger.json`` because ``?format=`` is not a
renderer switch in this project (see ``URL_FORMAT_OVERRIDE``).
"""
from django.contrib import admin
from django.urls import path, re_path, include

from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

# API metadata for Swagger/OpenAPI documentation
api_info = openapi.Info(
    title="Care Coordination API",
    default_version='v1',
    description="Hospital bed queue, bed allocation and patient medical history.",
)

schema_view = get_schema_view(
    api_info,
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    # Django admin site (useful for development)
    path('admin/', admin.site.urls),
    path('', include('care.routers')),
    # Swagger and ReDoc
    re_path(r'^swagger(?P<format>\.json|\.yaml)$', schema_view.without_ui(cache_timeout=0), name='schema-json'),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]
