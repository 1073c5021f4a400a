"""
URL mappings for the care coordination API.

Trailing slashes are deliberately omitted (``APPEND_SLASH = False``) to
match the paths the front-end calls.
"""
from django.urls import path, include

from .auth_views import login_view, jwt_refresh_view, jwt_logout_view
from .views import beds, health, history


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout_view'),
    # Bed queue and allocation
    path('api/hospitals/<int:hospital_id>/queue', beds.hospital_queue, name='hospital_queue'),
    path('api/hospitals/<int:hospital_id>/queue/<int:booking_id>', beds.withdraw_from_queue,
         name='withdraw_from_queue'),
    path('api/hospitals/<int:hospital_id>/available-beds', beds.available_beds, name='available_beds'),
    path('api/hospitals/<int:hospital_id>/allocate-bed', beds.allocate_bed, name='allocate_bed'),
    path('api/hospitals/<int:hospital_id>/auto-allocate', beds.auto_allocate, name='auto_allocate'),
    path('api/hospitals/<int:hospital_id>/release-bed/<int:booking_id>', beds.release_bed, name='release_bed'),
    # Medical history
    path('api/patients/medical-history', history.medical_history, name='medical_history'),
    path('api/patients/medical-history/metrics', history.medical_history_metrics,
         name='medical_history_metrics'),
    path('api/patients/medical-history/export', history.export_medical_history,
         name='export_medical_history'),
]
