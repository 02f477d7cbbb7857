"""
URL mappings for the BuchaTech API.

Paths mirror the ones the front end builds from ``VITE_API_URL``
(``/patients``, ``/rendez-vous``, ``/stats/dashboard`` ...) under the
``api/`` prefix.  Trailing slashes are deliberately omitted.
"""
from django.urls import path, include

from .auth_views import login_view, me_view, jwt_refresh_view, jwt_logout_view
from .views import health
from .views.consultations import consultations_collection, consultation_detail
from .views.medecins import medecins_collection, medecin_detail
from .views.notifications import (
    feed_view,
    center_view,
    center_read_view,
    center_read_all_view,
    center_delete_view,
    center_activate_view,
)
from .views.patients import patients_collection, patient_detail
from .views.rendezvous import rendez_vous_collection, rendez_vous_detail
from .views.stats import dashboard_view, weekly_view

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),

    # Auth
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/me', me_view),
    path('api/auth/refresh', jwt_refresh_view),
    path('api/auth/logout', jwt_logout_view),

    # Entities
    path('api/patients', patients_collection),
    path('api/patients/<int:pk>', patient_detail),
    path('api/medecins', medecins_collection),
    path('api/medecins/<int:pk>', medecin_detail),
    path('api/rendez-vous', rendez_vous_collection),
    path('api/rendez-vous/<int:pk>', rendez_vous_detail),
    path('api/consultations', consultations_collection),
    path('api/consultations/<int:pk>', consultation_detail),

    # Dashboard
    path('api/stats/dashboard', dashboard_view),
    path('api/stats/weekly', weekly_view),

    # Notifications
    path('api/notifications/feed', feed_view),
    path('api/notifications/center', center_view),
    path('api/notifications/center/read', center_read_view),
    path('api/notifications/center/read-all', center_read_all_view),
    path('api/notifications/center/delete', center_delete_view),
    path('api/notifications/center/activate', center_activate_view),
]
