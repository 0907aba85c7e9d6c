"""
URL configuration for the Driving School Scheduler.
"""
from django.contrib import admin
from django.urls import path, include
from django.conf import settings

urlpatterns = [
    # Admin interface
    path('admin/', admin.site.urls),

    # Session login for the browsable API
    path('api/auth/', include('rest_framework.urls')),

    # API endpoints
    path('api/', include('apps.api.urls')),
]

if settings.DEBUG and 'debug_toolbar' in settings.INSTALLED_APPS:
    import debug_toolbar
    urlpatterns = [
        path('__debug__/', include(debug_toolbar.urls)),
    ] + urlpatterns
