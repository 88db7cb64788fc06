"""
URL configuration for the Esami Guida booking system.
"""
from django.contrib import admin
from django.conf import settings
from django.urls import path, include
from django.views.generic import RedirectView

urlpatterns = [
    path(settings.ADMIN_URL, admin.site.urls),
    path('dashboard/', include('apps.dashboard.urls', namespace='dashboard')),
    path('', RedirectView.as_view(pattern_name='dashboard:overview', permanent=False)),
]

if settings.DEBUG and 'debug_toolbar' in settings.INSTALLED_APPS:
    import debug_toolbar
    urlpatterns = [path('__debug__/', include(debug_toolbar.urls))] + urlpatterns
