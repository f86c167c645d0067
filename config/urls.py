"""
URL configuration for config project.

Every app mounts its public and admin routes under ``/api/``; admin routes
carry their own ``admin/`` prefix inside the app's urls module.
"""
from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenRefreshView

from config.views import health_check

urlpatterns = [
    # Health check (for Render)
    path('api/health/', health_check, name='health-check'),

    # Admin
    path('admin/', admin.site.urls),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='api-schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='api-schema'), name='api-docs'),

    # Authentication
    path('api/auth/', include('apps.accounts.urls')),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # API endpoints
    path('api/', include('apps.retreats.urls')),
    path('api/', include('apps.promotions.urls')),
    path('api/', include('apps.bookings.urls')),
    path('api/', include('apps.payments.urls')),
    path('api/', include('apps.blog.urls')),
    path('api/', include('apps.newsletter.urls')),
    path('api/', include('apps.waitlist.urls')),
    path('api/', include('apps.notifications.urls')),
    path('api/', include('apps.content.urls')),
    path('api/', include('apps.trash.urls')),
    path('api/', include('apps.translations.urls')),
    path('api/', include('apps.jobs.urls')),
]

# Media files (development only)
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)


# Custom error handlers
handler404 = 'config.views.error_404'
handler500 = 'config.views.error_500'
