"""
URL configuration for the Django application.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (database + media store)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/chat/                  - Chat endpoints (see chat/urls.py)
        channels/                  - Channel list/create
        channels/{id}/             - Channel detail
        channels/{id}/messages/    - Channel message list/send
        channels/{id}/name/        - Rename channel
        channels/{id}/promote/     - Transfer admin role
        channels/{id}/members/     - Add/remove member by email
        channels/{id}/photo/       - Set channel photo
        messages/conversation/{user_id}/ - Direct conversation
        messages/direct/           - Send direct message
        messages/upload/           - Upload attachment
        messages/{id}/             - Edit/delete message
        messages/{id}/pin/         - Pin message
    /media/                        - Uploaded files (DEBUG only)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    path("chat/", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# Serve uploads from the development server; production serves MEDIA_ROOT directly
urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Chat Admin"
admin.site.site_title = "Chat Admin Portal"
admin.site.index_title = "Channels, messages and users"
