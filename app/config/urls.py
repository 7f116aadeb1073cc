"""
URL configuration for the chat backend.

URL Structure:
    /                                   - ReDoc API documentation
    /admin/                             - Django admin interface
    /health/                            - Health check endpoint (load balancers, Docker)
    /schema/                            - OpenAPI schema (YAML)
    /api/v1/auth/                       - Credential exchange (POST), current user (GET)
    /api/v1/users/                      - Register (POST), search (GET), edit profile (PUT)
        removephoto/                    - Reset profile picture to placeholder (PUT)
        {id}/                           - Public profile lookup (GET)
    /api/v1/chats/                      - Send direct message (POST), list chats (GET)
        group/                          - Create group (POST), edit group (PUT)
        group/newMessage/               - Send group message (PUT)
        group/addUser/                  - Add member (PUT)
        group/removeUser/               - Remove member (PUT)
        group/removephoto/              - Reset group photo to placeholder (PUT)
        group/leavegroup/{id}/          - Leave group (PUT)
    ws/chat/                            - Live event channel (WebSocket, see chat.routing)

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
    # Identity (login, current user, registration, directory)
    path("", include("authentication.urls")),
    # Chats
    path("chats/", include("chat.urls")),
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

# Locally stored uploads (FileSystemObjectStorage) are served by Django in DEBUG
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Chat Admin"
admin.site.site_title = "Chat Admin Portal"
admin.site.index_title = "Users and conversations"
