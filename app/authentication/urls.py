"""
URL configuration for authentication app.

URL structure:
    /api/v1/auth/                     - Log in (POST), current user (GET)
    /api/v1/users/                    - Register (POST), search (GET),
                                        update profile (PUT)
    /api/v1/users/removephoto/        - Remove profile picture (PUT)
    /api/v1/users/<id>/               - Public profile (GET)
"""

from django.urls import path

from authentication.views import (
    AuthView,
    RemoveProfilePictureView,
    UserDetailView,
    UserListView,
)

app_name = "authentication"

urlpatterns = [
    path("auth/", AuthView.as_view(), name="auth"),
    path("users/", UserListView.as_view(), name="users"),
    path(
        "users/removephoto/",
        RemoveProfilePictureView.as_view(),
        name="remove-photo",
    ),
    path("users/<int:pk>/", UserDetailView.as_view(), name="user-detail"),
]
