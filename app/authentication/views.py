"""
Authentication views.

This module provides API views for:
- Credential exchange and the current identity (/api/v1/auth/)
- Registration, directory search and profile edits (/api/v1/users/)
- Public profile lookup (/api/v1/users/<id>/)

Related files:
    - serializers.py: Request/response serialization
    - services.py: UserService business logic
    - urls.py: URL routing

Note:
    Failures render as {"error": <message>, "error_code": <code>} with
    HTTP 400; object storage failures go through
    core.views.api_exception_handler as a generic 500.
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.serializers import (
    LoginSerializer,
    ProfileUpdateSerializer,
    PublicUserSerializer,
    RegisterSerializer,
    TokenSerializer,
    UserSearchResultSerializer,
    UserSearchSerializer,
    UserSerializer,
)
from authentication.services import UserService


def _failure_response(result):
    return Response(result.to_response(), status=status.HTTP_400_BAD_REQUEST)


class AuthView(APIView):
    """
    API view for the Identity Gate.

    POST: Exchange email + password for bearer tokens (public)
    GET: Current user's profile

    URL: /api/v1/auth/
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [AllowAny()]
        return [IsAuthenticated()]

    @extend_schema(
        summary="Get current user",
        tags=["Auth"],
        responses={200: UserSerializer},
    )
    def get(self, request):
        return Response(UserSerializer(request.user).data)

    @extend_schema(
        summary="Log in",
        description="Exchange email and password for a JWT access/refresh pair.",
        tags=["Auth"],
        request=LoginSerializer,
        responses={200: TokenSerializer},
    )
    def post(self, request):
        """
        Log in with email and password.

        Request body:
            {"email": "ada@example.com", "password": "secret1"}

        Returns:
            {"token": "<access>", "refresh": "<refresh>"}
        """
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = UserService.authenticate(**serializer.validated_data)
        if not result.success:
            return _failure_response(result)

        return Response(UserService.issue_tokens(result.data))


class UserListView(APIView):
    """
    API view for the user collection.

    POST: Register (public)
    GET: Search users by name or username (?search=)
    PUT: Edit the current user's profile

    URL: /api/v1/users/
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [AllowAny()]
        return [IsAuthenticated()]

    @extend_schema(
        summary="Register",
        tags=["Users"],
        request=RegisterSerializer,
        responses={201: TokenSerializer},
    )
    def post(self, request):
        """
        Create an account and log it in.

        Request body (JSON or multipart):
            {
                "name": "Ada",
                "email": "ada@example.com",
                "username": "ada",
                "password": "secret1",
                "profilePicture": <file>     // optional, max 1 MiB
            }
        """
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = UserService.register(
            name=data["name"],
            email=data["email"],
            username=data["username"],
            password=data["password"],
            profile_picture=data.get("profilePicture"),
        )
        if not result.success:
            return _failure_response(result)

        return Response(
            UserService.issue_tokens(result.data), status=status.HTTP_201_CREATED
        )

    @extend_schema(
        summary="Search users",
        tags=["Users"],
        parameters=[
            OpenApiParameter(
                "search", str, description="Substring of name or username"
            )
        ],
        responses={200: UserSearchResultSerializer(many=True)},
    )
    def get(self, request):
        params = UserSearchSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        users = UserService.search(request.user, params.validated_data["search"])
        return Response(UserSearchResultSerializer(users, many=True).data)

    @extend_schema(
        summary="Update profile",
        tags=["Users"],
        request=ProfileUpdateSerializer,
        responses={200: UserSerializer},
    )
    def put(self, request):
        """
        Edit the current user's profile.

        Request body (JSON or multipart), all optional:
            {
                "name": "Ada L.",
                "username": "ada_l",
                "status": "Busy",
                "profilePicture": <file>
            }
        """
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = UserService.update_profile(
            request.user,
            name=data.get("name"),
            username=data.get("username"),
            status=data.get("status"),
            profile_picture=data.get("profilePicture"),
        )
        if not result.success:
            return _failure_response(result)

        return Response(UserSerializer(result.data).data)


class RemoveProfilePictureView(APIView):
    """
    PUT: Reset the current user's profile picture to the placeholder.

    URL: /api/v1/users/removephoto/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Remove profile picture",
        tags=["Users"],
        request=None,
        responses={200: UserSerializer},
    )
    def put(self, request):
        result = UserService.remove_profile_picture(request.user)
        return Response(UserSerializer(result.data).data)


class UserDetailView(APIView):
    """
    GET: Public profile of one user.

    URL: /api/v1/users/<id>/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Get user",
        tags=["Users"],
        responses={200: PublicUserSerializer},
    )
    def get(self, request, pk):
        result = UserService.get_user(pk)
        if not result.success:
            return _failure_response(result)
        return Response(PublicUserSerializer(result.data).data)
