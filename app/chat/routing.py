"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - The user's live event channel

Authentication:
    JWT token passed as query parameter (?token=<jwt_access_token>) or as
    subprotocol ("jwt", <token>). JWTAuthMiddleware validates it and
    attaches the user to the consumer's scope.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/chat/", consumers.ChatEventConsumer.as_asgi()),
]
