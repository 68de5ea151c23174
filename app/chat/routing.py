"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - One connection per client; receives events for the user and
               for every channel the user participates in

Authentication:
    JWT access token as query parameter (?token=<jwt>) or subprotocol
    ("jwt", "<jwt>"), resolved by chat.middleware.JWTAuthMiddleware.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/chat/", consumers.ChatConsumer.as_asgi()),
]
