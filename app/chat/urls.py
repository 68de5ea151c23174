"""
URL configuration for chat API.

URL Structure:
    Channels:
        /channels/                          GET, POST
        /channels/{id}/                     GET
        /channels/{id}/messages/            GET, POST
        /channels/{id}/name/                PATCH
        /channels/{id}/promote/             POST
        /channels/{id}/members/             POST, DELETE
        /channels/{id}/photo/               POST

    Messages:
        /messages/conversation/{user_id}/   GET
        /messages/direct/                   POST
        /messages/upload/                   POST
        /messages/{id}/                     PATCH, DELETE
        /messages/{id}/pin/                 POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import ChannelViewSet, MessageViewSet

router = DefaultRouter()
router.register(r"channels", ChannelViewSet, basename="channel")
router.register(r"messages", MessageViewSet, basename="message")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
]
