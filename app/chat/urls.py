"""
URL configuration for chat API.

URL Structure:
    /                           GET, POST
    /group/                     POST, PUT
    /group/newMessage/          PUT
    /group/addUser/             PUT
    /group/removeUser/          PUT
    /group/removephoto/         PUT
    /group/leavegroup/{id}/     PUT

All URLs are prefixed with /api/v1/chats/ in the main URL configuration.
"""

from django.urls import path

from chat.views import (
    AddMemberView,
    ChatListView,
    GroupMessageView,
    GroupView,
    LeaveGroupView,
    RemoveGroupPhotoView,
    RemoveMemberView,
)

app_name = "chat"

urlpatterns = [
    path("", ChatListView.as_view(), name="chats"),
    path("group/", GroupView.as_view(), name="group"),
    path("group/newMessage/", GroupMessageView.as_view(), name="group-message"),
    path("group/addUser/", AddMemberView.as_view(), name="group-add-user"),
    path("group/removeUser/", RemoveMemberView.as_view(), name="group-remove-user"),
    path(
        "group/removephoto/",
        RemoveGroupPhotoView.as_view(),
        name="group-remove-photo",
    ),
    path(
        "group/leavegroup/<int:pk>/",
        LeaveGroupView.as_view(),
        name="group-leave",
    ),
]
