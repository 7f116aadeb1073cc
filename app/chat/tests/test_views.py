"""
Integration tests for the chat API.

Endpoints (prefixed with /api/v1/chats/):
    /                           GET list, POST direct message
    /group/                     POST create, PUT edit
    /group/newMessage/          PUT
    /group/addUser/             PUT
    /group/removeUser/          PUT
    /group/removephoto/         PUT
    /group/leavegroup/{id}/     PUT
"""

import json

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework import status

from chat.constants import GROUP_CONFIG
from chat.models import Chat

CHATS_URL = "/api/v1/chats/"
GROUP_URL = "/api/v1/chats/group/"


@pytest.mark.django_db
class TestAuthentication:
    @pytest.mark.parametrize(
        "method,url",
        [
            ("get", CHATS_URL),
            ("post", CHATS_URL),
            ("post", GROUP_URL),
            ("put", f"{GROUP_URL}newMessage/"),
            ("put", f"{GROUP_URL}leavegroup/1/"),
        ],
    )
    def test_requires_token(self, api_client, method, url):
        response = getattr(api_client, method)(url, {}, format="json")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestChatList:
    def test_lists_resolved_chats(self, alice_client, group, direct_chat, alice, bob, carol):
        response = alice_client.get(CHATS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert {chat["id"] for chat in response.data} == {group.id, direct_chat.id}
        group_data = next(c for c in response.data if c["id"] == group.id)
        assert [m["id"] for m in group_data["members"]] == [bob.id, carol.id, alice.id]
        assert group_data["group_admin"]["id"] == alice.id
        assert set(group_data["members"][0]) == {"id", "name", "profile_picture"}

    def test_outsider_sees_nothing(self, dave_client, group):
        response = dave_client.get(CHATS_URL)

        assert response.data == []


@pytest.mark.django_db
class TestDirectMessage:
    def test_send(self, alice_client, alice, bob, object_storage):
        response = alice_client.post(
            CHATS_URL, {"userId": bob.id, "text": "hey"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["is_group_chat"] is False
        assert [m["id"] for m in response.data["members"]] == [alice.id, bob.id]
        assert response.data["messages"][0]["text"] == "hey"
        assert response.data["messages"][0]["sender"]["id"] == alice.id

    def test_send_image_multipart(self, alice_client, bob, object_storage, image_file):
        response = alice_client.post(
            CHATS_URL, {"userId": bob.id, "image": image_file}, format="multipart"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["messages"][0]["image"].startswith("https://cdn.test/")

    def test_non_image_upload_rejected(self, alice_client, bob, object_storage):
        notes = SimpleUploadedFile("notes.txt", b"hello", "text/plain")

        response = alice_client.post(
            CHATS_URL, {"userId": bob.id, "image": notes}, format="multipart"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "VALIDATION_ERROR"
        assert object_storage.uploads == []

    def test_service_failure_body(self, alice_client, alice, object_storage):
        response = alice_client.post(
            CHATS_URL, {"userId": alice.id, "text": "me"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data == {
            "error": "Message cannot be sent to yourself.",
            "error_code": "VALIDATION_ERROR",
        }

    def test_large_image_rejected(self, alice_client, bob, object_storage, large_image_file):
        response = alice_client.post(
            CHATS_URL, {"userId": bob.id, "image": large_image_file}, format="multipart"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "PAYLOAD_TOO_LARGE"

    def test_storage_outage_is_generic_500(self, alice_client, bob, object_storage, image_file):
        object_storage.fail_upload = True

        response = alice_client.post(
            CHATS_URL, {"userId": bob.id, "image": image_file}, format="multipart"
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data == {
            "error": "Server error. Please try again later.",
            "error_code": "OBJECT_STORAGE_ERROR",
        }


@pytest.mark.django_db
class TestCreateGroup:
    @pytest.mark.parametrize(
        "user_ids",
        [
            lambda b, c: f"{b},{c}",
            lambda b, c: json.dumps([b, c]),
            lambda b, c: [b, c],
        ],
        ids=["comma-string", "json-string", "list"],
    )
    def test_accepted_user_id_formats(
        self, alice_client, alice, bob, carol, object_storage, user_ids
    ):
        response = alice_client.post(
            GROUP_URL,
            {"userIds": user_ids(bob.id, carol.id), "groupName": "Team"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert [m["id"] for m in response.data["members"]] == [bob.id, carol.id, alice.id]
        assert response.data["group_admin"]["id"] == alice.id
        assert response.data["group_photo"] == GROUP_CONFIG.DEFAULT_PHOTO

    def test_multipart_with_photo(self, alice_client, bob, carol, object_storage, image_file):
        response = alice_client.post(
            GROUP_URL,
            {
                "userIds": f"{bob.id},{carol.id}",
                "groupName": "Team",
                "groupPhoto": image_file,
            },
            format="multipart",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["group_photo_public_id"] == object_storage.uploads[0]

    def test_malformed_user_ids(self, alice_client, object_storage):
        response = alice_client.post(
            GROUP_URL, {"userIds": "[1, 2", "groupName": "Team"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "VALIDATION_ERROR"

    def test_duplicate_group(self, alice_client, group, bob, carol, object_storage):
        response = alice_client.post(
            GROUP_URL,
            {"userIds": [carol.id, bob.id], "groupName": "Again"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "DUPLICATE_GROUP"


@pytest.mark.django_db
class TestGroupEndpoints:
    def test_group_message(self, bob_client, group, bob):
        response = bob_client.put(
            f"{GROUP_URL}newMessage/", {"groupId": group.id, "text": "hi"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["messages"][-1]["sender"]["id"] == bob.id

    def test_group_message_from_outsider(self, dave_client, group):
        response = dave_client.put(
            f"{GROUP_URL}newMessage/", {"groupId": group.id, "text": "hi"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "FORBIDDEN"

    def test_add_and_remove_member(self, alice_client, group, dave):
        added = alice_client.put(
            f"{GROUP_URL}addUser/", {"groupId": group.id, "userId": dave.id}, format="json"
        )
        removed = alice_client.put(
            f"{GROUP_URL}removeUser/",
            {"groupId": group.id, "userId": dave.id},
            format="json",
        )

        assert added.status_code == status.HTTP_200_OK
        assert dave.id in [m["id"] for m in added.data["members"]]
        assert removed.status_code == status.HTTP_200_OK
        assert dave.id not in [m["id"] for m in removed.data["members"]]

    def test_add_member_requires_admin(self, bob_client, group, dave):
        response = bob_client.put(
            f"{GROUP_URL}addUser/", {"groupId": group.id, "userId": dave.id}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data == {
            "error": "Only group admin can add participants.",
            "error_code": "FORBIDDEN",
        }

    def test_missing_group_id(self, alice_client, dave):
        response = alice_client.put(
            f"{GROUP_URL}addUser/", {"userId": dave.id}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "groupId" in response.data["errors"]

    def test_edit_group_name(self, alice_client, group, object_storage):
        response = alice_client.put(
            GROUP_URL, {"id": group.id, "name": "Renamed"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["group_name"] == "Renamed"

    def test_edit_group_photo(self, alice_client, group, object_storage, image_file):
        response = alice_client.put(
            GROUP_URL, {"id": group.id, "photo": image_file}, format="multipart"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["group_photo_public_id"] == object_storage.uploads[0]

    def test_remove_group_photo(self, alice_client, group, object_storage):
        group.group_photo = "https://cdn.test/group-photos/p1"
        group.group_photo_public_id = "group-photos/p1"
        group.save()

        response = alice_client.put(
            f"{GROUP_URL}removephoto/",
            {"id": group.id, "photoPublicId": "group-photos/p1"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["group_photo"] == GROUP_CONFIG.DEFAULT_PHOTO
        assert object_storage.deletes == ["group-photos/p1"]

    def test_leave_group(self, alice_client, group, alice, bob):
        response = alice_client.put(f"{GROUP_URL}leavegroup/{group.id}/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["group_admin"]["id"] == bob.id
        assert not Chat.objects.for_user(alice).filter(pk=group.pk).exists()

    def test_leave_missing_group(self, alice_client):
        response = alice_client.put(f"{GROUP_URL}leavegroup/999999/")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "NOT_FOUND"
