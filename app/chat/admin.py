"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Chat management with members inline
- Message moderation (read-only content)
"""

from django.contrib import admin

from chat.models import Chat, ChatMember, Message


class ChatMemberInline(admin.TabularInline):
    """Inline display of members in chat admin, in join order."""

    model = ChatMember
    extra = 0
    readonly_fields = ["joined_at"]
    raw_id_fields = ["user"]


@admin.register(Chat)
class ChatAdmin(admin.ModelAdmin):
    """Admin interface for Chat model."""

    list_display = [
        "id",
        "is_group_chat",
        "group_name",
        "group_admin",
        "member_count",
        "updated_at",
    ]
    list_filter = ["is_group_chat", "created_at"]
    search_fields = ["group_name", "memberships__user__email"]
    raw_id_fields = ["group_admin"]
    readonly_fields = ["created_at", "updated_at"]
    inlines = [ChatMemberInline]

    @admin.display(description="Members")
    def member_count(self, obj):
        return obj.memberships.count()


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = ["id", "chat", "sender", "short_text", "has_image", "created_at"]
    list_filter = ["created_at"]
    search_fields = ["text", "sender__email"]
    readonly_fields = ["chat", "sender", "text", "image", "image_public_id", "created_at"]

    @admin.display(description="Text")
    def short_text(self, obj):
        return obj.text[:50]

    @admin.display(boolean=True, description="Image")
    def has_image(self, obj):
        return bool(obj.image)
