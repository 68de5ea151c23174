import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Channel",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified"),
                ),
                ("name", models.CharField(help_text="Channel display name", max_length=100)),
                (
                    "photo",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Relative path of the channel photo under MEDIA_ROOT",
                        max_length=255,
                    ),
                ),
                (
                    "last_activity_at",
                    models.DateTimeField(
                        db_index=True,
                        default=django.utils.timezone.now,
                        help_text="Creation time or time of the most recent message",
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1, help_text="Incremented on every admin transfer (optimistic concurrency)"
                    ),
                ),
                (
                    "admin",
                    models.ForeignKey(
                        help_text="The channel's single admin",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="administered_channels",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_channel",
                "ordering": ["-last_activity_at", "created_at", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("photo", ""), _negated=True),
                        fields=("photo",),
                        name="unique_channel_photo",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ChannelMembership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "channel",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="memberships",
                        to="chat.channel",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="channel_memberships",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_channel_membership",
                "ordering": ["created_at", "id"],
                "constraints": [
                    models.UniqueConstraint(fields=("channel", "user"), name="unique_channel_membership")
                ],
            },
        ),
        migrations.AddField(
            model_name="channel",
            name="members",
            field=models.ManyToManyField(
                blank=True,
                related_name="channels",
                through="chat.ChannelMembership",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "is_deleted",
                    models.BooleanField(
                        db_index=True, default=False, help_text="Whether this record has been soft deleted"
                    ),
                ),
                (
                    "deleted_at",
                    models.DateTimeField(
                        blank=True, help_text="Timestamp when this record was soft deleted", null=True
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified"),
                ),
                (
                    "message_type",
                    models.CharField(
                        choices=[("text", "Text"), ("file", "File")],
                        default="text",
                        help_text="Type of message (text or file)",
                        max_length=10,
                    ),
                ),
                ("content", models.TextField(blank=True, default="", help_text="Message text")),
                (
                    "file_url",
                    models.CharField(
                        blank=True, default="", help_text="Relative path of the attachment", max_length=255
                    ),
                ),
                ("is_edited", models.BooleanField(default=False)),
                ("is_pinned", models.BooleanField(default=False)),
                (
                    "channel",
                    models.ForeignKey(
                        blank=True,
                        help_text="Channel this message belongs to",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="chat.channel",
                    ),
                ),
                (
                    "recipient",
                    models.ForeignKey(
                        blank=True,
                        help_text="Recipient of a direct message",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="received_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        help_text="User who sent this message",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sent_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["created_at", "id"],
                "base_manager_name": "all_objects",
                "indexes": [
                    models.Index(fields=["channel", "created_at", "id"], name="chat_msg_channel_idx"),
                    models.Index(fields=["sender", "recipient", "created_at"], name="chat_msg_direct_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("channel__isnull", True), ("recipient__isnull", False)),
                            models.Q(("channel__isnull", False), ("recipient__isnull", True)),
                            _connector="OR",
                        ),
                        name="message_recipient_xor_channel",
                    )
                ],
            },
        ),
    ]
