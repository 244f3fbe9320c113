"""
Initial migration for the notification inbox.
"""

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('reports', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Record identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='When the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='When the record was last written')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, help_text='Hidden from the default manager when set')),
                ('deleted_at', models.DateTimeField(blank=True, help_text='When the record was soft-deleted', null=True)),
                ('notification_type', models.CharField(
                    choices=[
                        ('report_in_review', 'Report In Review'),
                        ('report_escalated', 'Report Escalated'),
                        ('report_resolved', 'Report Resolved'),
                        ('report_rejected', 'Report Rejected'),
                        ('general', 'General'),
                    ],
                    db_index=True,
                    default='general',
                    max_length=30,
                )),
                ('title', models.CharField(help_text='Short notification title', max_length=200)),
                ('message', models.TextField(help_text='Notification message body')),
                ('payload', models.JSONField(blank=True, default=dict, help_text='Event data the notification was derived from')),
                ('delivered_at', models.DateTimeField(blank=True, db_index=True, help_text='When a live connection accepted the notification', null=True)),
                ('is_read', models.BooleanField(db_index=True, default=False, help_text='Whether the notification has been read')),
                ('read_at', models.DateTimeField(blank=True, help_text='When the notification was read', null=True)),
                ('recipient', models.ForeignKey(
                    help_text='User who receives this notification',
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='notifications',
                    to=settings.AUTH_USER_MODEL,
                )),
                ('report', models.ForeignKey(
                    blank=True,
                    help_text='Related report (if applicable)',
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='notifications',
                    to='reports.report',
                )),
            ],
            options={
                'verbose_name': 'Notification',
                'verbose_name_plural': 'Notifications',
                'db_table': 'notifications',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['recipient', 'delivered_at', 'created_at'], name='notif_recipient_pending_idx'),
                    models.Index(fields=['recipient', 'is_read', '-created_at'], name='notif_recipient_unread_idx'),
                    models.Index(fields=['recipient', '-created_at'], name='notif_recipient_created_idx'),
                ],
            },
        ),
    ]
