"""
Initial migration for reports and their status history.
"""

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


STATUS_CHOICES = [
    ('submitted', 'Submitted'),
    ('in_review', 'In Review'),
    ('escalated', 'Escalated'),
    ('resolved', 'Resolved'),
    ('rejected', 'Rejected'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Report',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Record identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='When the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='When the record was last written')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, help_text='Hidden from the default manager when set')),
                ('deleted_at', models.DateTimeField(blank=True, help_text='When the record was soft-deleted', null=True)),
                ('title', models.CharField(help_text='Short summary of the report', max_length=200)),
                ('description', models.TextField(help_text='Full description')),
                ('category', models.CharField(choices=[('general', 'General'), ('public_safety', 'Public Safety'), ('infrastructure', 'Infrastructure'), ('environmental', 'Environmental'), ('service', 'Service Complaint'), ('harassment', 'Harassment'), ('other', 'Other')], db_index=True, default='general', max_length=30)),
                ('location', models.CharField(blank=True, help_text='Optional free-text location', max_length=255)),
                ('status', models.CharField(choices=STATUS_CHOICES, db_index=True, default='submitted', editable=False, help_text='Current lifecycle status', max_length=20)),
                ('assigned_at', models.DateTimeField(blank=True, null=True)),
                ('closed_at', models.DateTimeField(blank=True, help_text='When the report reached a terminal status', null=True)),
                ('version', models.PositiveIntegerField(default=0, editable=False, help_text='Incremented on every committed transition')),
                ('owner', models.ForeignKey(help_text='Principal who filed the report', on_delete=django.db.models.deletion.PROTECT, related_name='reports', to=settings.AUTH_USER_MODEL)),
                ('assigned_to', models.ForeignKey(blank=True, help_text='Admin or superadmin currently handling the report', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='assigned_reports', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Report',
                'verbose_name_plural': 'Reports',
                'db_table': 'reports',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['owner', '-created_at'], name='reports_owner_created_idx'),
                    models.Index(fields=['assigned_to', 'status'], name='reports_assignee_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReportStatusHistory',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Record identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='When the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='When the record was last written')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, help_text='Hidden from the default manager when set')),
                ('deleted_at', models.DateTimeField(blank=True, help_text='When the record was soft-deleted', null=True)),
                ('sequence', models.PositiveIntegerField(help_text="Position in the report's history, starting at 1")),
                ('from_status', models.CharField(choices=STATUS_CHOICES, max_length=20)),
                ('to_status', models.CharField(choices=STATUS_CHOICES, max_length=20)),
                ('changed_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('reason', models.TextField(blank=True, help_text='Optional note attached to the transition')),
                ('changed_by', models.ForeignKey(help_text='Principal who performed the transition', on_delete=django.db.models.deletion.PROTECT, related_name='report_status_changes', to=settings.AUTH_USER_MODEL)),
                ('report', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='history', to='reports.report')),
            ],
            options={
                'verbose_name': 'Report Status History',
                'verbose_name_plural': 'Report Status Histories',
                'db_table': 'report_status_history',
                'ordering': ['report', 'sequence'],
                'constraints': [
                    models.UniqueConstraint(fields=('report', 'sequence'), name='unique_report_history_sequence'),
                ],
            },
        ),
    ]
