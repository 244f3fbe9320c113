"""
Serializers for ReportDesk reports.

Handles:
- Report creation input
- Transition requests
- Report listing and detail (with history)

Status, assignee and version are read-only everywhere; they only change
through the lifecycle engine.
"""

from rest_framework import serializers

from .models import Report, ReportCategory, ReportStatus, ReportStatusHistory


class ReportCreateSerializer(serializers.Serializer):
    """Input for filing a report."""

    title = serializers.CharField(max_length=200)
    description = serializers.CharField()
    category = serializers.ChoiceField(
        choices=ReportCategory.CHOICES,
        default=ReportCategory.GENERAL,
    )
    location = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class ReportTransitionSerializer(serializers.Serializer):
    """Input for POST /reports/{id}/transition/."""

    target_status = serializers.ChoiceField(choices=ReportStatus.CHOICES)
    reason = serializers.CharField(required=False, allow_blank=True, default='')

    def to_internal_value(self, data):
        # Accept the camelCase field name used by the web client
        if hasattr(data, 'copy'):
            data = data.copy()
        else:
            data = dict(data)
        if 'target_status' not in data and 'targetStatus' in data:
            data['target_status'] = data['targetStatus']
        return super().to_internal_value(data)


class ReportStatusHistorySerializer(serializers.ModelSerializer):

    changed_by_name = serializers.SerializerMethodField()

    class Meta:
        model = ReportStatusHistory
        fields = [
            'sequence',
            'from_status',
            'to_status',
            'changed_by',
            'changed_by_name',
            'changed_at',
            'reason',
        ]
        read_only_fields = fields

    def get_changed_by_name(self, obj):
        return obj.changed_by.display_name or obj.changed_by.identifier


class ReportListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for report lists."""

    status_display = serializers.CharField(source='get_status_display', read_only=True)
    category_display = serializers.CharField(source='get_category_display', read_only=True)

    class Meta:
        model = Report
        fields = [
            'id',
            'title',
            'category',
            'category_display',
            'status',
            'status_display',
            'owner',
            'assigned_to',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ReportDetailSerializer(serializers.ModelSerializer):
    """Full report with its history, oldest entry first."""

    status_display = serializers.CharField(source='get_status_display', read_only=True)
    category_display = serializers.CharField(source='get_category_display', read_only=True)
    history = serializers.SerializerMethodField()

    class Meta:
        model = Report
        fields = [
            'id',
            'title',
            'description',
            'category',
            'category_display',
            'location',
            'status',
            'status_display',
            'owner',
            'assigned_to',
            'assigned_at',
            'closed_at',
            'version',
            'history',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_history(self, obj):
        entries = obj.history.select_related('changed_by').order_by('sequence')
        return ReportStatusHistorySerializer(entries, many=True).data
