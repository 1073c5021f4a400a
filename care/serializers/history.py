from django.conf import settings
from rest_framework import serializers

from care.constants import EXPORT_FORMATS, TIMELINE_TYPES
from care.services.timeline import parse_boundary


class HistoryFilterSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=TIMELINE_TYPES, required=False, allow_blank=True)
    startDate = serializers.CharField(required=False, allow_blank=True)
    endDate = serializers.CharField(required=False, allow_blank=True)

    def _boundary(self, value, end=False):
        try:
            return parse_boundary(value, end=end)
        except ValueError:
            raise serializers.ValidationError('Invalid date, expected ISO 8601') from None

    def validate_startDate(self, v):
        return self._boundary(v)

    def validate_endDate(self, v):
        return self._boundary(v, end=True)

    def validate(self, attrs):
        start, end = attrs.get('startDate'), attrs.get('endDate')
        if start and end and end < start:
            raise serializers.ValidationError({'endDate': 'endDate must be on or after startDate'})
        return attrs

    def filters(self) -> dict:
        data = self.validated_data
        return {
            'type': data.get('type') or None,
            'start_date': data.get('startDate'),
            'end_date': data.get('endDate'),
        }


class MedicalHistoryQuerySerializer(HistoryFilterSerializer):
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1)

    def validate_limit(self, v):
        cap = int(getattr(settings, 'TIMELINE_MAX_LIMIT', 1000))
        if v > cap:
            raise serializers.ValidationError(f'limit must be between 1 and {cap}')
        return v


class MetricsQuerySerializer(HistoryFilterSerializer):
    pass


class ExportQuerySerializer(HistoryFilterSerializer):
    format = serializers.ChoiceField(choices=EXPORT_FORMATS)
