import bleach
from rest_framework import serializers

from care.constants import ALL_LOCATIONS, PRIORITY_LEVELS
from care.models import BedType


class LocationField(serializers.CharField):
    """A location id, or ``all`` for every branch.  Empty means ``None``."""

    def to_internal_value(self, data):
        value = super().to_internal_value(data).strip()
        if value in ('', ALL_LOCATIONS):
            return None
        if not value.isdigit():
            raise serializers.ValidationError('locationId must be a location id or "all"')
        return int(value)


class LocationQuerySerializer(serializers.Serializer):
    locationId = LocationField(required=False, allow_blank=True, default=None, allow_null=True)


class AvailableBedsQuerySerializer(LocationQuerySerializer):
    bedType = serializers.ChoiceField(choices=BedType.values, required=False)
    floor = serializers.CharField(required=False, allow_blank=True, max_length=32)
    ward = serializers.CharField(required=False, allow_blank=True, max_length=64)


class EnqueueSerializer(serializers.Serializer):
    bookingId = serializers.IntegerField(min_value=1)
    bedType = serializers.ChoiceField(choices=BedType.values)
    priority = serializers.ChoiceField(choices=PRIORITY_LEVELS, required=False)
    medicalUrgency = serializers.FloatField(required=False, min_value=0, max_value=10, default=0)
    patientAge = serializers.IntegerField(required=False, min_value=0, max_value=130, allow_null=True)
    otherFactors = serializers.FloatField(required=False, min_value=0, max_value=10, default=0)


class AllocateBedSerializer(serializers.Serializer):
    bookingId = serializers.IntegerField(min_value=1)
    bedIndex = serializers.IntegerField(required=False, min_value=0)
    bedNumber = serializers.CharField(required=False, allow_blank=False, max_length=32)

    def validate(self, attrs):
        if attrs.get('bedIndex') is None and not attrs.get('bedNumber'):
            raise serializers.ValidationError('bedIndex or bedNumber is required')
        return attrs


class WithdrawSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')

    def validate_reason(self, v):
        # strip every tag, not only the ones outside bleach's allow-list
        return bleach.clean((v or '').strip(), tags=frozenset(), strip=True)
