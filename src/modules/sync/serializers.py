from __future__ import annotations

from rest_framework import serializers

from modules.sync.constants import SyncType


class SetSyncTimestampSerializer(serializers.Serializer):
    type = serializers.ChoiceField(
        choices=SyncType.choices,
        error_messages={"invalid_choice": 'Invalid type. Must be "products" or "webphotos".'},
    )
    timestamp = serializers.CharField(max_length=64, trim_whitespace=True)


class SyncTimestampsSerializer(serializers.Serializer):
    products = serializers.CharField(read_only=True, allow_null=True)
    webphotos = serializers.CharField(read_only=True, allow_null=True)


class SyncWriteResultSerializer(serializers.Serializer):
    type = serializers.CharField(read_only=True)
    timestamp = serializers.CharField(read_only=True)
    local_written = serializers.BooleanField(read_only=True)
    shared_written = serializers.BooleanField(read_only=True)
