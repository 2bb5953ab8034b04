from rest_framework import serializers


class DateRangeQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False, allow_null=True, default=None)
    end_date = serializers.DateField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError("start_date must not be after end_date.")
        return attrs


class BalancesQuerySerializer(serializers.Serializer):
    as_of = serializers.DateField(required=False, allow_null=True, default=None)
    project = serializers.IntegerField(required=False, allow_null=True, default=None)


class ProfitabilityQuerySerializer(serializers.Serializer):
    status = serializers.CharField(required=False, allow_blank=True, default="")


class BalanceSheetQuerySerializer(serializers.Serializer):
    as_of = serializers.DateField(required=False, allow_null=True, default=None)


class ComparativeBalanceSheetQuerySerializer(serializers.Serializer):
    current_date = serializers.DateField(required=False, allow_null=True, default=None)
    previous_date = serializers.DateField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        current, previous = attrs.get("current_date"), attrs.get("previous_date")
        if current and previous and previous > current:
            raise serializers.ValidationError("previous_date must not be after current_date.")
        return attrs


class ComparativeCashFlowQuerySerializer(serializers.Serializer):
    current_start = serializers.DateField(required=False, allow_null=True, default=None)
    current_end = serializers.DateField(required=False, allow_null=True, default=None)
    previous_start = serializers.DateField(required=False, allow_null=True, default=None)
    previous_end = serializers.DateField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        for period in ("current", "previous"):
            start, end = attrs.get(f"{period}_start"), attrs.get(f"{period}_end")
            if start and end and start > end:
                raise serializers.ValidationError(f"{period}_start must not be after {period}_end.")
        return attrs
