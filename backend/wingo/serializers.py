from django.utils import timezone
from rest_framework import serializers

from .models import COLORS, Bet, GameRound


class GameRoundSerializer(serializers.ModelSerializer):
    time_remaining = serializers.SerializerMethodField()
    exposure = serializers.SerializerMethodField()
    exposure_amount = serializers.SerializerMethodField()

    class Meta:
        model = GameRound
        fields = [
            "id",
            "round_id",
            "status",
            "start_time",
            "end_time",
            "time_remaining",
            "winning_color",
            "winning_number",
            "exposure",
            "exposure_amount",
            "settled_at",
        ]

    def get_time_remaining(self, obj):
        now = self.context.get("now") or timezone.now()
        return max(0, int((obj.end_time - now).total_seconds()))

    def get_exposure(self, obj):
        return obj.counts()

    def get_exposure_amount(self, obj):
        return {color: str(amount) for color, amount in obj.exposure().items()}


class RoundResultSerializer(serializers.ModelSerializer):
    total_staked = serializers.DecimalField(max_digits=18, decimal_places=2, read_only=True)

    class Meta:
        model = GameRound
        fields = [
            "round_id",
            "winning_color",
            "winning_number",
            "total_staked",
            "admin_commission",
            "end_time",
            "settled_at",
        ]


class BetSerializer(serializers.ModelSerializer):
    round_id = serializers.CharField(source="round.round_id", read_only=True)
    winning_color = serializers.CharField(source="round.winning_color", read_only=True)
    winning_number = serializers.IntegerField(source="round.winning_number", read_only=True)

    class Meta:
        model = Bet
        fields = [
            "id",
            "round_id",
            "color",
            "amount",
            "status",
            "win_amount",
            "payout",
            "winning_color",
            "winning_number",
            "created_at",
            "settled_at",
        ]


class PlaceBetSerializer(serializers.Serializer):
    color = serializers.ChoiceField(choices=COLORS)
    amount = serializers.DecimalField(max_digits=18, decimal_places=2, min_value=1)
