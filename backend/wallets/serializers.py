from decimal import Decimal

from rest_framework import serializers

from .destinations import BankDestination, UpiDestination, WalletDestination
from .models import Wallet, WalletTransaction, Withdrawal


class DepositSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=18, decimal_places=2, min_value=Decimal("1.00"))


class ConfirmDepositSerializer(serializers.Serializer):
    order_id = serializers.CharField(max_length=64)
    payment_id = serializers.CharField(max_length=64)
    signature = serializers.CharField(max_length=256)


class BankDestinationSerializer(serializers.Serializer):
    account_holder_name = serializers.CharField(max_length=100)
    account_number = serializers.RegexField(r"^\d{9,18}$", max_length=18)
    ifsc_code = serializers.RegexField(r"^[A-Za-z]{4}0[A-Za-z0-9]{6}$", max_length=11)
    bank_name = serializers.CharField(max_length=100)

    def to_destination(self, data):
        return BankDestination(ifsc_code=data.pop("ifsc_code").upper(), **data)


class UpiDestinationSerializer(serializers.Serializer):
    upi_id = serializers.RegexField(r"^[\w.\-]{2,256}@[A-Za-z]{2,64}$", max_length=320)

    def to_destination(self, data):
        return UpiDestination(**data)


class WalletDestinationSerializer(serializers.Serializer):
    wallet_type = serializers.ChoiceField(choices=WalletDestination.WALLET_TYPES)
    wallet_number = serializers.RegexField(r"^\d{10}$", max_length=10)

    def to_destination(self, data):
        return WalletDestination(**data)


DESTINATION_SERIALIZERS = {
    "bank": BankDestinationSerializer,
    "upi": UpiDestinationSerializer,
    "wallet": WalletDestinationSerializer,
}


class WithdrawalRequestSerializer(serializers.Serializer):
    """
    ``method`` picks which destination serializer validates the rest of the
    payload; the validated data carries a destination object under
    ``destination``.
    """

    amount = serializers.DecimalField(max_digits=18, decimal_places=2, min_value=Decimal("1.00"))
    method = serializers.ChoiceField(choices=list(DESTINATION_SERIALIZERS))

    def validate(self, attrs):
        destination_serializer = DESTINATION_SERIALIZERS[attrs["method"]](data=self.initial_data)
        if not destination_serializer.is_valid():
            raise serializers.ValidationError(destination_serializer.errors)
        attrs["destination"] = destination_serializer.to_destination(
            dict(destination_serializer.validated_data)
        )
        return attrs


class WalletTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = WalletTransaction
        fields = ["id", "amount", "tx_type", "status", "description", "reference", "created_at"]


class WalletSerializer(serializers.ModelSerializer):
    class Meta:
        model = Wallet
        fields = ["balance", "total_deposits", "total_withdrawals", "total_winnings", "updated_at"]


class WithdrawalSerializer(serializers.ModelSerializer):
    user = serializers.CharField(source="user.username", read_only=True)
    processed_by = serializers.CharField(source="processed_by.username", read_only=True, default=None)

    class Meta:
        model = Withdrawal
        fields = [
            "id",
            "user",
            "amount",
            "method",
            "destination",
            "status",
            "admin_notes",
            "processed_at",
            "processed_by",
            "min_bet_amount",
            "commission_earned",
            "commission_status",
            "payout_id",
            "payout_status",
            "payout_failure_reason",
            "created_at",
        ]
