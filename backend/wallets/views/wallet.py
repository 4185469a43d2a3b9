import logging

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.http import failure_response

from ..deposits import confirm_deposit, create_deposit
from ..models import Wallet, WalletTransaction, Withdrawal
from ..serializers import (
    ConfirmDepositSerializer,
    DepositSerializer,
    WalletSerializer,
    WalletTransactionSerializer,
    WithdrawalRequestSerializer,
    WithdrawalSerializer,
)
from ..withdrawals import request_withdrawal

logger = logging.getLogger(__name__)


class WalletViewSet(viewsets.GenericViewSet):
    """
    Wallet API:
    - balance
    - deposit / confirm-deposit
    - withdraw / withdrawals
    - transactions
    """

    permission_classes = [IsAuthenticated]
    serializer_class = WalletSerializer

    def get_queryset(self):
        return Wallet.objects.filter(user=self.request.user)

    # ---------------------------------------------------
    # BALANCE
    # ---------------------------------------------------
    @action(detail=False, methods=["get"])
    def balance(self, request):
        wallet, _ = Wallet.objects.get_or_create(user=request.user)
        return Response(self.get_serializer(wallet).data)

    # ---------------------------------------------------
    # DEPOSIT (CREATE GATEWAY ORDER)
    # ---------------------------------------------------
    @action(detail=False, methods=["post"])
    def deposit(self, request):
        serializer = DepositSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_deposit(request.user, serializer.validated_data["amount"])
        if not result:
            return failure_response(result)

        intent = result.value["intent"]
        return Response(
            {
                "order_id": intent.intent_id,
                "amount": str(result.value["transaction"].amount),
                "currency": intent.currency,
                "transaction_id": result.value["transaction"].id,
            }
        )

    # ---------------------------------------------------
    # CONFIRM DEPOSIT (CLIENT CALLBACK)
    # ---------------------------------------------------
    @action(detail=False, methods=["post"], url_path="confirm-deposit")
    def confirm_deposit(self, request):
        serializer = ConfirmDepositSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = confirm_deposit(request.user, data["order_id"], data["payment_id"], data["signature"])
        if not result:
            return failure_response(result)
        return Response({"message": "Deposit successful", "balance": str(result.value)})

    # ---------------------------------------------------
    # WITHDRAW
    # ---------------------------------------------------
    @action(detail=False, methods=["post"])
    def withdraw(self, request):
        serializer = WithdrawalRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = request_withdrawal(
            request.user,
            serializer.validated_data["amount"],
            serializer.validated_data["destination"],
            idempotency_key=request.headers.get("Idempotency-Key"),
        )
        if not result:
            return failure_response(result)

        return Response(
            {
                "message": "Withdrawal request submitted. Waiting for admin approval.",
                "withdrawal": WithdrawalSerializer(result.value).data,
            },
            status=201,
        )

    @action(detail=False, methods=["get"])
    def withdrawals(self, request):
        qs = Withdrawal.objects.filter(user=request.user).select_related("user", "processed_by")[:50]
        return Response(WithdrawalSerializer(qs, many=True).data)

    # ---------------------------------------------------
    # TRANSACTIONS
    # ---------------------------------------------------
    @action(detail=False, methods=["get"])
    def transactions(self, request):
        txs = WalletTransaction.objects.filter(user=request.user).order_by("-created_at")[:100]
        return Response(WalletTransactionSerializer(txs, many=True).data)
