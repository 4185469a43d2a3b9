from decimal import Decimal

from django.db.models import Count, Sum
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response

from accounts.models import Referral, User
from core.http import failure_response
from wallets.models import Wallet, WalletTransaction, Withdrawal
from wallets.serializers import WithdrawalSerializer
from wallets.withdrawals import approve_withdrawal, mark_processing, reject_withdrawal
from wingo.models import Bet, GameRound


def _sum(qs, field="amount"):
    return qs.aggregate(total=Sum(field))["total"] or Decimal("0")


# ======================================================
# WITHDRAWAL QUEUE
# ======================================================
@api_view(["GET"])
@permission_classes([IsAdminUser])
def withdrawals(request):
    qs = (
        Withdrawal.objects.filter(status__in=Withdrawal.OPEN_STATUSES)
        .select_related("user", "processed_by")
        .order_by("created_at")
    )
    return Response(WithdrawalSerializer(qs, many=True).data)


@api_view(["GET"])
@permission_classes([IsAdminUser])
def all_withdrawals(request):
    qs = Withdrawal.objects.select_related("user", "processed_by").order_by("-created_at")
    status = request.query_params.get("status")
    if status:
        qs = qs.filter(status=status)
    return Response(WithdrawalSerializer(qs[:200], many=True).data)


@api_view(["POST"])
@permission_classes([IsAdminUser])
def approve(request, withdrawal_id):
    result = approve_withdrawal(
        withdrawal_id,
        request.user,
        admin_notes=request.data.get("admin_notes", ""),
    )
    if not result:
        return failure_response(result)
    return Response({"message": "Withdrawal approved", "withdrawal": WithdrawalSerializer(result.value).data})


@api_view(["POST"])
@permission_classes([IsAdminUser])
def reject(request, withdrawal_id):
    result = reject_withdrawal(
        withdrawal_id,
        request.user,
        admin_notes=request.data.get("admin_notes", ""),
    )
    if not result:
        return failure_response(result)
    return Response({"message": "Withdrawal rejected and refunded", "withdrawal": WithdrawalSerializer(result.value).data})


@api_view(["POST"])
@permission_classes([IsAdminUser])
def process(request, withdrawal_id):
    result = mark_processing(withdrawal_id, request.user)
    if not result:
        return failure_response(result)
    return Response({"message": "Withdrawal marked as processing", "withdrawal": WithdrawalSerializer(result.value).data})


# ======================================================
# STATS / USERS
# ======================================================
@api_view(["GET"])
@permission_classes([IsAdminUser])
def stats(request):
    today = timezone.now().replace(hour=0, minute=0, second=0, microsecond=0)
    completed_rounds = GameRound.objects.filter(status=GameRound.COMPLETED)
    deposits = WalletTransaction.objects.filter(
        tx_type=WalletTransaction.DEPOSIT, status=WalletTransaction.COMPLETED
    )

    return Response(
        {
            "total_users": User.objects.count(),
            "total_referrals": Referral.objects.count(),
            "total_balance": str(_sum(Wallet.objects.all(), "balance")),
            "total_deposits": str(_sum(deposits)),
            "total_withdrawals": str(_sum(Wallet.objects.all(), "total_withdrawals")),
            "pending_withdrawals": Withdrawal.objects.filter(status__in=Withdrawal.OPEN_STATUSES).count(),
            "withdrawal_commission": str(
                _sum(
                    Withdrawal.objects.filter(commission_status=Withdrawal.COMMISSION_COMPLETED),
                    "commission_earned",
                )
            ),
            "rounds_completed": completed_rounds.count(),
            "rounds_today": completed_rounds.filter(end_time__gte=today).count(),
            "admin_commission": str(_sum(completed_rounds, "admin_commission")),
            "total_bets": Bet.objects.count(),
            "total_wagered": str(_sum(Bet.objects.all())),
            "total_paid_out": str(_sum(Bet.objects.filter(status=Bet.WON), "payout")),
        }
    )


@api_view(["GET"])
@permission_classes([IsAdminUser])
def users(request):
    qs = (
        User.objects.select_related("wallet")
        .annotate(referral_count=Count("referrals"))
        .order_by("-date_joined")[:200]
    )
    return Response(
        [
            {
                "id": user.id,
                "username": user.username,
                "email": user.email,
                "phone_number": user.phone_number,
                "invite_code": user.invite_code,
                "balance": str(user.wallet.balance) if hasattr(user, "wallet") else "0.00",
                "referral_count": user.referral_count,
                "is_active": user.is_active,
                "date_joined": user.date_joined,
            }
            for user in qs
        ]
    )
