import logging
from datetime import timedelta

from django.utils import timezone
from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from core.http import failure_response

from .engine import process_current_round
from .models import Bet, GameRound
from .serializers import BetSerializer, GameRoundSerializer, PlaceBetSerializer, RoundResultSerializer
from .services import ensure_live_round, place_bet

logger = logging.getLogger(__name__)

MAX_HISTORY = 100
RECENT_RESULT_WINDOW = timedelta(seconds=5)


def _limit(request, default=20):
    try:
        limit = int(request.query_params.get("limit", default))
    except (TypeError, ValueError):
        limit = default
    return min(max(limit, 1), MAX_HISTORY)


@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def current_round(request):
    round_obj = ensure_live_round()
    return Response(GameRoundSerializer(round_obj).data)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def bet(request):
    serializer = PlaceBetSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(
            {"error": "Invalid bet", "code": "validation_error", "details": serializer.errors},
            status=status.HTTP_400_BAD_REQUEST,
        )

    result = place_bet(
        request.user,
        serializer.validated_data["color"],
        serializer.validated_data["amount"],
        idempotency_key=request.headers.get("Idempotency-Key"),
    )
    if not result:
        return failure_response(result)

    request.user.wallet.refresh_from_db()
    return Response(
        {
            "message": "Bet placed successfully",
            "bet": BetSerializer(result.value).data,
            "balance": str(request.user.wallet.balance),
        },
        status=status.HTTP_201_CREATED,
    )


@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def history(request):
    rounds = GameRound.objects.filter(status=GameRound.COMPLETED).order_by("-end_time")[: _limit(request)]
    return Response(RoundResultSerializer(rounds, many=True).data)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def my_bets(request):
    bets = Bet.objects.filter(user=request.user).select_related("round")[: _limit(request, 50)]
    return Response(BetSerializer(bets, many=True).data)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def recent_result(request):
    """The caller's latest settled bet, only while it is fresh enough to announce."""
    bet = (
        Bet.objects.filter(user=request.user, status__in=[Bet.WON, Bet.LOST], settled_at__isnull=False)
        .select_related("round")
        .order_by("-settled_at")
        .first()
    )
    if bet is None or bet.settled_at < timezone.now() - RECENT_RESULT_WINDOW:
        return Response({"has_result": False})
    return Response(
        {
            "has_result": True,
            "bet": BetSerializer(bet).data,
            "winning_color": bet.round.winning_color,
            "winning_number": bet.round.winning_number,
        }
    )


@api_view(["POST"])
@permission_classes([IsAdminUser])
def process_result(request):
    result = process_current_round()
    if not result:
        return failure_response(result)

    report = result.value
    logger.info("Round %s settled manually by %s", report.round_id, request.user.pk)
    return Response(
        {
            "message": "Round processed",
            "round_id": report.round_id,
            "winning_color": report.winning_color,
            "winning_number": report.winning_number,
            "winners": report.winners,
            "losers": report.losers,
            "failed": report.failed,
            "next_round_id": report.next_round_id,
        }
    )
