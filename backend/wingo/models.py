from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

COLORS = ("green", "red", "violet")


class GameRound(models.Model):
    PENDING = "pending"
    LIVE = "live"
    COMPLETED = "completed"

    ROUND_STATUS = [
        (PENDING, "Pending"),
        (LIVE, "Live"),
        (COMPLETED, "Completed"),
    ]

    round_id = models.CharField(max_length=32, unique=True)
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(max_length=16, choices=ROUND_STATUS, default=LIVE, db_index=True)

    # exposure per colour, only ever moved with F() increments
    red_count = models.PositiveIntegerField(default=0)
    green_count = models.PositiveIntegerField(default=0)
    violet_count = models.PositiveIntegerField(default=0)
    red_amount = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    green_amount = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    violet_amount = models.DecimalField(max_digits=18, decimal_places=2, default=0)

    winning_color = models.CharField(max_length=8, blank=True, null=True)
    winning_number = models.PositiveSmallIntegerField(blank=True, null=True)
    admin_commission = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    settled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-start_time"]
        constraints = [
            models.UniqueConstraint(
                fields=["status"],
                condition=Q(status="live"),
                name="single_live_round",
            ),
        ]
        indexes = [models.Index(fields=["status", "end_time"], name="wingo_gamer_status_5c1d2e_idx")]

    def __str__(self):
        return f"Round {self.round_id} ({self.status})"

    def exposure(self) -> dict:
        """Amount staked per colour."""
        return {color: getattr(self, f"{color}_amount") or Decimal("0") for color in COLORS}

    def counts(self) -> dict:
        return {color: getattr(self, f"{color}_count") for color in COLORS}

    @property
    def total_staked(self) -> Decimal:
        return sum(self.exposure().values(), Decimal("0"))


class Bet(models.Model):
    PENDING = "pending"
    WON = "won"
    LOST = "lost"

    BET_STATUS = [
        (PENDING, "Pending"),
        (WON, "Won"),
        (LOST, "Lost"),
    ]
    COLOR_CHOICES = [(c, c.title()) for c in COLORS]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="bets")
    round = models.ForeignKey(GameRound, on_delete=models.CASCADE, related_name="bets")
    color = models.CharField(max_length=8, choices=COLOR_CHOICES)
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    status = models.CharField(max_length=16, choices=BET_STATUS, default=PENDING)
    win_amount = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    payout = models.DecimalField(max_digits=18, decimal_places=2, default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    settled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["user", "round"], name="one_bet_per_round"),
        ]
        indexes = [
            models.Index(fields=["round", "status"], name="wingo_bet_round_i_7b3e9f_idx"),
            models.Index(fields=["user", "created_at"], name="wingo_bet_user_id_2a8c4d_idx"),
        ]

    def __str__(self):
        return f"Bet {self.id} {self.color} {self.amount} on {self.round_id}"
