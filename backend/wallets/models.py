from decimal import Decimal

from django.conf import settings
from django.db import models


class Wallet(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="wallet",
    )
    balance = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    total_deposits = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    total_withdrawals = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    total_winnings = models.DecimalField(max_digits=18, decimal_places=2, default=0)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(balance__gte=0),
                name="wallet_balance_non_negative",
            ),
        ]

    def __str__(self):
        return f"Wallet({self.user_id})"


class WalletTransaction(models.Model):
    """
    Append-only ledger entry. ``amount`` is signed: debits are negative.
    """

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    BET = "bet"
    WIN = "win"
    REFERRAL = "referral"
    TX_TYPE_CHOICES = [
        (DEPOSIT, "Deposit"),
        (WITHDRAWAL, "Withdrawal"),
        (BET, "Bet"),
        (WIN, "Win"),
        (REFERRAL, "Referral"),
    ]

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (COMPLETED, "Completed"),
        (FAILED, "Failed"),
        (CANCELLED, "Cancelled"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="wallet_txs"
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    tx_type = models.CharField(max_length=12, choices=TX_TYPE_CHOICES)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=PENDING)
    description = models.CharField(max_length=255, blank=True, default="")
    reference = models.CharField(max_length=64, unique=True)
    meta = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["user", "created_at"], name="wallets_wal_user_id_6f1b2c_idx"),
            models.Index(fields=["tx_type", "status"], name="wallets_wal_tx_type_3d9e4a_idx"),
        ]

    def __str__(self):
        return f"{self.tx_type} {self.amount} for {self.user_id}"


class Withdrawal(models.Model):
    """
    A withdrawal request plus its wagering-requirement bookkeeping.

    The requested amount leaves the balance when the request is created; a
    rejected or failed payout refunds it exactly once.
    """

    METHOD_BANK = "bank"
    METHOD_UPI = "upi"
    METHOD_WALLET = "wallet"
    METHOD_CHOICES = [
        (METHOD_BANK, "Bank transfer"),
        (METHOD_UPI, "UPI"),
        (METHOD_WALLET, "Mobile wallet"),
    ]

    STATUS_PENDING = "pending"
    STATUS_PROCESSING = "processing"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"
    STATUS_COMPLETED = "completed"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_COMPLETED, "Completed"),
    ]
    OPEN_STATUSES = (STATUS_PENDING, STATUS_PROCESSING)
    COMMISSION_ELIGIBLE_STATUSES = (
        STATUS_PENDING,
        STATUS_PROCESSING,
        STATUS_APPROVED,
        STATUS_COMPLETED,
    )

    COMMISSION_PENDING = "pending"
    COMMISSION_COMPLETED = "completed"
    COMMISSION_CHOICES = [
        (COMMISSION_PENDING, "Pending"),
        (COMMISSION_COMPLETED, "Completed"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="withdrawals"
    )
    transaction = models.OneToOneField(
        WalletTransaction, on_delete=models.PROTECT, related_name="withdrawal"
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    method = models.CharField(max_length=8, choices=METHOD_CHOICES)
    destination = models.JSONField(default=dict)

    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_PENDING)
    admin_notes = models.TextField(blank=True, default="")
    processed_at = models.DateTimeField(null=True, blank=True)
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="processed_withdrawals",
    )

    min_bet_amount = models.DecimalField(max_digits=18, decimal_places=2)
    commission_earned = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    commission_status = models.CharField(
        max_length=12, choices=COMMISSION_CHOICES, default=COMMISSION_PENDING
    )

    # Payout provider tracking
    payout_id = models.CharField(max_length=64, null=True, blank=True, unique=True)
    payout_status = models.CharField(max_length=16, default="pending")
    payout_failure_reason = models.CharField(max_length=255, null=True, blank=True)
    refunded = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="wallets_wit_status_8a2f71_idx"),
            models.Index(fields=["commission_status", "status"], name="wallets_wit_commiss_c47e0b_idx"),
        ]

    def __str__(self):
        return f"Withdrawal {self.id} {self.amount} ({self.status})"
