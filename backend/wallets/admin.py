from django.contrib import admin

from .models import Wallet, WalletTransaction, Withdrawal


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ("user", "balance", "total_deposits", "total_withdrawals", "total_winnings", "updated_at")
    search_fields = ("user__username", "user__phone_number")
    readonly_fields = ("balance", "total_deposits", "total_withdrawals", "total_winnings")


@admin.register(WalletTransaction)
class WalletTransactionAdmin(admin.ModelAdmin):
    list_display = ("user", "tx_type", "amount", "status", "reference", "created_at")
    list_filter = ("tx_type", "status")
    search_fields = ("user__username", "reference")


@admin.register(Withdrawal)
class WithdrawalAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "amount", "method", "status", "commission_status", "payout_status", "created_at")
    list_filter = ("status", "method", "commission_status")
    search_fields = ("user__username", "payout_id")
    readonly_fields = ("transaction", "refunded", "payout_id")
