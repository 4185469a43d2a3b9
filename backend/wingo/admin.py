from django.contrib import admin

from .models import Bet, GameRound


@admin.register(GameRound)
class GameRoundAdmin(admin.ModelAdmin):
    list_display = (
        "round_id",
        "status",
        "start_time",
        "end_time",
        "winning_color",
        "winning_number",
        "red_amount",
        "green_amount",
        "violet_amount",
        "admin_commission",
    )
    list_filter = ("status", "winning_color")
    search_fields = ("round_id",)
    readonly_fields = ("created_at", "settled_at")


@admin.register(Bet)
class BetAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "round", "color", "amount", "status", "win_amount", "created_at")
    list_filter = ("status", "color")
    search_fields = ("user__username", "round__round_id")
    raw_id_fields = ("user", "round")
