from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User, Referral


@admin.register(User)
class WingoUserAdmin(UserAdmin):
    list_display = ("username", "phone_number", "email", "invite_code", "referred_by", "is_staff", "date_joined")
    search_fields = ("username", "phone_number", "email", "invite_code")
    fieldsets = UserAdmin.fieldsets + (
        ("Win Go", {"fields": ("phone_number", "full_name", "invite_code", "referred_by")}),
    )


@admin.register(Referral)
class ReferralAdmin(admin.ModelAdmin):
    list_display = ("referrer", "referred_user", "bonus_amount", "created_at")
