# accounts/models.py
import string
import random
from django.contrib.auth.models import AbstractUser
from django.db import models


def generate_invite_code(length=8):
    chars = string.ascii_uppercase + string.digits
    return ''.join(random.choices(chars, k=length))


class User(AbstractUser):
    phone_number = models.CharField(max_length=20, unique=True, null=True, blank=True)
    full_name = models.CharField(max_length=120, blank=True)

    invite_code = models.CharField(
        max_length=12,
        unique=True,
        blank=True,
        null=True,
        db_index=True
    )

    referred_by = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="referrals"
    )

    def save(self, *args, **kwargs):
        if not self.invite_code:
            while True:
                code = generate_invite_code()
                if not User.objects.filter(invite_code=code).exists():
                    self.invite_code = code
                    break

        super().save(*args, **kwargs)

    def __str__(self):
        return self.username


class Referral(models.Model):
    referrer = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="referral_records"
    )
    referred_user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="referred_record"
    )
    bonus_amount = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.referrer} -> {self.referred_user}"
