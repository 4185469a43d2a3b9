import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="GameRound",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("round_id", models.CharField(max_length=32, unique=True)),
                ("start_time", models.DateTimeField()),
                ("end_time", models.DateTimeField()),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("live", "Live"), ("completed", "Completed")],
                        db_index=True,
                        default="live",
                        max_length=16,
                    ),
                ),
                ("red_count", models.PositiveIntegerField(default=0)),
                ("green_count", models.PositiveIntegerField(default=0)),
                ("violet_count", models.PositiveIntegerField(default=0)),
                ("red_amount", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("green_amount", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("violet_amount", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("winning_color", models.CharField(blank=True, max_length=8, null=True)),
                ("winning_number", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("admin_commission", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("settled_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "ordering": ["-start_time"],
                "indexes": [models.Index(fields=["status", "end_time"], name="wingo_gamer_status_5c1d2e_idx")],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "live")),
                        fields=("status",),
                        name="single_live_round",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Bet",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "color",
                    models.CharField(
                        choices=[("green", "Green"), ("red", "Red"), ("violet", "Violet")],
                        max_length=8,
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("won", "Won"), ("lost", "Lost")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("win_amount", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("payout", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("settled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "round",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bets",
                        to="wingo.gameround",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["round", "status"], name="wingo_bet_round_i_7b3e9f_idx"),
                    models.Index(fields=["user", "created_at"], name="wingo_bet_user_id_2a8c4d_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "round"), name="one_bet_per_round"),
                ],
            },
        ),
    ]
