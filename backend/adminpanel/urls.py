from django.urls import path
from . import views

app_name = "adminpanel"

urlpatterns = [
    path("withdrawals/", views.withdrawals, name="withdrawals"),
    path("withdrawals/all/", views.all_withdrawals, name="all_withdrawals"),
    path("withdrawals/<int:withdrawal_id>/approve/", views.approve, name="approve_withdrawal"),
    path("withdrawals/<int:withdrawal_id>/reject/", views.reject, name="reject_withdrawal"),
    path("withdrawals/<int:withdrawal_id>/process/", views.process, name="process_withdrawal"),
    path("stats/", views.stats, name="stats"),
    path("users/", views.users, name="users"),
]
