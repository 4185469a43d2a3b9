from django.urls import path
from . import views

urlpatterns = [
    path("current/", views.current_round, name="wingo-current"),
    path("bet/", views.bet, name="wingo-bet"),
    path("history/", views.history, name="wingo-history"),
    path("my-bets/", views.my_bets, name="wingo-my-bets"),
    path("recent-result/", views.recent_result, name="wingo-recent-result"),
    path("process-result/", views.process_result, name="wingo-process-result"),
]
