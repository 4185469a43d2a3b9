from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views.wallet import WalletViewSet
from .views.webhook import razorpay_webhook

router = DefaultRouter()
router.register(r'', WalletViewSet, basename='wallet')  # endpoints under /api/wallet/

urlpatterns = [
    path('webhook/razorpay/', razorpay_webhook, name='razorpay-webhook'),
    path('', include(router.urls)),
]
