from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    path('admin-panel/', admin.site.urls),
    path('api/admin/', include('adminpanel.urls')),

    # Core / Accounts
    path('api/accounts/', include('accounts.urls')),
    path('api/wallet/', include('wallets.urls')),

    # Win Go colour rounds
    path('api/game/', include('wingo.urls')),
]
