"""
Finance App URLs
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import TransactionViewSet, WalletViewSet

router = DefaultRouter()
router.register(r'transactions', TransactionViewSet, basename='transaction')

urlpatterns = [
    # Wallet endpoints
    path('wallet/', WalletViewSet.as_view({'get': 'summary'}), name='wallet-summary'),
    path('wallet/remittance/', WalletViewSet.as_view({'post': 'remittance'}), name='wallet-remittance'),

    # Router URLs
    path('', include(router.urls)),
]
