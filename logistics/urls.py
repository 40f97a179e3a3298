"""
Logistics App URLs
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import OrderViewSet, QuoteAPIView

router = DefaultRouter()
router.register(r'orders', OrderViewSet, basename='order')

urlpatterns = [
    # Public price estimation
    path('quote/', QuoteAPIView.as_view(), name='quote'),

    # Router URLs
    path('', include(router.urls)),
]
