"""
KwiiGo Main URL Configuration
"""

from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from core.health import health_check, readiness_check


# ===========================================
# ADMIN SITE CUSTOMIZATION
# ===========================================
admin.site.site_header = "KwiiGo Administration"
admin.site.site_title = "KwiiGo Admin"
admin.site.index_title = "Supervision des livraisons"


@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request):
    """API Root endpoint with available routes."""
    return Response({
        'name': 'KwiiGo API',
        'version': '1.0.0',
        'endpoints': {
            'auth': {
                'register': '/api/auth/register/',
                'token': '/api/auth/token/',
                'refresh': '/api/auth/token/refresh/',
                'password_reset': '/api/auth/password/reset/',
            },
            'users': '/api/users/',
            'quote': '/api/quote/',
            'orders': '/api/orders/',
            'wallet': '/api/wallet/',
            'transactions': '/api/transactions/',
            'dashboard': '/api/dashboard/',
            'assistant': '/api/assistant/chat/',
            'websockets': {
                'order_chat': '/ws/orders/<order_id>/chat/?token=<jwt>',
                'drivers': '/ws/drivers/?token=<jwt>',
            },
        }
    })


urlpatterns = [
    # Monitoring
    path('health/', health_check, name='health'),
    path('health/ready/', readiness_check, name='readiness'),

    # Admin
    path('admin/', admin.site.urls),

    # API Root
    path('api/', api_root, name='api-root'),

    # App URLs
    path('api/', include('core.urls')),
    path('api/', include('logistics.urls')),
    path('api/', include('finance.urls')),
    path('api/', include('reports.urls')),
    path('api/', include('assistant.urls')),

    # OpenAPI schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]
