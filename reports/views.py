"""
REPORTS App - Dashboard API Views
"""

from rest_framework import permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from core.views import IsAdminUser
from .services import DashboardService


class DashboardView(APIView):
    """
    Statistics for the current user's dashboard.

    GET /api/dashboard/
    - admin: users, orders by status, revenue, recent activity
    - driver: available, active, completed, earnings
    - client: pending, active, completed, total spent
    """

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        stats = DashboardService.for_user(request.user)
        return Response({'role': request.user.role, 'stats': stats})


class RecentActivityView(APIView):
    """Ten most recent order activities (Admin only)."""

    permission_classes = [IsAdminUser]

    def get(self, request):
        return Response(DashboardService.recent_activities())
