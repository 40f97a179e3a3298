"""
REPORTS App - URL Configuration
"""

from django.urls import path
from . import views

app_name = 'reports'

urlpatterns = [
    path('dashboard/',
         views.DashboardView.as_view(),
         name='dashboard'),
    path('dashboard/activity/',
         views.RecentActivityView.as_view(),
         name='recent-activity'),
]
