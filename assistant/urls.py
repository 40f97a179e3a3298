"""
ASSISTANT App - URL Configuration
"""

from django.urls import path
from . import views

app_name = 'assistant'

urlpatterns = [
    path('assistant/chat/', views.AssistantChatView.as_view(), name='chat'),
]
