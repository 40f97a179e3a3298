"""
ASSISTANT App - Chat Endpoint
"""

from rest_framework import permissions, serializers, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .services import AssistantService


class AssistantMessageSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=500, allow_blank=True)


class AssistantChatView(APIView):
    """
    Ask the KwiiGo assistant a question.

    POST /api/assistant/chat/
    {"message": "mes gains"}
    """

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = AssistantMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            intent, reply = AssistantService.reply(
                request.user, serializer.validated_data['message']
            )
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({'intent': intent, 'reply': reply})
