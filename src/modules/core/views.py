from django.http import HttpRequest
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.actors import actor_from_user


class MeView(APIView):
    """Identity and business role of the caller, as the milestone engine sees it."""

    permission_classes = [IsAuthenticated]

    def get(self, request: HttpRequest) -> Response:
        actor = actor_from_user(request.user)
        return Response(
            {
                "user_id": actor.user_id,
                "role": actor.role,
                "display_name": actor.display_name,
            }
        )
