"""
API views for recipient magic-link sign-in.

Endpoints:
    POST /api/v1/recipients/auth/ - Request a magic link
    GET  /api/v1/recipients/auth/?token= - Redeem a magic link

Both endpoints are public. The POST response is the same whether or not
the email belongs to a recipient.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import AuthTokenRequestSerializer, RecipientSerializer
from .services import AuthTokenService

logger = logging.getLogger(__name__)

MAGIC_LINK_SENT = "If this email has received payouts, a sign-in link is on its way."


class RecipientAuthView(APIView):
    """
    Magic-link sign-in for recipients.

    POST issues a one-time token (emailed by the auth_token_issued
    receiver); GET consumes it.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="request_magic_link",
        summary="Request magic link",
        request=AuthTokenRequestSerializer,
        responses={200: OpenApiResponse(description="Generic confirmation")},
        tags=["Recipients - Auth"],
    )
    def post(self, request):
        serializer = AuthTokenRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        token = AuthTokenService.create_auth_token(serializer.validated_data["email"])
        if token is None:
            logger.info("Magic link requested for unknown email")
        return Response({"detail": MAGIC_LINK_SENT})

    @extend_schema(
        operation_id="redeem_magic_link",
        summary="Redeem magic link",
        parameters=[OpenApiParameter("token", str, required=True)],
        responses={
            200: RecipientSerializer,
            401: OpenApiResponse(description="Invalid, used or expired token"),
        },
        tags=["Recipients - Auth"],
    )
    def get(self, request):
        recipient = AuthTokenService.validate_auth_token(request.query_params.get("token", ""))
        if recipient is None:
            return Response(
                {"error": "Invalid or expired sign-in link", "error_code": "INVALID_AUTH_TOKEN"},
                status=status.HTTP_401_UNAUTHORIZED,
            )
        return Response(RecipientSerializer(recipient).data)
