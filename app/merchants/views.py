"""
Base view for merchant-authenticated endpoints.

Treasury and payout views subclass MerchantAPIView; request.user is the
Merchant resolved from the API key.
"""

from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from .authentication import ApiKeyAuthentication


class MerchantAPIView(APIView):
    """APIView that requires a valid merchant API key."""

    authentication_classes = [ApiKeyAuthentication]
    permission_classes = [IsAuthenticated]
