"""
DRF authentication using merchant API keys.

Clients send the key either as ``X-API-Key: sk_live_...`` or as
``Authorization: Bearer sk_live_...``. On success request.user is the
Merchant and request.auth is the ApiKey.

Configured per view:
    authentication_classes = [ApiKeyAuthentication]
"""

from __future__ import annotations

from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed

from .services import MerchantService


class ApiKeyAuthentication(BaseAuthentication):
    """Authenticate requests with a merchant API key."""

    keyword = "Bearer"

    def authenticate(self, request):
        raw_key = request.META.get("HTTP_X_API_KEY")
        if not raw_key:
            auth = get_authorization_header(request).split()
            if not auth or auth[0].lower() != self.keyword.lower().encode():
                return None
            if len(auth) != 2:
                raise AuthenticationFailed("Invalid API key header.")
            try:
                raw_key = auth[1].decode()
            except UnicodeError:
                raise AuthenticationFailed("Invalid API key header.")

        api_key = MerchantService.validate_api_key(raw_key)
        if api_key is None:
            raise AuthenticationFailed("Invalid API key.")
        return (api_key.merchant, api_key)

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'
