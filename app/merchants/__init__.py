"""
Merchants app: merchant accounts and API keys.

This app handles:
- Merchant records (name, payout wallet)
- API key issuance, validation and revocation
- DRF authentication resolving an API key to its merchant

Usage:
    from merchants.services import MerchantService

    merchant = MerchantService.create_merchant("Acme", wallet_address)
    api_key, raw_key = MerchantService.create_api_key(merchant)
"""
