"""
API views for the merchant treasury.

Endpoints:
    GET  /api/v1/treasury/balance/ - Current balance
    POST /api/v1/treasury/deposits/ - Record a confirmed deposit
    POST /api/v1/treasury/withdrawals/ - Withdraw available funds
    GET  /api/v1/treasury/transactions/ - Audit log

Authentication:
    Merchant API key (merchants.authentication.ApiKeyAuthentication).
    Every view acts on request.user.merchant_id only.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.response import Response

from core.exception_handler import service_failure_response
from merchants.views import MerchantAPIView

from .serializers import (
    DepositSerializer,
    MerchantBalanceSerializer,
    TransactionQuerySerializer,
    TreasuryTransactionSerializer,
    WithdrawalSerializer,
)
from .services import TreasuryLedger


class TreasuryBalanceView(MerchantAPIView):
    """
    GET /api/v1/treasury/balance/?currency=USDC

    Returns the merchant's balance, creating a zeroed one on first access.
    """

    @extend_schema(
        operation_id="get_treasury_balance",
        summary="Get treasury balance",
        parameters=[OpenApiParameter("currency", str, required=False)],
        responses={200: MerchantBalanceSerializer},
        tags=["Treasury"],
    )
    def get(self, request):
        balance = TreasuryLedger.get_or_create_balance(
            request.user.merchant_id,
            request.query_params.get("currency"),
        )
        return Response(MerchantBalanceSerializer(balance).data)


class TreasuryDepositView(MerchantAPIView):
    """
    POST /api/v1/treasury/deposits/

    Records a deposit the chain watcher has confirmed.
    """

    @extend_schema(
        operation_id="create_treasury_deposit",
        summary="Record deposit",
        request=DepositSerializer,
        responses={
            201: MerchantBalanceSerializer,
            400: OpenApiResponse(description="Invalid amount"),
        },
        tags=["Treasury"],
    )
    def post(self, request):
        serializer = DepositSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        balance = TreasuryLedger.credit(
            request.user.merchant_id,
            data["amount"],
            currency=data.get("currency"),
            tx_signature=data["tx_signature"],
        )
        return Response(MerchantBalanceSerializer(balance).data, status=status.HTTP_201_CREATED)


class TreasuryWithdrawalView(MerchantAPIView):
    """
    POST /api/v1/treasury/withdrawals/

    Response:
        201 Created: Updated balance
        402 Payment Required: Available funds are too low
    """

    @extend_schema(
        operation_id="create_treasury_withdrawal",
        summary="Withdraw funds",
        request=WithdrawalSerializer,
        responses={
            201: MerchantBalanceSerializer,
            402: OpenApiResponse(description="Insufficient balance"),
        },
        tags=["Treasury"],
    )
    def post(self, request):
        serializer = WithdrawalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = TreasuryLedger.withdraw(
            request.user.merchant_id,
            data["amount"],
            tx_signature=data["tx_signature"],
            currency=data.get("currency"),
        )
        if not result.success:
            return service_failure_response(result)
        return Response(MerchantBalanceSerializer(result.data).data, status=status.HTTP_201_CREATED)


class TreasuryTransactionListView(MerchantAPIView):
    """
    GET /api/v1/treasury/transactions/?type=&currency=&limit=&offset=

    Returns the audit log newest first; limit is clamped to 200.
    """

    @extend_schema(
        operation_id="list_treasury_transactions",
        summary="List treasury transactions",
        parameters=[TransactionQuerySerializer],
        responses={200: TreasuryTransactionSerializer(many=True)},
        tags=["Treasury"],
    )
    def get(self, request):
        query = TransactionQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        transactions = TreasuryLedger.get_transactions(
            request.user.merchant_id,
            type=params.get("type"),
            currency=params.get("currency"),
            limit=params.get("limit"),
            offset=params["offset"],
        )
        return Response(
            {
                "results": TreasuryTransactionSerializer(transactions, many=True).data,
                "limit": params.get("limit"),
                "offset": params["offset"],
            }
        )
