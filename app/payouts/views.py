"""
API views for payouts.

Endpoints:
    POST /api/v1/payouts/ - Create a payout (402 if the treasury cannot fund it)
    GET  /api/v1/payouts/ - List the merchant's payouts
    GET  /api/v1/payouts/{payout_id}/ - Payout detail
    POST /api/v1/payouts/batch/ - Create a batch of payouts
    POST /api/v1/payouts/claim/ - Settle a payout after on-chain delivery
    GET  /api/v1/payouts/claim/?token= - Public claim-link status

Authentication:
    Merchant API key, except the public claim-link lookup.

Claim errors:
    404 unknown token, 409 already claimed, 410 expired
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from core.exception_handler import service_failure_response
from merchants.views import MerchantAPIView
from recipients.services import RecipientDirectory

from .serializers import (
    BatchResultSerializer,
    ClaimPayoutSerializer,
    CreateBatchSerializer,
    CreatedPayoutSerializer,
    CreatePayoutSerializer,
    PayoutListQuerySerializer,
    PayoutSerializer,
    PublicPayoutSerializer,
)
from .services import PAYOUT_EXPIRED, PAYOUT_NOT_FOUND, PayoutLifecycle
from .state_machines import PayoutStatus


class PayoutListCreateView(MerchantAPIView):
    """
    Create and list the merchant's payouts.

    POST /api/v1/payouts/
        Reserve amount + fee from the treasury and open a claim window.
        The response carries auto_delivery_wallet: the wallet on file when
        the recipient has auto-withdraw enabled, else null.

    GET /api/v1/payouts/?status=&limit=&offset=
    """

    @extend_schema(
        operation_id="create_payout",
        summary="Create payout",
        request=CreatePayoutSerializer,
        responses={
            201: CreatedPayoutSerializer,
            400: OpenApiResponse(description="Validation error"),
            402: OpenApiResponse(description="Insufficient treasury balance"),
        },
        tags=["Payouts"],
    )
    def post(self, request):
        serializer = CreatePayoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        merchant = request.user

        result = PayoutLifecycle.create_payout(
            merchant_id=merchant.merchant_id,
            merchant_wallet=merchant.wallet_address,
            email=data["email"],
            amount=data["amount"],
            currency=data.get("currency"),
            memo=data.get("memo") or None,
            metadata=data.get("metadata"),
        )
        if not result.success:
            return service_failure_response(result)

        payout = result.data
        output = CreatedPayoutSerializer(
            payout,
            context={"auto_delivery_wallet": RecipientDirectory.get_auto_delivery_wallet(payout.email)},
        )
        return Response(output.data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="list_payouts",
        summary="List payouts",
        parameters=[PayoutListQuerySerializer],
        responses={200: PayoutSerializer(many=True)},
        tags=["Payouts"],
    )
    def get(self, request):
        query = PayoutListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        payouts = PayoutLifecycle.get_payouts_by_merchant(
            request.user.merchant_id,
            status=params.get("status"),
            limit=params.get("limit"),
            offset=params["offset"],
        )
        return Response(
            {
                "results": PayoutSerializer(payouts, many=True).data,
                "limit": params.get("limit"),
                "offset": params["offset"],
            }
        )


class PayoutDetailView(MerchantAPIView):
    """
    GET /api/v1/payouts/{payout_id}/

    Only the merchant that created the payout can see it.
    """

    @extend_schema(
        operation_id="get_payout",
        summary="Get payout",
        responses={
            200: PayoutSerializer,
            404: OpenApiResponse(description="Payout not found"),
        },
        tags=["Payouts"],
    )
    def get(self, request, payout_id):
        payout = PayoutLifecycle.get_payout(payout_id, merchant_id=request.user.merchant_id)
        if payout is None:
            return Response(
                {"error": "Payout not found", "error_code": PAYOUT_NOT_FOUND},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(PayoutSerializer(payout).data)


class PayoutBatchView(MerchantAPIView):
    """
    POST /api/v1/payouts/batch/

    Items are created independently; the batch status is completed,
    partial or failed depending on how many were created.
    """

    @extend_schema(
        operation_id="create_payout_batch",
        summary="Create payout batch",
        request=CreateBatchSerializer,
        responses={
            201: BatchResultSerializer,
            400: OpenApiResponse(description="Validation error or batch too large"),
        },
        tags=["Payouts"],
    )
    def post(self, request):
        serializer = CreateBatchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        merchant = request.user

        result = PayoutLifecycle.create_batch(
            merchant_id=merchant.merchant_id,
            merchant_wallet=merchant.wallet_address,
            items=data["payouts"],
            currency=data.get("currency"),
        )
        return Response(BatchResultSerializer(result).data, status=status.HTTP_201_CREATED)


class PayoutClaimView(MerchantAPIView):
    """
    Claim endpoints.

    POST /api/v1/payouts/claim/
        Settle one of the merchant's payouts once the on-chain transfer
        to recipient_wallet is confirmed.

    GET /api/v1/payouts/claim/?token=
        Public status of a claim link.
    """

    def get_permissions(self):
        if self.request.method == "GET":
            return [AllowAny()]
        return super().get_permissions()

    @extend_schema(
        operation_id="get_claim_status",
        summary="Get claim link status",
        parameters=[OpenApiParameter("token", str, required=True)],
        responses={
            200: PublicPayoutSerializer,
            400: OpenApiResponse(description="Malformed token"),
            404: OpenApiResponse(description="Payout not found"),
            410: OpenApiResponse(description="Payout expired"),
        },
        tags=["Payouts - Claim"],
    )
    def get(self, request):
        payout = PayoutLifecycle.get_by_claim_token(request.query_params.get("token", ""))
        if payout is None:
            return Response(
                {"error": "Payout not found", "error_code": PAYOUT_NOT_FOUND},
                status=status.HTTP_404_NOT_FOUND,
            )
        if payout.status == PayoutStatus.EXPIRED or (
            payout.status == PayoutStatus.SENT and payout.is_past_expiry
        ):
            return Response(
                {"error": "Payout has expired", "error_code": PAYOUT_EXPIRED},
                status=status.HTTP_410_GONE,
            )
        return Response(PublicPayoutSerializer(payout).data)

    @extend_schema(
        operation_id="settle_payout",
        summary="Settle payout",
        request=ClaimPayoutSerializer,
        responses={
            200: PayoutSerializer,
            404: OpenApiResponse(description="Payout not found"),
            409: OpenApiResponse(description="Payout already claimed"),
            410: OpenApiResponse(description="Payout expired"),
        },
        tags=["Payouts - Claim"],
    )
    def post(self, request):
        serializer = ClaimPayoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payout = PayoutLifecycle.get_by_claim_token(data["claim_token"])
        if payout is None or payout.merchant_id != request.user.merchant_id:
            return Response(
                {"error": "Payout not found", "error_code": PAYOUT_NOT_FOUND},
                status=status.HTTP_404_NOT_FOUND,
            )

        result = PayoutLifecycle.settle_payout(
            data["claim_token"],
            recipient_wallet=data["recipient_wallet"],
            tx_signature=data["tx_signature"],
        )
        if not result.success:
            return service_failure_response(result)
        return Response(PayoutSerializer(result.data).data)
