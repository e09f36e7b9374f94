"""API views for payments, transactions and key deposits.

Checkout goes through Razorpay: the client asks for an order, pays in
the Razorpay widget and sends back the signed payment ids, which are
verified here before the booking is marked paid. Transactions and
deposit refunds are managed by admins and vendor staff.
"""

from __future__ import annotations

import json
import logging

from django.conf import settings  # type: ignore
from django.core.exceptions import ObjectDoesNotExist  # type: ignore
from django.db import transaction  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore

from apps.users.permissions import (
    IsAdminOrVendorStaff,
    IsAdminRole,
    is_platform_admin,
    is_vendor_staff,
    restrict_to_vendor,
)
from shared.api.mixins import EnvelopeResponseMixin
from shared.api.responses import api_error, api_response

from .filters import DepositRefundFilterSet, TransactionFilterSet
from .models import DepositRefund, Transaction
from .razorpay_service import verify_webhook_signature
from .serializers import (
    BulkRefundSerializer,
    CreateOrderSerializer,
    DepositRefundSerializer,
    RefundRequestSerializer,
    TransactionCreateSerializer,
    TransactionSerializer,
    TransactionStatusSerializer,
    VerifyPaymentSerializer,
)
from .services import (
    PaymentError,
    RefundError,
    TransactionError,
    bulk_refund,
    create_payment_order,
    deposit_statistics,
    find_booking,
    handle_webhook_event,
    payment_status,
    process_refund,
    process_renewal,
    verify_payment,
)

logger = logging.getLogger(__name__)


def _owner_filter(user):  # type: ignore
    """Staff may act on any booking they can see, students only on their own."""
    if is_platform_admin(user) or is_vendor_staff(user):
        return None
    return user


class PaymentViewSet(viewsets.GenericViewSet):
    """Razorpay checkout: create order, verify payment, payment status and the webhook."""

    permission_classes = [permissions.IsAuthenticated]
    lookup_field = "booking_id"
    lookup_value_regex = "[^/]+"

    def _load_booking(self, booking_type, identifier):  # type: ignore
        booking = find_booking(booking_type, identifier, user=_owner_filter(self.request.user))
        user = self.request.user
        if is_vendor_staff(user) and not is_platform_admin(user):
            vendor = user.get_vendor()
            if vendor is None or booking.vendor_id != vendor.id:
                raise booking.DoesNotExist("Booking not found")
        return booking

    @action(detail=False, methods=["post"], url_path="razorpay/create-order", url_name="create-order")
    def create_order(self, request):  # type: ignore
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            booking = self._load_booking(data["booking_type"], data["booking_id"])
        except ObjectDoesNotExist:
            return api_error("Booking not found", status.HTTP_404_NOT_FOUND)

        try:
            order, txn = create_payment_order(booking, data.get("amount"), data.get("currency"))
        except PaymentError as e:
            return api_error(str(e))

        return api_response(
            {
                "order": order,
                "key_id": settings.RAZORPAY_KEY_ID,
                "transaction_id": txn.transaction_id,
                "booking_id": booking.booking_id,
            },
            "Order created successfully",
            status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["post"], url_path="razorpay/verify-payment", url_name="verify-payment")
    def verify(self, request):  # type: ignore
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            booking = self._load_booking(data["booking_type"], data["booking_id"])
        except ObjectDoesNotExist:
            return api_error("Booking not found", status.HTTP_404_NOT_FOUND)

        try:
            verify_payment(
                booking,
                data["razorpay_order_id"],
                data["razorpay_payment_id"],
                data["razorpay_signature"],
            )
        except PaymentError as e:
            return api_error(str(e))

        return api_response(payment_status(booking), "Payment verified successfully")

    @action(detail=True, methods=["get"], url_path="status", url_name="status")
    def booking_status(self, request, booking_id=None):  # type: ignore
        booking_type = request.query_params.get("booking_type", Transaction.BookingType.CABIN)
        try:
            booking = self._load_booking(booking_type, booking_id)
        except ObjectDoesNotExist:
            return api_error("Booking not found", status.HTTP_404_NOT_FOUND)
        return api_response(payment_status(booking))

    @action(
        detail=False,
        methods=["post"],
        url_path="razorpay/webhook",
        url_name="webhook",
        permission_classes=[permissions.AllowAny],
        authentication_classes=[],
    )
    def webhook(self, request):  # type: ignore
        """Razorpay server-to-server events, signed over the raw body."""
        body = request.body
        signature = request.headers.get("X-Razorpay-Signature", "")
        if not verify_webhook_signature(body, signature):
            logger.warning("Rejected Razorpay webhook with invalid signature")
            return api_error("Invalid webhook signature")

        try:
            event = json.loads(body)
        except ValueError:
            return api_error("Invalid webhook payload")

        try:
            result = handle_webhook_event(event.get("event", ""), event.get("payload") or {})
        except PaymentError as e:
            logger.error(f"Razorpay webhook processing failed: {e}")
            return api_error("Webhook processing failed", status.HTTP_502_BAD_GATEWAY)

        return api_response({"event": event.get("event"), "result": result}, "Webhook processed successfully")


class TransactionViewSet(
    EnvelopeResponseMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """Transactions: admins see everything, vendor staff their vendor's, students their own."""

    queryset = Transaction.objects.select_related("user", "booking", "hostel_booking", "vendor")
    serializer_class = TransactionSerializer
    filterset_class = TransactionFilterSet

    def get_permissions(self):  # type: ignore
        if self.action in ("create", "renew"):
            return [IsAdminRole()]
        if self.action in ("update", "partial_update"):
            return [IsAdminOrVendorStaff()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if is_platform_admin(user):
            return qs
        if is_vendor_staff(user):
            return restrict_to_vendor(qs, user)
        return qs.filter(user=user)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = TransactionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            booking = find_booking(data["booking_type"], data["booking_id"])
        except ObjectDoesNotExist:
            return api_error("Booking not found", status.HTTP_404_NOT_FOUND)

        is_hostel = data["booking_type"] == Transaction.BookingType.HOSTEL
        txn = Transaction.objects.create(
            user=booking.user,
            booking=None if is_hostel else booking,
            hostel_booking=booking if is_hostel else None,
            booking_type=data["booking_type"],
            transaction_type=data["transaction_type"],
            amount=data["amount"],
            currency=data["currency"],
            status=data["status"],
            additional_months=data.get("additional_months"),
            previous_end_date=booking.end_date,
            new_end_date=data.get("new_end_date"),
            vendor=booking.vendor,
        )
        logger.info(f"Transaction {txn.transaction_id} recorded by {request.user.pk}")
        return api_response(
            TransactionSerializer(txn).data,
            "Transaction created successfully",
            status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):  # type: ignore
        """Only the status of a transaction can change."""
        txn = self.get_object()
        serializer = TransactionStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        txn.status = serializer.validated_data["status"]
        txn.save(update_fields=["status", "updated_at"])
        return api_response(TransactionSerializer(txn).data, "Transaction status updated")

    @action(detail=True, methods=["post"], url_path="process-renewal", url_name="process-renewal")
    def renew(self, request, pk=None):  # type: ignore
        txn = self.get_object()
        try:
            booking = process_renewal(txn, renewed_by=request.user)
        except TransactionError as e:
            return api_error(str(e))

        from apps.bookings.serializers import BookingSerializer  # Local import to prevent circular dependency

        return api_response(BookingSerializer(booking).data, "Booking renewed successfully")


class DepositRefundViewSet(EnvelopeResponseMixin, viewsets.ReadOnlyModelViewSet):
    """Key deposits and their refunds."""

    queryset = DepositRefund.objects.select_related("booking", "user", "cabin", "seat", "vendor")
    serializer_class = DepositRefundSerializer
    filterset_class = DepositRefundFilterSet

    def get_permissions(self):  # type: ignore
        if self.action in ("list", "retrieve"):
            return [permissions.IsAuthenticated()]
        return [IsAdminOrVendorStaff()]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if is_platform_admin(user):
            return qs
        if is_vendor_staff(user):
            return restrict_to_vendor(qs, user)
        return qs.filter(user=user)

    @action(detail=True, methods=["post"], url_path="process-refund", url_name="process-refund")
    def refund(self, request, pk=None):  # type: ignore
        deposit = self.get_object()
        serializer = RefundRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            process_refund(deposit, processed_by=request.user, **serializer.validated_data)
        except RefundError as e:
            return api_error(str(e))

        return api_response(DepositRefundSerializer(deposit).data, "Refund processed successfully")

    @action(detail=False, methods=["post"], url_path="bulk-refund", url_name="bulk-refund")
    def refund_many(self, request):  # type: ignore
        serializer = BulkRefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        deposits = list(self.get_queryset().filter(pk__in=data["ids"]))
        with transaction.atomic():
            result = bulk_refund(
                deposits,
                refund_reason=data["refund_reason"],
                refund_method=data["refund_method"],
                processed_by=request.user,
            )
        result["not_found"] = len(set(data["ids"]) - {d.pk for d in deposits})
        return api_response(
            result,
            f"{result['processed']} deposits refunded, {result['skipped']} skipped",
        )

    @action(detail=False, methods=["get"])
    def statistics(self, request):  # type: ignore
        qs = self.filter_queryset(self.get_queryset())
        return api_response(deposit_statistics(qs))
