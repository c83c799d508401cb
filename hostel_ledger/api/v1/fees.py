"""
Billing entry endpoints: charges, payments and checkout.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from hostel_ledger.api import deps
from hostel_ledger.api.responses import respond
from hostel_ledger.models.base import FeeKind, FeeStatus
from hostel_ledger.schemas.fee import (
    ApplyPaymentRequest,
    BillingEntryResponse,
    ChargeCreate,
    CheckoutRequest,
    CheckoutResponse,
    PaymentResponse,
    SplitPaymentRequest,
)
from hostel_ledger.services.billing import CheckoutService, PaymentService

router = APIRouter(prefix="/fees", tags=["fees"])


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def create_charge(
    request: ChargeCreate,
    service: PaymentService = Depends(deps.get_payment_service),
):
    return respond(service.create_charge(request), PaymentResponse)


@router.get("", response_model=List[BillingEntryResponse])
def list_entries(
    occupant_id: Optional[str] = None,
    status_filter: Optional[FeeStatus] = Query(default=None, alias="status"),
    kind: Optional[FeeKind] = None,
    service: PaymentService = Depends(deps.get_payment_service),
):
    result = service.list_entries(
        occupant_id=occupant_id,
        status=status_filter.value if status_filter else None,
        kind=kind.value if kind else None,
    )
    return respond(result, BillingEntryResponse, many=True)


@router.get("/{fee_id}", response_model=BillingEntryResponse)
def get_entry(fee_id: str, service: PaymentService = Depends(deps.get_payment_service)):
    return respond(service.get_entry(fee_id), BillingEntryResponse)


@router.delete("/{fee_id}")
def delete_entry(fee_id: str, service: PaymentService = Depends(deps.get_payment_service)):
    return respond(service.delete_entry(fee_id))


@router.put("/{fee_id}/pay", response_model=PaymentResponse)
def apply_payment(
    fee_id: str,
    request: ApplyPaymentRequest,
    service: PaymentService = Depends(deps.get_payment_service),
):
    result = service.apply_payment(
        fee_id,
        request.payment_method,
        request.transaction_id,
        payment_date=request.payment_date,
    )
    return respond(result, PaymentResponse)


@router.post("/{fee_id}/payments", response_model=PaymentResponse)
def record_split_payment(
    fee_id: str,
    request: SplitPaymentRequest,
    service: PaymentService = Depends(deps.get_payment_service),
):
    result = service.record_split_payment(
        fee_id,
        request.account_a_amount,
        request.account_b_amount,
        payment_method=request.payment_method,
        account_a_voucher=request.account_a_voucher,
        account_b_voucher=request.account_b_voucher,
        payment_date=request.payment_date,
    )
    return respond(result, PaymentResponse)


@router.post("/{fee_id}/checkout", response_model=CheckoutResponse)
def check_out(
    fee_id: str,
    request: CheckoutRequest,
    service: CheckoutService = Depends(deps.get_checkout_service),
):
    result = service.check_out(fee_id, check_out_date=request.check_out_date, reason=request.reason)
    return respond(result, CheckoutResponse)
