"""
Checkout API endpoints for cash and QRIS payments.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from kasir.api.deps import Services, get_services
from kasir.core.exceptions import CheckoutError
from kasir.models.catalog import CartLine
from kasir.models.sales import Receipt
from kasir.services.checkout import CheckoutAttempt

router = APIRouter()


class CartRequest(BaseModel):
    """Cart to check out; the saved cart is used when items are omitted."""
    items: Optional[List[CartLine]] = Field(None, description="Cart lines")


class CashCheckoutRequest(CartRequest):
    cash: int = Field(..., ge=0, description="Cash tendered in rupiah")


def _resolve_cart(request: CartRequest, services: Services) -> List[CartLine]:
    if request.items is not None:
        return request.items
    return services.cart.get_cart()


def _completed(receipt: Receipt, attempt: CheckoutAttempt, services: Services, from_saved_cart: bool):
    # the caller owns the cart; a saved cart is done with once the sale completes
    if from_saved_cart:
        services.cart.clear()
    return {
        "status": attempt.state.value,
        "receipt": receipt.to_storage(),
        "stock_failures": attempt.stock_failures,
    }


@router.post("/totals")
async def get_totals(request: CartRequest, services: Services = Depends(get_services)):
    """Subtotal, tax and total for a cart."""
    cart = _resolve_cart(request, services)
    return services.checkout.compute_totals(cart).to_storage()


@router.post("/cash")
async def checkout_cash(request: CashCheckoutRequest, services: Services = Depends(get_services)):
    """
    Complete a cash sale.

    Records the transaction, decrements stock for every line and returns
    the receipt. Rejected with 400 for an empty cart or insufficient cash.
    """
    cart = _resolve_cart(request, services)
    try:
        attempt = services.checkout.begin(cart)
        receipt = services.checkout.pay_cash(attempt, request.cash)
    except CheckoutError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _completed(receipt, attempt, services, request.items is None)


@router.post("/qris")
async def checkout_qris(request: CartRequest, services: Services = Depends(get_services)):
    """
    Complete a QRIS sale after the simulated payment confirmation.

    Change is always 0; a declined or timed-out confirmation returns 400 and
    leaves the cart untouched.
    """
    cart = _resolve_cart(request, services)
    try:
        attempt = services.checkout.begin(cart)
        receipt = await services.checkout.confirm_qris(attempt, services.qris)
    except CheckoutError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _completed(receipt, attempt, services, request.items is None)


@router.get("/qris/payload")
async def get_qris_payload(services: Services = Depends(get_services)):
    """Merchant payload to render as a QR code."""
    return {"payload": services.qris.qr_payload()}
