"""
Cart API endpoints for the active (saved) cart.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, model_validator

from kasir.api.deps import Services, get_services

router = APIRouter()


class AddItemRequest(BaseModel):
    """Add by product id or by scanned barcode."""
    product_id: Optional[int] = Field(None, description="Product ID")
    barcode: Optional[str] = Field(None, description="Scanned or typed barcode")
    quantity: int = Field(1, gt=0, description="Units to add")

    @model_validator(mode="after")
    def check_reference(self):
        if self.product_id is None and not self.barcode:
            raise ValueError("Either product_id or barcode is required")
        return self


class QuantityChangeRequest(BaseModel):
    delta: int = Field(..., description="Units to add (positive) or remove (negative)")


def _cart_response(services: Services):
    lines = services.cart.get_cart()
    return {
        "items": [line.to_storage() for line in lines],
        "totals": services.checkout.compute_totals(lines).to_storage(),
    }


@router.get("")
async def get_cart(services: Services = Depends(get_services)):
    return _cart_response(services)


@router.post("/items")
async def add_item(request: AddItemRequest, services: Services = Depends(get_services)):
    if request.product_id is not None:
        product = services.catalog.find_product_by_id(request.product_id)
    else:
        product = services.catalog.find_product_by_barcode(request.barcode)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")

    services.cart.add_product(product, request.quantity)
    return _cart_response(services)


@router.patch("/items/{product_id}")
async def change_quantity(
    product_id: int,
    request: QuantityChangeRequest,
    services: Services = Depends(get_services),
):
    services.cart.update_quantity(product_id, request.delta)
    return _cart_response(services)


@router.delete("/items/{product_id}")
async def remove_item(product_id: int, services: Services = Depends(get_services)):
    services.cart.remove_item(product_id)
    return _cart_response(services)


@router.delete("")
async def clear_cart(services: Services = Depends(get_services)):
    services.cart.clear()
    return _cart_response(services)
