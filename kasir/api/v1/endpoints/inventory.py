"""
Inventory API endpoints for stock movements and stock levels.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from kasir.api.deps import Services, get_services
from kasir.models.inventory import MovementDirection

router = APIRouter()


class StockMovementRequest(BaseModel):
    """Request model for a manual stock movement."""
    product_id: int = Field(..., gt=0, description="Product ID")
    product_name: Optional[str] = Field(None, description="Defaults to the catalog name")
    direction: MovementDirection = Field(..., description="in or out")
    quantity: int = Field(..., gt=0, description="Units moved")
    reason: str = Field(..., min_length=1, description="Restock, damage, correction, ...")
    user_id: Optional[str] = Field(None, description="Who made the change")


class MinimumStockRequest(BaseModel):
    min_stock: int = Field(..., ge=0, description="Low-stock threshold")


@router.post("/movements")
async def record_movement(movement: StockMovementRequest, services: Services = Depends(get_services)):
    """
    Record a stock movement.

    Appends to the movement log and updates the product's stock level;
    stock never goes below zero.
    """
    product_name = movement.product_name
    if product_name is None:
        product = services.catalog.find_product_by_id(movement.product_id)
        if product is None:
            raise HTTPException(status_code=404, detail=f"Product {movement.product_id} not found")
        product_name = product.name

    recorded = services.stock_ledger.record_movement(
        movement.product_id,
        product_name,
        movement.direction,
        movement.quantity,
        movement.reason,
        user_id=movement.user_id,
    )
    return {
        "movement": recorded.to_storage(),
        "current_stock": services.stock_ledger.get_current_stock(movement.product_id),
    }


@router.get("/movements")
async def get_stock_movements(
    product_id: Optional[int] = None,
    limit: int = 100,
    services: Services = Depends(get_services),
):
    """Stock movement history, newest first."""
    limit = max(0, min(limit, services.settings.stock_movement_limit))
    movements = services.stock_ledger.get_stock_movements(product_id=product_id, limit=limit)
    return {
        "movements": [movement.to_storage() for movement in movements],
        "count": len(movements),
    }


@router.get("/low-stock")
async def get_low_stock_products(services: Services = Depends(get_services)):
    """Products at or below their minimum stock."""
    products = services.stock_ledger.get_low_stock_products()
    return {
        "products": [stock.to_storage() for stock in products],
        "count": len(products),
    }


@router.get("/stocks")
async def get_product_stocks(services: Services = Depends(get_services)):
    stocks = services.stock_ledger.get_product_stocks()
    return {"stocks": [stock.to_storage() for stock in stocks], "count": len(stocks)}


@router.put("/{product_id}/min-stock")
async def set_minimum_stock(
    product_id: int,
    request: MinimumStockRequest,
    services: Services = Depends(get_services),
):
    stock = services.stock_ledger.set_minimum_stock(product_id, request.min_stock)
    return stock.to_storage()


@router.get("/{product_id}")
async def get_product_stock(product_id: int, services: Services = Depends(get_services)):
    """Current stock level and status for one product."""
    stock = services.stock_ledger.get_product_stock(product_id)
    return {
        "product_id": product_id,
        "current_stock": stock.current_stock if stock else 0,
        "min_stock": stock.min_stock if stock else None,
        "last_updated": stock.last_updated.isoformat() if stock else None,
        "status": services.stock_ledger.get_stock_status(product_id).value,
    }
