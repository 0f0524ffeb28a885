"""
Main API router for v1 endpoints.
"""
from fastapi import APIRouter

from kasir.api.v1.endpoints import cart, checkout, inventory, products, sales

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(checkout.router, prefix="/checkout", tags=["checkout"])
api_router.include_router(sales.router, prefix="/sales", tags=["sales"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
api_router.include_router(cart.router, prefix="/cart", tags=["cart"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
