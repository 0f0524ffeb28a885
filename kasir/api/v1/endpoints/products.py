"""
Product catalog API endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from kasir.api.deps import Services, get_services
from kasir.core.exceptions import ProductNotFoundError
from kasir.models.catalog import Product, ProductCategory

router = APIRouter()


class ProductRequest(BaseModel):
    """Request model for creating or replacing a product."""
    name: str = Field(..., min_length=1, description="Product name")
    price: int = Field(..., ge=0, description="Unit price in rupiah")
    category: ProductCategory = Field(ProductCategory.UNCATEGORIZED, description="Category")
    barcode: str = Field("", description="Barcode")
    image: str = Field("", description="Image reference")


@router.get("")
async def list_products(q: Optional[str] = None, services: Services = Depends(get_services)):
    products = services.catalog.search(q) if q else services.catalog.list_products()
    return {"products": [product.to_storage() for product in products], "count": len(products)}


@router.post("", status_code=201)
async def create_product(request: ProductRequest, services: Services = Depends(get_services)):
    product = services.catalog.add_product(**request.model_dump())
    return product.to_storage()


@router.get("/barcode/{barcode}")
async def find_by_barcode(barcode: str, services: Services = Depends(get_services)):
    product = services.catalog.find_product_by_barcode(barcode)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product.to_storage()


@router.get("/{product_id}")
async def get_product(product_id: int, services: Services = Depends(get_services)):
    product = services.catalog.find_product_by_id(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product.to_storage()


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    request: ProductRequest,
    services: Services = Depends(get_services),
):
    try:
        product = services.catalog.update_product(Product(id=product_id, **request.model_dump()))
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return product.to_storage()


@router.delete("/{product_id}", status_code=204)
async def delete_product(product_id: int, services: Services = Depends(get_services)):
    try:
        services.catalog.delete_product(product_id)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
