"""
Store product endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from coach_api.core.dependencies import get_store
from coach_api.core.store import Store

from . import schemas, service

router = APIRouter()


@router.post("/produtos/extract-ml")
async def extract_metadata(request: schemas.ExtractRequest) -> dict:
    return await service.extract_metadata(request)


@router.get("/produtos")
async def list_products(store: Store = Depends(get_store)) -> list[dict]:
    return await service.list_products(store)


@router.post("/produtos")
async def create_product(request: schemas.ProductCreateRequest, store: Store = Depends(get_store)) -> dict:
    return await service.create_product(store, request)


@router.put("/produtos/{product_id}")
async def update_product(
    product_id: str,
    request: schemas.ProductUpdateRequest,
    store: Store = Depends(get_store),
) -> dict:
    return await service.update_product(store, product_id, request)


@router.delete("/produtos/{product_id}")
async def delete_product(product_id: str, store: Store = Depends(get_store)) -> dict:
    return await service.delete_product(store, product_id)


@router.get("/produto/{product_id}", response_class=HTMLResponse)
async def product_page(product_id: str, store: Store = Depends(get_store)) -> HTMLResponse:
    status_code, html = await service.product_page(store, product_id)
    return HTMLResponse(content=html, status_code=status_code)
