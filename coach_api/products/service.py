"""
Store products (marketplace links shown in the app's shop tab).
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import status

from coach_api.core import config
from coach_api.core.errors import ApiError, bad_request, not_found, store_errors
from coach_api.core.normalize import parse_int_id, sparse_update, utc_now_iso
from coach_api.core.store import Row, Store, StoreError

from . import page, repository, schemas, scraper

logger = logging.getLogger(__name__)


def require_product_id(raw: Any) -> int:
    product_id = parse_int_id(raw)
    if product_id is None:
        raise bad_request("id is invalid")
    return product_id


async def extract_metadata(payload: schemas.ExtractRequest) -> dict:
    url = payload.url.strip()
    try:
        html = await scraper.fetch_html(url)
    except scraper.ScrapeError as exc:
        logger.warning("product_extract_failed url=%s status=%s reason=%s", url, exc.status_code, exc)
        if exc.status_code is not None:
            raise ApiError(status.HTTP_400_BAD_REQUEST, "Could not access the link.", details=str(exc)) from exc
        raise ApiError(status.HTTP_502_BAD_GATEWAY, "Failed to extract metadata.", details=str(exc)) from exc
    return {
        "titulo": scraper.product_title(html),
        "imagem_url": scraper.og_property(html, "image") or "",
        "link_mercadolivre": url,
    }


async def list_products(store: Store) -> list[Row]:
    with store_errors("Failed to list products."):
        return await repository.list_active(store)


async def create_product(store: Store, payload: schemas.ProductCreateRequest) -> dict:
    titulo = payload.titulo.strip()
    if not titulo:
        raise bad_request("titulo is required")
    with store_errors("Failed to create product."):
        # Not atomic: concurrent creates may share an ordem; order stays usable.
        ordem = await repository.max_order(store) + 1
        created = await repository.create(
            store,
            {
                "titulo": titulo,
                "imagem_url": payload.imagem_url,
                "link_mercadolivre": payload.link_mercadolivre,
                "ordem": ordem,
                "ativo": True,
                "criado_em": utc_now_iso(),
            },
        )
    logger.info("product_created id=%s ordem=%s", (created or {}).get("id"), ordem)
    return {"success": True, "data": created}


async def update_product(store: Store, raw_id: Any, payload: schemas.ProductUpdateRequest) -> dict:
    product_id = require_product_id(raw_id)
    values = sparse_update(
        {
            "titulo": (payload.titulo or "").strip() or None,
            "imagem_url": payload.imagem_url or None,
            "link_mercadolivre": payload.link_mercadolivre or None,
            "ordem": payload.ordem,
        }
    )
    values["atualizado_em"] = utc_now_iso()
    with store_errors("Failed to update product."):
        rows = await repository.update(store, product_id, values)
    if not rows:
        raise not_found("Product not found.")
    return {"success": True, "data": rows[0]}


async def delete_product(store: Store, raw_id: Any) -> dict:
    product_id = require_product_id(raw_id)
    with store_errors("Failed to delete product."):
        await repository.update(store, product_id, {"ativo": False})
    logger.info("product_deactivated id=%s", product_id)
    return {"success": True, "message": "Product deleted."}


async def _scraped_images(link: str) -> tuple[list[str], str | None]:
    try:
        html = await scraper.fetch_html(link)
    except scraper.ScrapeError as exc:
        logger.warning("product_page_scrape_failed link=%s reason=%s", link, exc)
        return [], None
    return scraper.product_images(html), scraper.og_property(html, "image")


async def product_page(store: Store, raw_id: Any) -> tuple[int, str]:
    """
    (status code, HTML) for the shareable product page.
    """
    product_id = parse_int_id(raw_id)
    if product_id is None:
        return status.HTTP_404_NOT_FOUND, page.render_not_found()
    try:
        product = await repository.get(store, product_id)
    except StoreError as exc:
        logger.warning("product_page_lookup_failed id=%s kind=%s code=%s", product_id, exc.kind.value, exc.code)
        product = None
    if product is None:
        return status.HTTP_404_NOT_FOUND, page.render_not_found()

    cover = product.get("imagem_url") or None
    images: list[str] = []
    link = product.get("link_mercadolivre")
    if link:
        images, og_image = await _scraped_images(str(link))
        cover = cover or og_image
    if not images and cover:
        images = [cover]
    html = page.render_product_page(product, images=images, cover=cover, site_url=config.site_url())
    return status.HTTP_200_OK, html
