"""
api/routes/v1/products.py -- Product catalogue endpoints.

Auth policy (capability sets declared at registration):
  GET    /api/v1/products            public -- active products only
  GET    /api/v1/products/featured   public
  GET    /api/v1/products/{id}       public
  POST   /api/v1/products            {admin, editor}
  PUT    /api/v1/products/{id}       {admin, editor}
  DELETE /api/v1/products/{id}       {admin}
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.models import MessageResponse, Pagination, ProductIn, ProductList, ProductOut
from auth.dependencies import require_roles
from auth.models import ROLE_ADMIN, ROLE_EDITOR, Principal
from content.models import LocalizedText, Product
from content.store import ContentStore, page_count

router = APIRouter()

can_edit = require_roles(ROLE_ADMIN, ROLE_EDITOR)
can_delete = require_roles(ROLE_ADMIN)


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail={"code": "not_found", "message": "Product not found."})


@router.get("/products", response_model=ProductList)
def list_products(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    category: Optional[str] = Query(None, max_length=100),
    featured: bool = False,
    search: Optional[str] = Query(None, max_length=100),
) -> ProductList:
    store: ContentStore = request.app.state.content_store
    rows, total = store.list_products(page=page, limit=limit, category=category, featured=featured, search=search)
    return ProductList(
        data=[product_to_out(p) for p in rows],
        pagination=Pagination(page=page, limit=limit, total=total, pages=page_count(total, limit)),
    )


@router.get("/products/featured", response_model=list[ProductOut])
def featured_products(request: Request) -> list[ProductOut]:
    store: ContentStore = request.app.state.content_store
    return [product_to_out(p) for p in store.featured_products()]


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(request: Request, product_id: str) -> ProductOut:
    store: ContentStore = request.app.state.content_store
    product = store.get_product(product_id)
    if product is None:
        raise _not_found()
    return product_to_out(product)


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(
    request: Request,
    body: ProductIn,
    principal: Principal = Depends(can_edit),
) -> ProductOut:
    store: ContentStore = request.app.state.content_store
    product_id = store.create_product(product_from_in(body))
    return product_to_out(store.get_product(product_id))


@router.put("/products/{product_id}", response_model=ProductOut)
def update_product(
    request: Request,
    product_id: str,
    body: ProductIn,
    principal: Principal = Depends(can_edit),
) -> ProductOut:
    store: ContentStore = request.app.state.content_store
    if not store.update_product(product_id, product_from_in(body)):
        raise _not_found()
    return product_to_out(store.get_product(product_id))


@router.delete("/products/{product_id}", response_model=MessageResponse)
def delete_product(
    request: Request,
    product_id: str,
    principal: Principal = Depends(can_delete),
) -> MessageResponse:
    store: ContentStore = request.app.state.content_store
    if not store.delete_product(product_id):
        raise _not_found()
    return MessageResponse(message="Product deleted successfully.")


# ---------------------------------------------------------------------------
# Mapping
# ---------------------------------------------------------------------------


def product_from_in(body: ProductIn) -> Product:
    return Product(
        name=LocalizedText(zh=body.name.zh, en=body.name.en),
        description=LocalizedText(zh=body.description.zh, en=body.description.en),
        category=body.category,
        images=list(body.images),
        specifications=list(body.specifications),
        price=body.price,
        featured=body.featured,
        status=body.status.value,
        order=body.order,
    )


def product_to_out(product: Product) -> ProductOut:
    return ProductOut(
        id=product.id,
        name={"zh": product.name.zh, "en": product.name.en},
        description={"zh": product.description.zh, "en": product.description.en},
        category=product.category,
        images=product.images,
        specifications=product.specifications,
        price=product.price,
        featured=product.featured,
        status=product.status,
        order=product.order,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )
