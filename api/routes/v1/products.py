"""
api/routes/v1/products.py -- Product CRUD routes for the Storefront REST API.

Routes:
  POST   /products          -- create a product owned by the caller
  GET    /products          -- list the caller's products
  GET    /products/{id}     -- any authenticated caller may read any product
  PUT    /products/{id}     -- partial update, owner only
  DELETE /products/{id}     -- hard delete, owner only

Ownership is decided in catalog/service.py. NotFound and Forbidden raised
there are translated to 404 / 403 by the ServiceError handler in api/main.py.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request, Response

from api.models import ProductCreate, ProductResponse, ProductUpdate
from auth.dependencies import get_current_account_id
from catalog.models import ProductPatch
from catalog.service import ProductService

# All product routes require authentication. Handlers that need the caller's
# id declare the dependency again; FastAPI caches it per request.
router = APIRouter(dependencies=[Depends(get_current_account_id)])

# Ids are SQLite INTEGER (signed 64-bit); anything outside is a 422, not a store error.
_ProductId = Annotated[int, Path(gt=0, le=2**63 - 1)]


def _products(request: Request) -> ProductService:
    return request.app.state.product_service


@router.post("/products", response_model=ProductResponse, status_code=201)
def create_product(
    request: Request,
    body: ProductCreate,
    account_id: int = Depends(get_current_account_id),
) -> ProductResponse:
    product = _products(request).create(account_id, body.name, body.description, body.price)
    return ProductResponse.from_product(product)


@router.get("/products", response_model=list[ProductResponse])
def list_products(request: Request, account_id: int = Depends(get_current_account_id)) -> list[ProductResponse]:
    """Return every product owned by the caller."""
    return [ProductResponse.from_product(p) for p in _products(request).list_by_owner(account_id)]


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(request: Request, product_id: _ProductId) -> ProductResponse:
    return ProductResponse.from_product(_products(request).get_by_id(product_id))


@router.put("/products/{product_id}", response_model=ProductResponse)
def update_product(
    request: Request,
    product_id: _ProductId,
    body: ProductUpdate,
    account_id: int = Depends(get_current_account_id),
) -> ProductResponse:
    """Update name, description and/or price. Empty fields are left unchanged."""
    patch = ProductPatch(name=body.name, description=body.description, price=body.price)
    product = _products(request).update(product_id, account_id, patch)
    return ProductResponse.from_product(product)


@router.delete("/products/{product_id}", status_code=204)
def delete_product(
    request: Request,
    product_id: _ProductId,
    account_id: int = Depends(get_current_account_id),
) -> Response:
    _products(request).delete(product_id, account_id)
    return Response(status_code=204)
