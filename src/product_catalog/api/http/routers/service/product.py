"""Product API router with CRUD operations."""

from fastapi import APIRouter, Body, Depends, HTTPException, Response
from loguru import logger
from sqlmodel import Session

from src.product_catalog.api.http.deps import commit_session, get_db_session
from src.product_catalog.core.errors import ConflictError, NotFoundError
from src.product_catalog.entities.product import Product, ProductRepository

router = APIRouter(prefix="/api/products", tags=["products"])

MISSING_BODY_DETAIL = "Request body must be a product object"


@router.get("", response_model=list[Product])
def list_products(
    session: Session = Depends(get_db_session),
) -> list[Product]:
    """List all products ordered by id."""
    repository = ProductRepository(session)
    return repository.list_all()


@router.get("/{product_id}", response_model=Product | None)
def get_product(
    product_id: int,
    session: Session = Depends(get_db_session),
) -> Product | None:
    """Get a product by ID; an unknown id yields ``null``."""
    repository = ProductRepository(session)
    return repository.get(product_id)


@router.post("", response_model=Product)
def create_product(
    product: Product | None = Body(default=None),
    session: Session = Depends(get_db_session),
) -> Product:
    """Create a new product with a caller-assigned id."""
    if product is None:
        raise HTTPException(status_code=400, detail=MISSING_BODY_DETAIL)

    repository = ProductRepository(session)
    try:
        created_product = repository.create(product)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    commit_session(session)
    logger.info("Product {} created", created_product.id)
    return created_product


@router.put("", response_model=Product)
def update_product(
    product: Product | None = Body(default=None),
    session: Session = Depends(get_db_session),
) -> Product:
    """Replace an existing product entirely."""
    if product is None:
        raise HTTPException(status_code=400, detail=MISSING_BODY_DETAIL)

    repository = ProductRepository(session)
    try:
        updated_product = repository.update(product)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    commit_session(session)
    logger.info("Product {} updated", updated_product.id)
    return updated_product


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    session: Session = Depends(get_db_session),
) -> Response:
    """Delete a product. Unknown ids are a no-op."""
    if product_id == 0:
        return Response(status_code=200)

    repository = ProductRepository(session)
    if repository.delete(product_id):
        commit_session(session)
        logger.info("Product {} deleted", product_id)
    return Response(status_code=200)
