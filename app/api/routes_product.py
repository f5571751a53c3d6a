from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from app.core.exceptions import NotFoundError, ValidationError
from app.crud import product as crud_product
from app.db.deps import get_db, require_admin
from app.models.models import User
from app.schemas.product import (
    CategoryListOut,
    ProductCreate,
    ProductDetailOut,
    ProductListOut,
    ProductMutationOut,
    ProductUpdate,
)
from app.schemas.schemas import MessageResponse
from app.services.image_service import delete_product_images, save_product_images

logger = logging.getLogger(__name__)

router = APIRouter()


def _first_error(exc: SchemaValidationError) -> str:
    err = exc.errors()[0]
    field = ".".join(str(part) for part in err.get("loc", ()))
    return f"{field}: {err.get('msg')}" if field else err.get("msg", "Invalid product data")


def _listing(products, total: int, limit: int, offset: int) -> dict:
    return {
        "products": products,
        "pagination": {"total": total, "limit": limit, "offset": offset},
    }


# ✅ Public catalog listing
@router.get("/", response_model=ProductListOut)
def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    products, total = crud_product.list_products(db, category=category, search=search, limit=limit, offset=offset)
    return _listing(products, total, limit, offset)


@router.get("/categories/list", response_model=CategoryListOut)
def list_categories(db: Session = Depends(get_db)):
    return {"categories": crud_product.get_categories(db)}


# ✅ Products created by the calling admin
@router.get("/admin/products", response_model=ProductListOut)
def list_admin_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    products, total = crud_product.list_products(
        db, category=category, search=search, added_by=admin.id, limit=limit, offset=offset
    )
    return _listing(products, total, limit, offset)


@router.get("/{product_id}", response_model=ProductDetailOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = crud_product.get_product_by_id(db, product_id)
    if not product:
        raise NotFoundError("Product not found")
    return {"product": product}


@router.post("/", response_model=ProductMutationOut, status_code=status.HTTP_201_CREATED)
async def create_product(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    stock_quantity: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    if not name or not price or not category:
        raise ValidationError("Name, price, and category are required")

    try:
        product_data = ProductCreate(
            name=name,
            description=description,
            price=price,
            category=category,
            stock_quantity=stock_quantity or 0,
        )
    except SchemaValidationError as e:
        raise ValidationError(_first_error(e))

    product_data.image_urls = await save_product_images(images)

    try:
        product = crud_product.create_product(db, admin.id, product_data)
    except Exception:
        # Don't leave orphaned files behind when the row could not be written
        delete_product_images(product_data.image_urls)
        raise

    logger.info(f"Admin {admin.id} created product {product.id} ({product.name})")
    return {"message": "Product created successfully", "product": product}


@router.put("/{product_id}", response_model=ProductMutationOut)
async def update_product(
    product_id: int,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    stock_quantity: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    product = crud_product.get_owned_product(db, product_id, admin.id)

    fields = {
        "name": name or None,
        "description": description,
        "price": price or None,
        "category": category or None,
        "stock_quantity": stock_quantity if stock_quantity not in (None, "") else None,
    }
    try:
        update_data = ProductUpdate(**{k: v for k, v in fields.items() if v is not None})
    except SchemaValidationError as e:
        raise ValidationError(_first_error(e))

    old_images = list(product.image_urls or [])
    new_images = await save_product_images(images)
    if new_images:
        # New uploads replace the whole image set
        update_data.image_urls = new_images

    try:
        product = crud_product.update_product(db, product, update_data)
    except Exception:
        db.rollback()
        delete_product_images(new_images)
        raise

    if new_images:
        delete_product_images(old_images)

    logger.info(f"Admin {admin.id} updated product {product.id}")
    return {"message": "Product updated successfully", "product": product}


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    product = crud_product.get_owned_product(db, product_id, admin.id)
    image_urls = list(product.image_urls or [])

    crud_product.delete_product(db, product)
    delete_product_images(image_urls)

    logger.info(f"Admin {admin.id} deleted product {product_id}")
    return {"message": "Product deleted successfully"}
