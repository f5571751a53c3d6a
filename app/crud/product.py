from typing import List, Optional, Tuple
from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session
from app.core.exceptions import AuthorizationError, NotFoundError
from app.models.product import Product
from app.schemas.product import ProductCreate, ProductUpdate

#  Create a product owned by the admin who added it
def create_product(db: Session, admin_id: int, data: ProductCreate) -> Product:
    product = Product(
        name=data.name,
        description=data.description,
        price=data.price,
        category=data.category,
        image_urls=data.image_urls,
        stock_quantity=data.stock_quantity,
        added_by=admin_id,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product

#  Filtered, paginated listing; returns (page, total matching rows)
def list_products(
    db: Session,
    category: Optional[str] = None,
    search: Optional[str] = None,
    added_by: Optional[int] = None,
    limit: int = 10,
    offset: int = 0,
) -> Tuple[List[Product], int]:
    query = db.query(Product)

    if added_by is not None:
        query = query.filter(Product.added_by == added_by)
    if category:
        query = query.filter(Product.category == category)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))

    total = query.count()
    products = (
        query.order_by(Product.created_at.desc(), Product.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return products, total

#  Get one product
def get_product_by_id(db: Session, product_id: int) -> Optional[Product]:
    return db.get(Product, product_id)

def get_categories(db: Session) -> List[str]:
    rows = db.query(Product.category).distinct().order_by(Product.category).all()
    return [row[0] for row in rows]

def get_owned_product(db: Session, product_id: int, admin_id: int) -> Product:
    """Load a product for editing; only the admin who created it may change it."""
    product = get_product_by_id(db, product_id)
    if not product:
        raise NotFoundError("Product not found")
    if product.added_by != admin_id:
        raise AuthorizationError("You can only modify products you created")
    return product

#  Update product (only fields that were sent)
def update_product(db: Session, product: Product, data: ProductUpdate) -> Product:
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in update_data.items():
        setattr(product, key, value)

    db.commit()
    db.refresh(product)
    return product

#  Delete product; cart rows referencing it go with it (ON DELETE CASCADE)
def delete_product(db: Session, product: Product) -> None:
    db.delete(product)
    db.commit()

def decrement_stock(db: Session, product_id: int, quantity: int) -> bool:
    """Atomically take ``quantity`` units off a product's stock.

    The stock check and the write are the same statement, so two concurrent
    buyers can never both take the last unit. Returns False when the product
    does not have enough stock (or no longer exists). Does not commit.
    """
    result = db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock_quantity >= quantity)
        .values(stock_quantity=Product.stock_quantity - quantity, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
