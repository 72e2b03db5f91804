import logging
from decimal import Decimal
from typing import List
import asyncpg
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

# Dependencies from our central modules
from auth import Message, get_current_user
from database import Database, get_db

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix='/api/products',
    tags=['Products']
)


# --- Pydantic models ---
class Product(BaseModel):
    id: int
    vendor_id: int
    name: str
    category: str | None = None
    quantity: int
    price: Decimal
    contains: int
    box: int
    vendor_name: str

class ProductIn(BaseModel):
    # Everything is optional here so absence can be told apart from zero
    vendor_id: int | None = None
    name: str | None = None
    category: str | None = None
    quantity: int | None = None
    price: Decimal | None = None
    contains: int | None = None
    box: int | None = None

    def missing_fields(self) -> list[str]:
        """Names of required fields that are absent. Zero is a valid value."""
        missing = [
            field for field in ('vendor_id', 'quantity', 'price', 'contains', 'box')
            if getattr(self, field) is None
        ]
        if not self.name:
            missing.append('name')
        return missing


def _require_fields(product: ProductIn):
    missing = product.missing_fields()
    if missing:
        logger.info('Product rejected, missing fields: %s', ', '.join(missing))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing product fields")


# --- Endpoints ---

# Public: products joined with their vendor's name
@router.get('', response_model=List[Product])
async def get_products(db: Database = Depends(get_db)):
    try:
        async with db.acquire() as conn:
            records = await conn.fetch(
                """
                SELECT p.id, p.vendor_id, p.name, p.category, p.quantity,
                       p.price, p.contains, p.box, v.name AS vendor_name
                FROM products p
                JOIN vendors v ON p.vendor_id = v.id
                """
            )
    except Exception:
        logger.exception('Error fetching products')
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error fetching products")
    return [dict(r) for r in records]


@router.post('', response_model=Message)
async def create_product(product: ProductIn | None = None, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    product = product or ProductIn()
    _require_fields(product)
    try:
        async with db.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO products (vendor_id, name, category, quantity, price, contains, box)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                """,
                product.vendor_id, product.name, product.category, product.quantity,
                product.price, product.contains, product.box
            )
    except asyncpg.ForeignKeyViolationError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Vendor not found")
    except Exception:
        logger.exception('Error adding product %r', product.name)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error adding product")
    logger.info('Product %r added by %s', product.name, current_user.get('username'))
    return {'message': 'Product added'}


# Full replace. An unknown id updates nothing and still succeeds.
@router.put('/{product_id}', response_model=Message)
async def update_product(product_id: int, product: ProductIn | None = None, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    product = product or ProductIn()
    _require_fields(product)
    try:
        async with db.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE products
                SET vendor_id=$1, name=$2, category=$3, quantity=$4, price=$5, contains=$6, box=$7
                WHERE id=$8
                """,
                product.vendor_id, product.name, product.category, product.quantity,
                product.price, product.contains, product.box, product_id
            )
    except asyncpg.ForeignKeyViolationError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Vendor not found")
    except Exception:
        logger.exception('Error updating product %d', product_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error updating product")
    logger.info('Product %d updated by %s (%s)', product_id, current_user.get('username'), result)
    return {'message': 'Product updated'}


@router.delete('/{product_id}', response_model=Message)
async def delete_product(product_id: int, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    """Deletes a product by id. An unknown id deletes nothing and still succeeds."""
    try:
        async with db.acquire() as conn:
            result = await conn.execute('DELETE FROM products WHERE id=$1', product_id)
    except Exception:
        logger.exception('Error deleting product %d', product_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error deleting product")
    logger.info('Product %d deleted by %s (%s)', product_id, current_user.get('username'), result)
    return {'message': 'Product deleted'}
