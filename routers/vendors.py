import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from auth import Message, get_current_user
from database import Database, get_db

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix='/api/vendors',
    tags=['Vendors']
)


class Vendor(BaseModel):
    id: int
    name: str

class VendorCreate(BaseModel):
    name: str | None = None


# Public: every vendor, no filtering
@router.get('', response_model=List[Vendor])
async def get_vendors(db: Database = Depends(get_db)):
    try:
        async with db.acquire() as conn:
            records = await conn.fetch('SELECT id, name FROM vendors')
    except Exception:
        logger.exception('Error fetching vendors')
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error fetching vendors")
    return [dict(r) for r in records]


# Vendor names are not unique, duplicates are stored as separate rows
@router.post('', response_model=Message)
async def create_vendor(vendor: VendorCreate | None = None, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    vendor = vendor or VendorCreate()
    if not vendor.name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Vendor name required")
    try:
        async with db.acquire() as conn:
            await conn.execute('INSERT INTO vendors (name) VALUES ($1)', vendor.name)
    except Exception:
        logger.exception('Error adding vendor %r', vendor.name)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error adding vendor")
    logger.info('Vendor %r added by %s', vendor.name, current_user.get('username'))
    return {'message': 'Vendor added'}
