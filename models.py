from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, relationship


# Base class for all models
class Base(DeclarativeBase):
    pass


# --- users ---
class User(Base):
    __tablename__ = 'users'
    __table_args__ = (UniqueConstraint('username', name='users_username_key'),)

    id = Column(Integer, primary_key=True)
    username = Column(String(50), nullable=False)
    # bcrypt hash, never the plain password
    password = Column(String(255), nullable=False)


# --- vendors ---
class Vendor(Base):
    __tablename__ = 'vendors'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)

    # The store deletes the products itself (ON DELETE CASCADE)
    products = relationship('Product', back_populates='vendor', passive_deletes=True)


# --- products ---
class Product(Base):
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)
    vendor_id = Column(
        Integer,
        ForeignKey('vendors.id', ondelete='CASCADE', name='products_vendor_id_fkey'),
        nullable=False,
    )
    name = Column(String(100), nullable=False)
    category = Column(String(50), nullable=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    contains = Column(Integer, nullable=False)
    box = Column(Integer, nullable=False)

    vendor = relationship('Vendor', back_populates='products')
