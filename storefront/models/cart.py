# storefront/models/cart.py
from sqlalchemy import Column, Integer, String, DateTime, JSON, func
from storefront.database import Base

# Persisted cart snapshot, one row per identity storage key
class CartSnapshot(Base):
    __tablename__ = "cart_snapshots" # Table name

    id = Column(Integer, primary_key=True, index=True) # Primary key
    key = Column(String(64), unique=True, index=True, nullable=False) # cart_guest / cart_user_{id}
    payload = Column(JSON, nullable=False, default=list) # Serialized list of cart lines
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now()) # Last write timestamp
