"""
Database module for the Charted Art catalog
"""
from .models import (
    Base,
    Artist,
    Product,
    ProductAttribute,
    BrowsingHistory,
    Order,
    OrderItem,
    ArtistFollow
)

__all__ = [
    "Base",
    "Artist",
    "Product",
    "ProductAttribute",
    "BrowsingHistory",
    "Order",
    "OrderItem",
    "ArtistFollow"
]
