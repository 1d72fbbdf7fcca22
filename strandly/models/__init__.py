"""Data models for the Strandly API."""

from strandly.models.base import CMSDocument, Page, relation_id
from strandly.models.blog import Post, PostStatus
from strandly.models.booking import Booking, BookingRequest, BookingStatus, TimeSlot
from strandly.models.cart import Cart, CartItem, CartLine, PricedCart
from strandly.models.catalog import Product, Service, Stylist, WorkingHours
from strandly.models.user import User

__all__ = [
    "Booking",
    "BookingRequest",
    "BookingStatus",
    "CMSDocument",
    "Cart",
    "CartItem",
    "CartLine",
    "Page",
    "Post",
    "PostStatus",
    "PricedCart",
    "Product",
    "Service",
    "Stylist",
    "TimeSlot",
    "User",
    "WorkingHours",
    "relation_id",
]
