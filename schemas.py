"""
Database Schemas for the Maate food-delivery marketplace

Each Pydantic model below corresponds to a MongoDB collection.
The collection name is the lowercase class name (e.g., User -> "user").
References between collections are stored as string ids.
"""
import logging
from datetime import datetime
from typing import List, Optional, Literal, Dict

from pydantic import BaseModel, ConfigDict, Field, EmailStr, computed_field, field_validator

from database import serialize_doc
from errors import CartItemNotFound

logger = logging.getLogger(__name__)

Role = Literal["user", "admin", "restaurant", "driver"]
OrderStatus = Literal["pending", "confirmed", "preparing", "out_for_delivery", "delivered", "cancelled"]


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class Address(BaseModel):
    label: str = Field("Home", description="e.g., Home, Work")
    line1: str
    line2: Optional[str] = None
    city: str
    pincode: Optional[str] = None


class User(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Full name")
    email: EmailStr = Field(..., description="Unique email address")
    phone: Optional[str] = Field(None, min_length=7, max_length=15)
    role: Role = Field("user", description="Role tag checked by the route guards")
    password_hash: Optional[str] = Field(None, description="BCrypt password hash")
    otp: Optional[str] = Field(None, description="One-time password, never returned by the API")
    otp_expiry: Optional[datetime] = None
    addresses: List[Address] = []
    is_active: bool = True
    is_blocked: bool = False
    blocked_reason: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return _strip(value)


class UserProfile(BaseModel):
    """Public projection of a user document.

    Only the fields declared here leave the API; password and OTP fields are
    dropped because they are not part of the model.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    name: str
    email: str
    phone: Optional[str] = None
    role: str = "user"
    addresses: List[Address] = []
    is_active: bool = True
    is_blocked: bool = False
    blocked_reason: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def status(self) -> str:
        if self.is_blocked:
            return "blocked"
        return "active" if self.is_active else "inactive"

    @classmethod
    def from_document(cls, doc: dict) -> "UserProfile":
        return cls.model_validate(serialize_doc(doc))


class Restaurant(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Restaurant name")
    description: Optional[str] = Field(None, max_length=500)
    address: Optional[str] = None
    phone: Optional[str] = None
    cuisine: List[str] = []
    image: Optional[str] = None
    owner_id: Optional[str] = Field(None, description="Reference to user _id of the owner")
    rating: float = Field(0.0, ge=0, le=5)
    is_active: bool = True

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return _strip(value)


class Category(BaseModel):
    restaurant_id: str = Field(..., description="Reference to restaurant _id")
    name: str = Field(..., min_length=1, max_length=50, description="Category name")
    description: Optional[str] = Field(None, description="Category description")
    image: Optional[str] = None
    is_active: bool = True

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return _strip(value)


class Item(BaseModel):
    restaurant_id: str = Field(..., description="Reference to restaurant _id")
    category: Optional[str] = Field(None, description="Category name")
    name: str = Field(..., min_length=1, max_length=100, description="Item name")
    description: Optional[str] = Field(None, max_length=500)
    price: float = Field(..., ge=0)
    image: Optional[str] = None
    is_available: bool = True

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return _strip(value)


class Plan(BaseModel):
    restaurant_id: str = Field(..., description="Reference to restaurant _id")
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    duration_days: int = Field(30, ge=1, description="Subscription length in days")
    meals_per_day: int = Field(1, ge=1, le=5)
    is_active: bool = True


class Offer(BaseModel):
    restaurant_id: str = Field(..., description="Reference to restaurant _id")
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    discount_type: Literal["percent", "flat"] = "percent"
    discount_value: float = Field(..., ge=0)
    min_order_amount: float = Field(0.0, ge=0)
    is_active: bool = True


class Driver(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=7, max_length=15)
    vehicle_number: Optional[str] = None
    is_available: bool = True
    is_active: bool = True


class CartItem(BaseModel):
    item_id: str = Field(..., description="Reference to item _id")
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    image: Optional[str] = None
    category: Optional[str] = None
    item_total: float = Field(0.0, ge=0, description="price * quantity")

    @field_validator("name", "description", "image", "category", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _strip(value)


class Cart(BaseModel):
    """One user's cart at one restaurant.

    Every mutating method recomputes the totals, so a cart handed to
    ``carts.save_cart`` always has ``subtotal == sum(price * quantity)``
    and ``total == subtotal``.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id")
    user_id: str = Field(..., description="Reference to user _id")
    restaurant_id: str = Field(..., description="Reference to restaurant _id")
    items: List[CartItem] = []
    subtotal: float = Field(0.0, ge=0)
    total: float = Field(0.0, ge=0)
    version: int = Field(0, description="Bumped on every save")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def _index_of(self, item_id: str) -> Optional[int]:
        for index, item in enumerate(self.items):
            if item.item_id == str(item_id):
                return index
        return None

    def calculate_totals(self) -> Dict[str, float]:
        for item in self.items:
            item.item_total = item.price * item.quantity
        self.subtotal = sum(item.item_total for item in self.items)
        # no delivery fee or tax
        self.total = self.subtotal
        return {"subtotal": self.subtotal, "total": self.total}

    def add_item(self, data: CartItem) -> CartItem:
        index = self._index_of(data.item_id)
        if index is None:
            line = data.model_copy()
            self.items.append(line)
            logger.debug("Cart %s: added %s x%d", self.id, line.name, line.quantity)
        else:
            line = self.items[index]
            line.quantity += data.quantity
            logger.debug("Cart %s: %s quantity now %d", self.id, line.name, line.quantity)
        self.calculate_totals()
        return line

    def update_item_quantity(self, item_id: str, quantity: int) -> None:
        index = self._index_of(item_id)
        if index is None:
            raise CartItemNotFound()
        if quantity <= 0:
            del self.items[index]
            logger.debug("Cart %s: removed item %s", self.id, item_id)
        else:
            self.items[index].quantity = quantity
            logger.debug("Cart %s: item %s quantity set to %d", self.id, item_id, quantity)
        self.calculate_totals()

    def clear(self) -> None:
        self.items = []
        self.subtotal = 0.0
        self.total = 0.0


class OrderItem(BaseModel):
    item_id: str
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    item_total: float = Field(..., ge=0)


class Order(BaseModel):
    user_id: str = Field(..., description="User placing the order")
    restaurant_id: str = Field(..., description="Reference to restaurant _id")
    order_number: str = Field(..., description="Human-friendly order number")
    items: List[OrderItem] = Field(..., min_length=1)
    subtotal: float = Field(0.0, ge=0)
    total: float = Field(0.0, ge=0)
    status: OrderStatus = "pending"
    delivery_address: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=500)
    driver_id: Optional[str] = Field(None, description="Reference to driver _id once assigned")


class Review(BaseModel):
    user_id: str
    restaurant_id: str
    order_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)

    @field_validator("comment", mode="before")
    @classmethod
    def strip_comment(cls, value):
        return _strip(value)
