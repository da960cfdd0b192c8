"""
Pydantic Schemas for the Master State and the HTTP API

The master state models serialize with camelCase aliases so the JSON
document matches what the storefront clients keep in local storage and in
the remote mirror. They are frozen: mutators build new snapshots with
``model_copy(update=...)`` instead of editing them in place.

Author: Khalil Bannouri
Version: 4.0.0
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS
# =============================================================================

class OrderStatus(str, Enum):
    """Order status workflow. Cancelled is terminal and reachable from any other step."""
    PENDING = "Pending"
    PREPARING = "Preparing"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

    @property
    def step_index(self) -> int:
        """Position on the customer tracking bar; -1 for cancelled orders."""
        if self is OrderStatus.CANCELLED:
            return -1
        return ORDER_STATUS_FLOW.index(self)


ORDER_STATUS_FLOW = [
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
]


class UserRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    STAFF = "staff"


class UserRight(str, Enum):
    """Permission tags gating operator capabilities."""
    ORDERS = "orders"
    RESTAURANTS = "restaurants"
    USERS = "users"
    SETTINGS = "settings"


ALL_RIGHTS = [UserRight.ORDERS, UserRight.RESTAURANTS, UserRight.USERS, UserRight.SETTINGS]


class PlatformStatus(str, Enum):
    LIVE = "Live"
    PAUSED = "Paused"


# =============================================================================
# MASTER STATE MODELS
# =============================================================================

class StateModel(BaseModel):
    """Base for records replicated inside the master document."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class MenuItem(StateModel):
    """A dish owned by exactly one restaurant."""
    id: str
    name: str
    description: str = ""
    price: float = Field(..., ge=0)
    category: str = ""
    image: str = ""


class Restaurant(StateModel):
    """A restaurant and its menu."""
    id: str
    name: str
    cuisine: str = ""
    rating: float = 5.0
    image: str = ""
    delivery_time: str = "20-30 min"
    menu: List[MenuItem] = Field(default_factory=list)

    @property
    def cuisine_tags(self) -> list[str]:
        return [tag.strip() for tag in self.cuisine.split(",") if tag.strip()]


class CartItem(MenuItem):
    """A menu item snapshot in the session cart."""
    quantity: int = Field(default=1, ge=1)
    restaurant_id: str
    restaurant_name: str

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


class Coordinates(StateModel):
    lat: float
    lng: float


class Order(StateModel):
    """A placed order. The total is fixed at creation time."""
    id: str
    customer_name: str
    contact_no: str
    address: str
    coordinates: Optional[Coordinates] = None
    items: List[CartItem] = Field(default_factory=list)
    total: float
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime


class User(StateModel):
    """
    A customer session identity or an operator account.

    ``identifier`` holds the phone number for customers and the username
    for staff and admins. Passwords are stored and compared in plaintext.
    """
    id: str
    identifier: str
    password: Optional[str] = None
    role: UserRole
    rights: List[UserRight] = Field(default_factory=list)

    @property
    def is_operator(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.STAFF)

    def has_right(self, right: UserRight) -> bool:
        return right in self.rights


class AdOffer(StateModel):
    id: str
    title: str
    subtitle: str = ""
    image: str = ""
    link: str = "/"
    is_active: bool = True


class GeneralSettings(StateModel):
    platform_name: str = "GAB-EATS"
    currency: str = "PKR"
    currency_symbol: str = "Rs."
    timezone: str = "Asia/Karachi"
    maintenance_mode: bool = False
    platform_status: PlatformStatus = PlatformStatus.LIVE
    theme_id: str = "default"


class CommissionSettings(StateModel):
    default_commission: float = 15
    delivery_fee: float = 0
    min_order_value: float = 200


class PaymentSettings(StateModel):
    cod_enabled: bool = True
    easypaisa_enabled: bool = False
    bank_enabled: bool = False
    bank_details: str = ""


class NotificationSettings(StateModel):
    admin_phone: str = "03000000000"
    notification_phones: List[str] = Field(default_factory=lambda: ["03000000000"])
    order_placed_alert: bool = True


def _default_banners() -> list[AdOffer]:
    return [
        AdOffer(
            id="b1",
            title="50% Off First Order",
            subtitle="Use code GAB50",
            image="https://images.unsplash.com/photo-1504674900247-0877df9cc836?q=80&w=1000",
            link="/",
            is_active=True,
        )
    ]


class MarketingSettings(StateModel):
    banners: List[AdOffer] = Field(default_factory=_default_banners)
    hero_title: str = "Craving something extraordinary?"
    hero_subtitle: str = "#1 Food Delivery in Pakistan"


class FeatureSettings(StateModel):
    ratings_enabled: bool = True
    promo_codes_enabled: bool = True
    wallet_enabled: bool = False


class GlobalSettings(StateModel):
    """Platform-wide configuration, replaced as a whole document."""
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    commissions: CommissionSettings = Field(default_factory=CommissionSettings)
    payments: PaymentSettings = Field(default_factory=PaymentSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    marketing: MarketingSettings = Field(default_factory=MarketingSettings)
    features: FeatureSettings = Field(default_factory=FeatureSettings)


class MasterState(StateModel):
    """
    The single replicated aggregate.

    ``timestamp`` (``_timestamp`` on the wire) is the wall-clock millisecond
    stamp of the last accepted write and the only conflict-resolution signal.
    """
    restaurants: List[Restaurant] = Field(default_factory=list)
    orders: List[Order] = Field(default_factory=list)
    users: List[User] = Field(default_factory=list)
    settings: GlobalSettings = Field(default_factory=GlobalSettings)
    timestamp: int = Field(default=0, alias="_timestamp")

    def to_document(self) -> dict:
        """Serialize to the JSON document stored locally and remotely."""
        return self.model_dump(mode="json", by_alias=True)

    def find_restaurant(self, restaurant_id: str) -> Optional[Restaurant]:
        return next((r for r in self.restaurants if r.id == restaurant_id), None)

    def find_order(self, order_id: str) -> Optional[Order]:
        return next((o for o in self.orders if o.id == order_id), None)


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class CustomerLoginRequest(BaseModel):
    """Customer login by phone number."""
    phone: str = Field(..., min_length=1, max_length=20, examples=["03001234567"])


class StaffLoginRequest(BaseModel):
    username: str = Field(..., min_length=1, examples=["Ansar"])
    password: str = Field(..., min_length=1)


class CartAddRequest(BaseModel):
    """Add one unit of a menu item to the session cart."""
    restaurant_id: str
    item_id: str


class CheckoutRequest(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=100, examples=["Ali Ahmed"])
    address: str = Field(..., min_length=1, max_length=500)
    contact_no: Optional[str] = Field(None, max_length=20)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class RestaurantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    cuisine: str = Field(default="", max_length=200, examples=["Desi, Rice"])
    image: Optional[str] = None


class MenuItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    price: float = Field(..., ge=0)
    category: str = ""
    image: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: OrderStatus


class OrderItemsUpdate(BaseModel):
    """Replacement item list for an existing order."""
    items: List[CartItem] = Field(..., min_length=1)


class StaffUserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)
    rights: List[UserRight] = Field(default_factory=list)


class ReverseGeocodeRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ImageGenerationRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=500)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class SessionResponse(BaseModel):
    """Active identity and cart of this client session."""
    user: Optional[User] = None
    cart: List[CartItem] = Field(default_factory=list)
    cart_subtotal: float = 0.0


class StatsResponse(BaseModel):
    """Operator dashboard statistics."""
    total_orders: int
    pending_orders: int
    revenue: float
    restaurants: int
    users: int


class AddressResponse(BaseModel):
    address: str
    success: bool
    message: Optional[str] = None


class ImageResponse(BaseModel):
    success: bool
    image: Optional[str] = None
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    sync_status: str
    initializing: bool
    remote_mirror: str
    snapshot_timestamp: int
    timestamp: datetime
