"""
Domain Mutators

Pure transformations ``(snapshot, args) -> snapshot``. Nothing here touches
storage, the clock of the gateway or the session; the container pipes the
results through the MutationGateway.

Menu items have no lifecycle of their own: every menu operation locates the
owning restaurant and goes through ``update_restaurant`` with the new menu
spliced in.

Update and delete of an unknown id raise NotFoundError and leave the
snapshot untouched.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from app.core.exceptions import NotFoundError, StateValidationError
from app.schemas import (
    CartItem,
    Coordinates,
    GlobalSettings,
    MasterState,
    MenuItem,
    Order,
    OrderStatus,
    Restaurant,
    User,
    UserRight,
    UserRole,
)


def new_id() -> str:
    return uuid.uuid4().hex[:9]


def placeholder_image(seed: str, width: int, height: int) -> str:
    return f"https://picsum.photos/seed/{seed}/{width}/{height}"


# =============================================================================
# RESTAURANTS
# =============================================================================

def add_restaurant(state: MasterState, restaurant: Restaurant) -> MasterState:
    return state.model_copy(update={"restaurants": [*state.restaurants, restaurant]})


def update_restaurant(state: MasterState, restaurant: Restaurant) -> MasterState:
    if state.find_restaurant(restaurant.id) is None:
        raise NotFoundError("Restaurant", restaurant.id)
    restaurants = [restaurant if r.id == restaurant.id else r for r in state.restaurants]
    return state.model_copy(update={"restaurants": restaurants})


def delete_restaurant(state: MasterState, restaurant_id: str) -> MasterState:
    if state.find_restaurant(restaurant_id) is None:
        raise NotFoundError("Restaurant", restaurant_id)
    restaurants = [r for r in state.restaurants if r.id != restaurant_id]
    return state.model_copy(update={"restaurants": restaurants})


# =============================================================================
# MENU ITEMS
# =============================================================================

def _owning_restaurant(state: MasterState, restaurant_id: str) -> Restaurant:
    restaurant = state.find_restaurant(restaurant_id)
    if restaurant is None:
        raise NotFoundError("Restaurant", restaurant_id)
    return restaurant


def _with_menu(restaurant: Restaurant, menu: list[MenuItem]) -> Restaurant:
    return restaurant.model_copy(update={"menu": menu})


def add_menu_item(state: MasterState, restaurant_id: str, item: MenuItem) -> MasterState:
    restaurant = _owning_restaurant(state, restaurant_id)
    return update_restaurant(state, _with_menu(restaurant, [*restaurant.menu, item]))


def update_menu_item(state: MasterState, restaurant_id: str, item: MenuItem) -> MasterState:
    restaurant = _owning_restaurant(state, restaurant_id)
    if not any(m.id == item.id for m in restaurant.menu):
        raise NotFoundError("Menu item", item.id)
    menu = [item if m.id == item.id else m for m in restaurant.menu]
    return update_restaurant(state, _with_menu(restaurant, menu))


def delete_menu_item(state: MasterState, restaurant_id: str, item_id: str) -> MasterState:
    restaurant = _owning_restaurant(state, restaurant_id)
    if not any(m.id == item_id for m in restaurant.menu):
        raise NotFoundError("Menu item", item_id)
    menu = [m for m in restaurant.menu if m.id != item_id]
    return update_restaurant(state, _with_menu(restaurant, menu))


# =============================================================================
# ORDERS
# =============================================================================

def add_order(state: MasterState, order: Order) -> MasterState:
    """Prepend, so the most recent order comes first."""
    return state.model_copy(update={"orders": [order, *state.orders]})


def update_order(state: MasterState, order: Order) -> MasterState:
    if state.find_order(order.id) is None:
        raise NotFoundError("Order", order.id)
    orders = [order if o.id == order.id else o for o in state.orders]
    return state.model_copy(update={"orders": orders})


def delete_order(state: MasterState, order_id: str) -> MasterState:
    if state.find_order(order_id) is None:
        raise NotFoundError("Order", order_id)
    return state.model_copy(update={"orders": [o for o in state.orders if o.id != order_id]})


def set_order_status(state: MasterState, order_id: str, status: OrderStatus) -> MasterState:
    # Transitions out of Delivered/Cancelled are not blocked.
    order = state.find_order(order_id)
    if order is None:
        raise NotFoundError("Order", order_id)
    return update_order(state, order.model_copy(update={"status": status}))


def reprice_order(
    state: MasterState,
    order_id: str,
    items: list[CartItem],
    delivery_fee: float,
) -> MasterState:
    """Swap an order's items and recompute its total."""
    order = state.find_order(order_id)
    if order is None:
        raise NotFoundError("Order", order_id)
    if not items:
        raise StateValidationError("An order must have at least one item.")
    return update_order(
        state,
        order.model_copy(update={"items": list(items), "total": order_total(items, delivery_fee)}),
    )


def order_total(items: list[CartItem], delivery_fee: float) -> float:
    return sum(item.price * item.quantity for item in items) + delivery_fee


# =============================================================================
# USERS & SETTINGS
# =============================================================================

def add_user(state: MasterState, user: User) -> MasterState:
    return state.model_copy(update={"users": [*state.users, user]})


def delete_user(state: MasterState, user_id: str) -> MasterState:
    if not any(u.id == user_id for u in state.users):
        raise NotFoundError("User", user_id)
    return state.model_copy(update={"users": [u for u in state.users if u.id != user_id]})


def replace_settings(state: MasterState, settings: GlobalSettings) -> MasterState:
    return state.model_copy(update={"settings": settings})


# =============================================================================
# CART (session only)
# =============================================================================

def cart_add(cart: list[CartItem], item: CartItem) -> list[CartItem]:
    """Bump the quantity of a known item id, otherwise append it with quantity 1."""
    if any(i.id == item.id for i in cart):
        return [i.model_copy(update={"quantity": i.quantity + 1}) if i.id == item.id else i for i in cart]
    return [*cart, item.model_copy(update={"quantity": 1})]


def cart_remove(cart: list[CartItem], item_id: str) -> list[CartItem]:
    return [i for i in cart if i.id != item_id]


def cart_item_from_menu(restaurant: Restaurant, item: MenuItem) -> CartItem:
    return CartItem(
        **item.model_dump(),
        quantity=1,
        restaurant_id=restaurant.id,
        restaurant_name=restaurant.name,
    )


# =============================================================================
# BUILDERS
# =============================================================================

def new_restaurant(name: str, cuisine: str = "", image: Optional[str] = None) -> Restaurant:
    if not name.strip():
        raise StateValidationError("Restaurant name is required")
    return Restaurant(
        id=new_id(),
        name=name,
        cuisine=cuisine,
        rating=5.0,
        image=image or placeholder_image(name, 600, 400),
        delivery_time="20-30 min",
        menu=[],
    )


def new_menu_item(
    name: str,
    price: float,
    description: str = "",
    category: str = "",
    image: Optional[str] = None,
) -> MenuItem:
    if not name.strip():
        raise StateValidationError("Item name is required")
    if price < 0:
        raise StateValidationError("Price cannot be negative")
    return MenuItem(
        id=new_id(),
        name=name,
        description=description,
        price=price,
        category=category,
        image=image or placeholder_image(name, 200, 200),
    )


def new_staff_user(username: str, password: str, rights: list[UserRight], created_ms: int) -> User:
    if not username.strip() or not password:
        raise StateValidationError("Username and password are required")
    if not rights:
        raise StateValidationError("Please assign at least one right")
    return User(
        id=f"staff-{created_ms}",
        identifier=username,
        password=password,
        role=UserRole.STAFF,
        rights=list(dict.fromkeys(rights)),
    )


def new_order(
    customer_name: str,
    contact_no: str,
    address: str,
    items: list[CartItem],
    delivery_fee: float,
    coordinates: Optional[Coordinates] = None,
) -> Order:
    return Order(
        id=new_id(),
        customer_name=customer_name,
        contact_no=contact_no,
        address=address,
        coordinates=coordinates,
        items=list(items),
        total=order_total(items, delivery_fee),
        status=OrderStatus.PENDING,
        created_at=datetime.now(timezone.utc),
    )
