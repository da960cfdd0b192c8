"""Read-only projections over the master snapshot and the cart."""

from typing import Iterable

from app.schemas import CartItem, MasterState, Order, OrderStatus, Restaurant, StatsResponse

ALL_CUISINES = "All"

OPEN_STATUSES = (OrderStatus.PENDING, OrderStatus.PREPARING)


def revenue(orders: Iterable[Order]) -> float:
    """Sum of totals over delivered orders."""
    return sum(o.total for o in orders if o.status == OrderStatus.DELIVERED)


def pending_count(orders: Iterable[Order]) -> int:
    """Orders the kitchen still has to deal with (Pending or Preparing)."""
    return sum(1 for o in orders if o.status in OPEN_STATUSES)


def cuisines(restaurants: Iterable[Restaurant]) -> list[str]:
    """The "All" pseudo-tag followed by every distinct cuisine tag, in first-seen order."""
    tags: dict[str, None] = {}
    for restaurant in restaurants:
        for tag in restaurant.cuisine_tags:
            tags.setdefault(tag, None)
    return [ALL_CUISINES, *tags]


def _matches_query(restaurant: Restaurant, needle: str) -> bool:
    if needle in restaurant.name.lower():
        return True
    return any(needle in item.name.lower() for item in restaurant.menu)


def search_restaurants(
    restaurants: Iterable[Restaurant],
    query: str = "",
    cuisine: str = ALL_CUISINES,
) -> list[Restaurant]:
    """Case-insensitive match on restaurant or dish name, narrowed by a cuisine tag."""
    needle = query.strip().lower()
    results = []
    for restaurant in restaurants:
        if needle and not _matches_query(restaurant, needle):
            continue
        if cuisine and cuisine != ALL_CUISINES and cuisine not in restaurant.cuisine_tags:
            continue
        results.append(restaurant)
    return results


def orders_for_contact(orders: Iterable[Order], contact_no: str) -> list[Order]:
    return [o for o in orders if o.contact_no == contact_no]


def cart_subtotal(cart: Iterable[CartItem]) -> float:
    return sum(item.subtotal for item in cart)


def dashboard_stats(state: MasterState) -> StatsResponse:
    return StatsResponse(
        total_orders=len(state.orders),
        pending_orders=pending_count(state.orders),
        revenue=revenue(state.orders),
        restaurants=len(state.restaurants),
        users=len(state.users),
    )
