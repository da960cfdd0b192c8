import pytest

from app.core.exceptions import NotFoundError, StateValidationError
from app.schemas import MenuItem, OrderStatus, UserRight, UserRole
from app.state import mutators
from app.state.defaults import default_snapshot


@pytest.fixture
def seed(settings):
    return default_snapshot(timestamp=1, settings=settings)


def _cart(seed, *item_ids):
    restaurant = seed.find_restaurant("1")
    cart = []
    for item_id in item_ids:
        item = next(m for m in restaurant.menu if m.id == item_id)
        cart = mutators.cart_add(cart, mutators.cart_item_from_menu(restaurant, item))
    return cart


def test_add_restaurant_appends(seed):
    restaurant = mutators.new_restaurant("Lahori Tikka", "BBQ, Desi")

    state = mutators.add_restaurant(seed, restaurant)

    assert [r.id for r in state.restaurants] == ["1", restaurant.id]
    assert len(seed.restaurants) == 1


def test_new_restaurant_defaults():
    restaurant = mutators.new_restaurant("Lahori Tikka")

    assert restaurant.rating == 5.0
    assert restaurant.delivery_time == "20-30 min"
    assert restaurant.menu == []
    assert restaurant.image == "https://picsum.photos/seed/Lahori Tikka/600/400"


def test_new_restaurant_requires_name():
    with pytest.raises(StateValidationError):
        mutators.new_restaurant("   ")


def test_update_unknown_restaurant_raises(seed):
    ghost = mutators.new_restaurant("Ghost Kitchen")

    with pytest.raises(NotFoundError):
        mutators.update_restaurant(seed, ghost)


def test_delete_restaurant_discards_its_menu(seed):
    state = mutators.delete_restaurant(seed, "1")

    assert state.restaurants == []
    item_ids = {m.id for r in state.restaurants for m in r.menu}
    assert "m1" not in item_ids and "m2" not in item_ids


def test_menu_item_lifecycle_goes_through_restaurant(seed):
    item = mutators.new_menu_item("Seekh Kabab", 300, category="Main")

    state = mutators.add_menu_item(seed, "1", item)
    assert [m.id for m in state.find_restaurant("1").menu] == ["m1", "m2", item.id]

    cheaper = item.model_copy(update={"price": 250})
    state = mutators.update_menu_item(state, "1", cheaper)
    assert state.find_restaurant("1").menu[-1].price == 250

    state = mutators.delete_menu_item(state, "1", item.id)
    assert [m.id for m in state.find_restaurant("1").menu] == ["m1", "m2"]


def test_menu_item_placeholder_image():
    item = mutators.new_menu_item("Raita", 50)

    assert item.image == "https://picsum.photos/seed/Raita/200/200"


def test_menu_item_negative_price_rejected():
    with pytest.raises(StateValidationError):
        mutators.new_menu_item("Refund Special", -1)


def test_duplicate_menu_item_id_then_update_replaces_every_copy(seed):
    item = MenuItem(id="dup", name="Kheer", price=120)
    state = mutators.add_menu_item(seed, "1", item)
    state = mutators.add_menu_item(state, "1", item)

    state = mutators.update_menu_item(state, "1", item.model_copy(update={"price": 150}))

    copies = [m for m in state.find_restaurant("1").menu if m.id == "dup"]
    assert len(copies) == 2
    assert all(m.price == 150 for m in copies)


def test_menu_item_in_unknown_restaurant(seed):
    with pytest.raises(NotFoundError):
        mutators.add_menu_item(seed, "404", mutators.new_menu_item("Naan", 30))
    with pytest.raises(NotFoundError):
        mutators.delete_menu_item(seed, "1", "not-on-menu")


def test_orders_are_prepended(seed):
    first = mutators.new_order("Ali", "0300", "Clifton", _cart(seed, "m1"), 0)
    second = mutators.new_order("Sana", "0301", "DHA", _cart(seed, "m2"), 0)

    state = mutators.add_order(mutators.add_order(seed, first), second)

    assert [o.id for o in state.orders] == [second.id, first.id]


def test_new_order_total_and_status(seed):
    order = mutators.new_order("Ali", "0300", "Clifton", _cart(seed, "m1", "m2"), 0)

    assert order.total == 500
    assert order.status == OrderStatus.PENDING


@pytest.mark.parametrize(
    "start",
    [OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.OUT_FOR_DELIVERY],
)
def test_cancelled_reachable_from_every_open_status(seed, start):
    order = mutators.new_order("Ali", "0300", "Clifton", _cart(seed, "m1"), 0)
    state = mutators.add_order(seed, order)
    state = mutators.set_order_status(state, order.id, start)

    state = mutators.set_order_status(state, order.id, OrderStatus.CANCELLED)

    assert state.find_order(order.id).status == OrderStatus.CANCELLED
    assert state.find_order(order.id).status.step_index == -1


def test_transitions_out_of_cancelled_are_not_blocked(seed):
    order = mutators.new_order("Ali", "0300", "Clifton", _cart(seed, "m1"), 0)
    state = mutators.add_order(seed, order)
    state = mutators.set_order_status(state, order.id, OrderStatus.CANCELLED)

    state = mutators.set_order_status(state, order.id, OrderStatus.DELIVERED)

    assert state.find_order(order.id).status == OrderStatus.DELIVERED


def test_status_change_leaves_everything_else(seed):
    order = mutators.new_order("Ali", "0300", "Clifton", _cart(seed, "m1"), 0)
    state = mutators.add_order(seed, order)

    state = mutators.set_order_status(state, order.id, OrderStatus.PREPARING)

    updated = state.find_order(order.id)
    assert updated.model_dump(exclude={"status"}) == order.model_dump(exclude={"status"})


def test_reprice_order(seed):
    order = mutators.new_order("Ali", "0300", "Clifton", _cart(seed, "m1"), 0)
    state = mutators.add_order(seed, order)

    state = mutators.reprice_order(state, order.id, _cart(seed, "m1", "m1", "m2"), delivery_fee=100)

    repriced = state.find_order(order.id)
    assert repriced.total == 450 * 2 + 50 + 100
    assert [(i.id, i.quantity) for i in repriced.items] == [("m1", 2), ("m2", 1)]


def test_reprice_order_needs_items(seed):
    order = mutators.new_order("Ali", "0300", "Clifton", _cart(seed, "m1"), 0)
    state = mutators.add_order(seed, order)

    with pytest.raises(StateValidationError):
        mutators.reprice_order(state, order.id, [], delivery_fee=0)


def test_unknown_order_raises(seed):
    with pytest.raises(NotFoundError):
        mutators.set_order_status(seed, "nope", OrderStatus.DELIVERED)
    with pytest.raises(NotFoundError):
        mutators.delete_order(seed, "nope")


def test_users_add_and_delete(seed):
    staff = mutators.new_staff_user("rider1", "pw", [UserRight.ORDERS], created_ms=123)

    state = mutators.add_user(seed, staff)
    assert staff.id == "staff-123"
    assert staff.role == UserRole.STAFF
    assert [u.id for u in state.users] == ["admin-1", "staff-123"]

    state = mutators.delete_user(state, "staff-123")
    assert [u.id for u in state.users] == ["admin-1"]

    with pytest.raises(NotFoundError):
        mutators.delete_user(state, "staff-123")


def test_staff_user_needs_a_right():
    with pytest.raises(StateValidationError, match="at least one right"):
        mutators.new_staff_user("rider1", "pw", [], created_ms=1)


def test_cart_add_increments_existing_item(seed):
    cart = _cart(seed, "m1", "m1")

    assert len(cart) == 1
    assert cart[0].quantity == 2
    assert cart[0].restaurant_name == "Karachi Biryani House"


def test_cart_remove(seed):
    cart = mutators.cart_remove(_cart(seed, "m1", "m2"), "m1")

    assert [i.id for i in cart] == ["m2"]
