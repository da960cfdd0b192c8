from datetime import datetime, timezone

from app.schemas import Coordinates, GlobalSettings
from app.services.invoice import render_invoice
from app.state import mutators
from app.state.defaults import default_snapshot


def _order(settings, delivery_fee=0, coordinates=None):
    restaurant = default_snapshot(timestamp=1, settings=settings).find_restaurant("1")
    cart = []
    for item in restaurant.menu:
        cart = mutators.cart_add(cart, mutators.cart_item_from_menu(restaurant, item))
    cart = mutators.cart_add(cart, mutators.cart_item_from_menu(restaurant, restaurant.menu[0]))
    order = mutators.new_order("Ali Ahmed", "03001234567", "House 12, Clifton", cart, delivery_fee, coordinates)
    return order.model_copy(
        update={"id": "abc123xyz", "created_at": datetime(2024, 3, 1, 18, 30, tzinfo=timezone.utc)}
    )


def test_invoice_lists_items_and_totals(settings):
    text = render_invoice(_order(settings, delivery_fee=100), GlobalSettings())

    assert text.startswith("GAB-EATS INVOICE")
    assert "Order:     #ABC123XYZ" in text
    assert "Placed:    01 Mar 2024 18:30 UTC" in text
    assert "2x Chicken Biryani Full" in text
    assert "Rs. 900" in text
    assert "1x Raita" in text
    assert "TOTAL" in text and "Rs. 1,050" in text
    assert "Delivery" in text and "Rs. 100" in text
    assert "Cash on Delivery" in text


def test_invoice_shows_coordinates_when_present(settings):
    with_location = render_invoice(_order(settings, coordinates=Coordinates(lat=24.8607, lng=67.0011)), GlobalSettings())
    without = render_invoice(_order(settings), GlobalSettings())

    assert "Location:  24.8607, 67.0011" in with_location
    assert "Location:" not in without


def test_invoice_uses_platform_settings(settings):
    custom = GlobalSettings().model_copy(deep=True)
    custom = custom.model_copy(
        update={"general": custom.general.model_copy(update={"platform_name": "KHI-EATS", "currency_symbol": "PKR"})}
    )

    text = render_invoice(_order(settings), custom)

    assert text.startswith("KHI-EATS INVOICE")
    assert "PKR 950" in text
    assert "Thank you for ordering with KHI-EATS!" in text


def test_invoice_keeps_fractional_amounts(settings):
    restaurant = default_snapshot(timestamp=1, settings=settings).find_restaurant("1")
    item = mutators.cart_item_from_menu(restaurant, restaurant.menu[0]).model_copy(update={"price": 249.5})
    order = mutators.new_order("Ali Ahmed", "03001234567", "House 12, Clifton", [item], 49.75)

    text = render_invoice(order, GlobalSettings())

    assert "Rs. 249.50" in text
    assert "Rs. 49.75" in text
    assert "Rs. 299.25" in text
    assert "Rs. 250.00" not in text
