"""
Invoice rendering.

Builds the plain-text invoice a customer downloads from their order
history. Pure read: nothing here touches state.
"""

import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from app.schemas import GlobalSettings, Order

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
INVOICE_TEMPLATE = "invoice.txt.j2"

_environment = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)


def render_invoice(order: Order, settings: GlobalSettings) -> str:
    """
    Render an order as a plain-text invoice.

    The delivery line is the order total minus the item subtotal, so repriced
    orders and fee changes after checkout are reflected as charged.
    """
    symbol = settings.general.currency_symbol
    subtotal = sum(item.subtotal for item in order.items)

    def money(amount: float) -> str:
        return f"{symbol} {amount:,.2f}".rjust(16)

    template = _environment.get_template(INVOICE_TEMPLATE)
    text = template.render(
        order=order,
        general=settings.general,
        payments=settings.payments,
        subtotal=subtotal,
        delivery=max(order.total - subtotal, 0),
        money=money,
    )
    logger.debug(f"Rendered invoice for order {order.id}")
    return text
