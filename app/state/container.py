"""
Application State Container

Owns one client's view of the system: the live master snapshot, the session
(identity + cart), the mutation gateway and the reconciler. Every write the
UI or the HTTP layer can perform is a method here; each one checks the
acting user's rights, runs a pure mutator and commits the result through
the gateway.

Lifecycle:
    state = AppState()
    await state.start()      # reconcile with the remote mirror (bounded)
    state.place_order(...)   # mutate
    await state.close()      # drain remote writes, drop the subscription and connection

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from app.core.config import Settings, get_settings
from app.core.exceptions import (
    AuthenticationRequired,
    AuthorizationError,
    LocalStoreError,
    NotFoundError,
    RemoteMirrorError,
    StateValidationError,
)
from app.schemas import (
    CartItem,
    Coordinates,
    GlobalSettings,
    MasterState,
    MenuItem,
    Order,
    OrderStatus,
    Restaurant,
    StatsResponse,
    User,
    UserRight,
)
from app.services.local_store import LocalStore
from app.services.remote import get_remote_mirror
from app.services.remote.base import BaseRemoteMirror
from app.state import mutators, views
from app.state.defaults import bootstrap_admin, default_snapshot, now_ms
from app.state.gateway import MutationGateway
from app.state.live import LiveSnapshot
from app.state.reconciler import StateReconciler, SyncStatus, load_local_snapshot
from app.state.session import Session

logger = logging.getLogger(__name__)

ALERT_STATUS = "Pending Dispatch"

# Sentinel: resolve the mirror through the factory.
_FROM_SETTINGS = object()


class AppState:
    """
    Client state container.

    Args:
        settings: Configuration; defaults to get_settings()
        store: Local store; defaults to one rooted at settings.data_path
        remote: Remote mirror, None for local-only; defaults to the factory
        clock: Millisecond clock used for timestamps and generated ids
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[LocalStore] = None,
        remote=_FROM_SETTINGS,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.config = settings or get_settings()
        self.clock = clock or now_ms
        self.store = store or LocalStore(
            directory=self.config.data_path,
            lock_timeout=self.config.storage_lock_timeout,
        )

        remote_error = None
        if remote is _FROM_SETTINGS:
            try:
                remote = get_remote_mirror()
            except ValueError as e:
                remote, remote_error = None, str(e)
        self.remote: Optional[BaseRemoteMirror] = remote

        initial = load_local_snapshot(
            self.store, self.config.state_storage_key, self.clock, settings=self.config
        )
        self.live = LiveSnapshot(initial)
        self.gateway = MutationGateway(
            self.live,
            self.store,
            self.config.state_storage_key,
            remote=self.remote,
            clock=self.clock,
        )
        self.reconciler = StateReconciler(
            self.live,
            self.gateway,
            remote=self.remote,
            init_timeout=self.config.sync_init_timeout_seconds,
            settings=self.config,
        )
        if remote_error:
            self.reconciler.mark_remote_failed(remote_error)

        self.session = Session(self.store, self.config.session_storage_key, self.clock)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        await self.reconciler.start()

    async def close(self) -> None:
        await self.gateway.flush()
        await self.reconciler.stop()
        if self.remote is not None:
            await self.remote.close()

    # =========================================================================
    # READS
    # =========================================================================

    @property
    def snapshot(self) -> MasterState:
        return self.live.current

    @property
    def restaurants(self) -> list[Restaurant]:
        return self.live.current.restaurants

    @property
    def orders(self) -> list[Order]:
        return self.live.current.orders

    @property
    def users(self) -> list[User]:
        return self.live.current.users

    @property
    def settings(self) -> GlobalSettings:
        return self.live.current.settings

    @property
    def current_user(self) -> Optional[User]:
        return self.session.current_user

    @property
    def cart(self) -> list[CartItem]:
        return self.session.cart

    @property
    def initializing(self) -> bool:
        return self.reconciler.initializing

    @property
    def sync_status(self) -> SyncStatus:
        return self.reconciler.sync_status

    def stats(self) -> StatsResponse:
        return views.dashboard_stats(self.live.current)

    def cuisines(self) -> list[str]:
        return views.cuisines(self.restaurants)

    def search_restaurants(self, query: str = "", cuisine: str = views.ALL_CUISINES) -> list[Restaurant]:
        return views.search_restaurants(self.restaurants, query, cuisine)

    def my_orders(self) -> list[Order]:
        """Orders placed with the logged-in customer's phone number."""
        user = self._require_session()
        return views.orders_for_contact(self.orders, user.identifier)

    def cart_subtotal(self) -> float:
        return views.cart_subtotal(self.cart)

    def get_restaurant(self, restaurant_id: str) -> Restaurant:
        restaurant = self.live.current.find_restaurant(restaurant_id)
        if restaurant is None:
            raise NotFoundError("Restaurant", restaurant_id)
        return restaurant

    def get_order(self, order_id: str) -> Order:
        order = self.live.current.find_order(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def notification_log(self) -> list[dict]:
        try:
            return self.store.get(self.config.notification_log_key) or []
        except LocalStoreError as e:
            logger.warning(f"Could not read notification log: {e}")
            return []

    # =========================================================================
    # GUARDS
    # =========================================================================

    def _require_session(self) -> User:
        if self.session.current_user is None:
            raise AuthenticationRequired()
        return self.session.current_user

    def _require_right(self, right: UserRight) -> User:
        user = self._require_session()
        if not user.is_operator or not user.has_right(right):
            raise AuthorizationError(
                f"'{user.identifier}' lacks the '{right.value}' right",
                required_right=right.value,
            )
        return user

    def _commit(self, snapshot: MasterState) -> MasterState:
        return self.gateway.commit(snapshot)

    # =========================================================================
    # RESTAURANTS & MENUS
    # =========================================================================

    def add_restaurant(self, restaurant: Restaurant) -> MasterState:
        self._require_right(UserRight.RESTAURANTS)
        return self._commit(mutators.add_restaurant(self.live.current, restaurant))

    def create_restaurant(self, name: str, cuisine: str = "", image: Optional[str] = None) -> Restaurant:
        restaurant = mutators.new_restaurant(name, cuisine, image)
        self.add_restaurant(restaurant)
        logger.info(f"Restaurant created: {restaurant.name} ({restaurant.id})")
        return restaurant

    def update_restaurant(self, restaurant: Restaurant) -> MasterState:
        self._require_right(UserRight.RESTAURANTS)
        return self._commit(mutators.update_restaurant(self.live.current, restaurant))

    def delete_restaurant(self, restaurant_id: str) -> MasterState:
        self._require_right(UserRight.RESTAURANTS)
        snapshot = self._commit(mutators.delete_restaurant(self.live.current, restaurant_id))
        logger.info(f"Restaurant deleted: {restaurant_id}")
        return snapshot

    def add_menu_item(self, restaurant_id: str, item: MenuItem) -> MasterState:
        self._require_right(UserRight.RESTAURANTS)
        if not restaurant_id:
            raise StateValidationError("Select a restaurant first")
        return self._commit(mutators.add_menu_item(self.live.current, restaurant_id, item))

    def create_menu_item(
        self,
        restaurant_id: str,
        name: str,
        price: float,
        description: str = "",
        category: str = "",
        image: Optional[str] = None,
    ) -> MenuItem:
        item = mutators.new_menu_item(name, price, description, category, image)
        self.add_menu_item(restaurant_id, item)
        return item

    def update_menu_item(self, restaurant_id: str, item: MenuItem) -> MasterState:
        self._require_right(UserRight.RESTAURANTS)
        if not restaurant_id:
            raise StateValidationError("Select a restaurant first")
        return self._commit(mutators.update_menu_item(self.live.current, restaurant_id, item))

    def delete_menu_item(self, restaurant_id: str, item_id: str) -> MasterState:
        self._require_right(UserRight.RESTAURANTS)
        return self._commit(mutators.delete_menu_item(self.live.current, restaurant_id, item_id))

    # =========================================================================
    # ORDERS
    # =========================================================================

    def place_order(
        self,
        customer_name: str,
        address: str,
        contact_no: Optional[str] = None,
        coordinates: Optional[Coordinates] = None,
    ) -> Order:
        """
        Turn the session cart into a Pending order.

        The contact number defaults to the logged-in identity. The cart is
        emptied only once the order has been committed.

        Raises:
            AuthenticationRequired: No one is logged in
            StateValidationError: Empty cart, missing details or subtotal
                under the minimum order value
        """
        user = self._require_session()
        cart = list(self.session.cart)
        if not cart:
            raise StateValidationError("Your cart is empty")
        if not customer_name.strip() or not address.strip():
            raise StateValidationError("Name and address are required")

        commissions = self.settings.commissions
        subtotal = views.cart_subtotal(cart)
        if subtotal < commissions.min_order_value:
            raise StateValidationError(
                f"Minimum order value is {self.settings.general.currency_symbol}"
                f"{commissions.min_order_value:g}"
            )

        order = mutators.new_order(
            customer_name=customer_name.strip(),
            contact_no=contact_no or user.identifier,
            address=address.strip(),
            items=cart,
            delivery_fee=commissions.delivery_fee,
            coordinates=coordinates,
        )
        self.add_order(order)
        self.session.clear_cart()
        logger.info(f"Order placed: {order.id} total={order.total}")
        return order

    def add_order(self, order: Order) -> MasterState:
        self._require_session()
        snapshot = self._commit(mutators.add_order(self.live.current, order))
        self._record_order_alert(order)
        return snapshot

    def _record_order_alert(self, order: Order) -> None:
        notifications = self.settings.notifications
        if not notifications.order_placed_alert or not notifications.notification_phones:
            return

        item_summary = ", ".join(f"{i.quantity}x {i.name}" for i in order.items)
        message = (
            f"🚨 NEW ORDER RECEIVED!\n\n"
            f"Order ID: #{order.id.upper()}\n"
            f"Customer: {order.customer_name}\n"
            f"Contact: {order.contact_no}\n"
            f"Total: {self.settings.general.currency_symbol}{order.total:g}\n"
            f"Items: {item_summary}\n"
            f"Address: {order.address}\n\n"
            f"Dispatching {self.settings.general.platform_name} Logistics..."
        )
        sent_at = datetime.now(timezone.utc).isoformat()

        log = self.notification_log()
        for phone in notifications.notification_phones:
            log.append({
                "phone": phone,
                "orderId": order.id,
                "message": message,
                "time": sent_at,
                "status": ALERT_STATUS,
            })
        try:
            self.store.set(self.config.notification_log_key, log[-self.config.notification_log_limit:])
        except LocalStoreError as e:
            logger.error(f"Could not record order alert for {order.id}: {e}")

    def update_order(self, order: Order) -> MasterState:
        self._require_right(UserRight.ORDERS)
        return self._commit(mutators.update_order(self.live.current, order))

    def reprice_order(self, order_id: str, items: list[CartItem]) -> Order:
        """Replace an order's items; the total uses the current delivery fee."""
        self._require_right(UserRight.ORDERS)
        snapshot = self._commit(
            mutators.reprice_order(
                self.live.current, order_id, items, self.settings.commissions.delivery_fee
            )
        )
        return snapshot.find_order(order_id)

    def update_order_status(self, order_id: str, status: OrderStatus) -> Order:
        self._require_right(UserRight.ORDERS)
        snapshot = self._commit(mutators.set_order_status(self.live.current, order_id, status))
        logger.info(f"Order {order_id} → {status.value}")
        return snapshot.find_order(order_id)

    def delete_order(self, order_id: str) -> MasterState:
        self._require_right(UserRight.ORDERS)
        return self._commit(mutators.delete_order(self.live.current, order_id))

    # =========================================================================
    # USERS & SETTINGS
    # =========================================================================

    def add_user(self, user: User) -> MasterState:
        self._require_right(UserRight.USERS)
        if not user.rights:
            raise StateValidationError("Please assign at least one right")
        return self._commit(mutators.add_user(self.live.current, user))

    def create_staff_user(self, username: str, password: str, rights: list[UserRight]) -> User:
        user = mutators.new_staff_user(username, password, rights, self.clock())
        self.add_user(user)
        logger.info(f"Staff user created: {user.identifier}")
        return user

    def delete_user(self, user_id: str) -> MasterState:
        self._require_right(UserRight.USERS)
        return self._commit(mutators.delete_user(self.live.current, user_id))

    def update_settings(self, settings: GlobalSettings) -> MasterState:
        self._require_right(UserRight.SETTINGS)
        return self._commit(mutators.replace_settings(self.live.current, settings))

    # =========================================================================
    # CART & SESSION
    # =========================================================================

    def add_to_cart(self, item: CartItem) -> list[CartItem]:
        return self.session.add_to_cart(item)

    def add_menu_item_to_cart(self, restaurant_id: str, item_id: str) -> list[CartItem]:
        restaurant = self.get_restaurant(restaurant_id)
        item = next((m for m in restaurant.menu if m.id == item_id), None)
        if item is None:
            raise NotFoundError("Menu item", item_id)
        return self.session.add_to_cart(mutators.cart_item_from_menu(restaurant, item))

    def remove_from_cart(self, item_id: str) -> list[CartItem]:
        return self.session.remove_from_cart(item_id)

    def clear_cart(self) -> None:
        self.session.clear_cart()

    def login_customer(self, phone: str) -> User:
        return self.session.login_customer(phone)

    def login_staff(self, username: str, password: str) -> bool:
        return self.session.login_staff(
            username, password, self.users, bootstrap_admin(self.config)
        )

    def logout(self) -> None:
        self.session.logout()

    async def reset_local_cache(self) -> None:
        """
        Forget everything this client has stored.

        The live snapshot reverts to the seed with timestamp 0, then the
        remote document (if any) is read back and reconciled before this
        returns, so the next commit builds on the shared copy and not on
        the seed.
        """
        await self.gateway.flush()
        try:
            self.store.clear()
        except LocalStoreError as e:
            logger.error(f"Could not clear local store: {e}")
        self.session.reset()
        self.live.replace(default_snapshot(timestamp=0, settings=self.config))

        if self.remote is None:
            logger.warning("Local cache reset; running on the seed snapshot")
            return

        try:
            document = await self.remote.read()
        except RemoteMirrorError as e:
            logger.error(f"Local cache reset but remote reload failed: {e}")
            return
        self.reconciler.handle_remote_document(document)
        logger.warning(f"Local cache reset; reloaded remote state (ts={self.snapshot.timestamp})")
