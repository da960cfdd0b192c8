"""
Client session: the logged-in identity and the cart.

The identity survives restarts through the local store; the cart lives in
memory only and never reaches the master snapshot.
"""

import logging
from typing import Callable, Iterable, Optional

from pydantic import ValidationError

from app.core.exceptions import LocalStoreError
from app.schemas import CartItem, User, UserRole
from app.services.local_store import LocalStore
from app.state import mutators

logger = logging.getLogger(__name__)


class Session:
    def __init__(self, store: LocalStore, storage_key: str, clock: Callable[[], int]):
        self._store = store
        self._storage_key = storage_key
        self._clock = clock
        self.cart: list[CartItem] = []
        self.current_user: Optional[User] = self._load_user()

    def _load_user(self) -> Optional[User]:
        try:
            document = self._store.get(self._storage_key)
        except LocalStoreError as e:
            logger.warning(f"Could not read stored session: {e}")
            return None
        if document is None:
            return None
        try:
            return User.model_validate(document)
        except ValidationError as e:
            logger.warning(f"Discarding invalid stored session: {e}")
            return None

    def _persist_user(self) -> None:
        try:
            if self.current_user is None:
                self._store.remove(self._storage_key)
            else:
                self._store.set(
                    self._storage_key,
                    self.current_user.model_dump(mode="json", by_alias=True),
                )
        except LocalStoreError as e:
            logger.error(f"Could not persist session: {e}")

    def login_customer(self, phone: str) -> User:
        """Customers log in by phone number alone; nothing is checked."""
        self.current_user = User(
            id=f"c-{self._clock()}",
            identifier=phone,
            role=UserRole.CUSTOMER,
            rights=[],
        )
        self._persist_user()
        logger.info(f"Customer session started for {phone}")
        return self.current_user

    def login_staff(self, username: str, password: str, users: Iterable[User], bootstrap: User) -> bool:
        """
        Authenticate an operator.

        The bootstrap admin is checked first so it can always get in, even
        when the snapshot has lost its user list. Usernames compare
        case-insensitively, passwords exactly.
        """
        wanted = username.lower()
        candidates = [bootstrap, *users]

        for user in candidates:
            if user.identifier.lower() == wanted and user.password == password:
                self.current_user = user
                self._persist_user()
                logger.info(f"Operator '{user.identifier}' logged in ({user.role.value})")
                return True

        logger.warning(f"Failed operator login for '{username}'")
        return False

    def logout(self) -> None:
        if self.current_user is not None:
            logger.info(f"Logged out '{self.current_user.identifier}'")
        self.current_user = None
        self.cart = []
        self._persist_user()

    def add_to_cart(self, item: CartItem) -> list[CartItem]:
        self.cart = mutators.cart_add(self.cart, item)
        return self.cart

    def remove_from_cart(self, item_id: str) -> list[CartItem]:
        self.cart = mutators.cart_remove(self.cart, item_id)
        return self.cart

    def clear_cart(self) -> None:
        self.cart = []

    def reset(self) -> None:
        """Forget the identity and cart without touching the store."""
        self.current_user = None
        self.cart = []
