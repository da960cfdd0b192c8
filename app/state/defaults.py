"""
Seed data and snapshot restoration.

A client that has never stored a snapshot starts from the seed: one
restaurant with two dishes, no orders, the bootstrap admin and default
settings.
"""

import time
from typing import Optional

from app.core.config import Settings, get_settings
from app.schemas import (
    ALL_RIGHTS,
    GlobalSettings,
    MasterState,
    MenuItem,
    Restaurant,
    User,
    UserRole,
)


def now_ms() -> int:
    """Wall-clock milliseconds."""
    return int(time.time() * 1000)


SEED_RESTAURANTS = [
    Restaurant(
        id="1",
        name="Karachi Biryani House",
        cuisine="Desi, Rice",
        rating=4.8,
        image="https://images.unsplash.com/photo-1563379091339-03b21bc4a4f8?q=80&w=800",
        delivery_time="25-35 min",
        menu=[
            MenuItem(
                id="m1",
                name="Chicken Biryani Full",
                description="Special Sindhi Biryani with spice and aroma.",
                price=450,
                category="Main",
                image="https://images.unsplash.com/photo-1589302168068-964664d93dc0?q=80&w=400",
            ),
            MenuItem(
                id="m2",
                name="Raita",
                description="Fresh yogurt with vegetables.",
                price=50,
                category="Sides",
                image="https://images.unsplash.com/photo-1596797038558-95a0a16e7353?q=80&w=400",
            ),
        ],
    )
]


def bootstrap_admin(settings: Optional[Settings] = None) -> User:
    """The privileged operator that can always log in."""
    settings = settings or get_settings()
    return User(
        id="admin-1",
        identifier=settings.bootstrap_admin_identifier,
        password=settings.bootstrap_admin_password,
        role=UserRole.ADMIN,
        rights=list(ALL_RIGHTS),
    )


def default_snapshot(
    timestamp: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> MasterState:
    return MasterState(
        restaurants=list(SEED_RESTAURANTS),
        orders=[],
        users=[bootstrap_admin(settings)],
        settings=GlobalSettings(),
        timestamp=now_ms() if timestamp is None else timestamp,
    )


def restore_snapshot(
    document: dict,
    fallback_timestamp: int,
    settings: Optional[Settings] = None,
) -> MasterState:
    """
    Validate a stored or remote document.

    Top-level collections that are missing or not lists come from the seed;
    missing settings fields take their defaults.

    Raises:
        pydantic.ValidationError: The document does not describe a master state
    """
    seed = default_snapshot(timestamp=0, settings=settings).to_document()
    merged = dict(document)

    for key in ("restaurants", "orders", "users"):
        if not isinstance(merged.get(key), list):
            merged[key] = seed[key]
    if not isinstance(merged.get("settings"), dict):
        merged["settings"] = seed["settings"]
    if not merged.get("_timestamp"):
        merged["_timestamp"] = fallback_timestamp

    return MasterState.model_validate(merged)
