"""
                        Services Module

Storage and collaborator services used by the state layer, each with a
development implementation and a production one behind a cached factory.

Services:
    - local_store: File-locked JSON key-value store (one client's cache)
    - remote: Shared master document (in-memory or Redis)
    - geo: Reverse geocoding for checkout (mock or Google Maps)
    - imagery: Prompt-to-image generation (mock or HTTP endpoint)
    - invoice: Plain-text invoice rendering (Jinja2)
"""

from app.services.local_store import LocalStore

__all__ = ["LocalStore"]
