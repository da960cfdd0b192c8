"""
FastAPI Application Entry Point

GAB-EATS client state service. One process is one client: it owns a single
AppState (live snapshot, session identity and cart) and exposes the user
intents of the storefront and the operator console as HTTP routes.

Endpoints:
    - GET  /health: Sync status and collaborator health
    - GET  /api/state: Full master snapshot (wire format)
    - GET  /api/restaurants: Search the catalogue
    - POST /api/session/customer | /api/session/staff: Log in
    - POST /api/cart, POST /api/checkout: Build a cart and place an order
    - GET  /api/my-orders, GET /api/orders/{id}/invoice: Order history
    - /api/admin/*: Operator console (rights enforced per action)
    - POST /api/geo/reverse, POST /api/admin/images: Collaborator helpers

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from app.core.config import get_settings, setup_logging
from app.core.exceptions import (
    AuthenticationRequired,
    AuthorizationError,
    NotFoundError,
    StateValidationError,
)
from app.schemas import (
    CartAddRequest,
    CheckoutRequest,
    Coordinates,
    CustomerLoginRequest,
    AddressResponse,
    GlobalSettings,
    HealthResponse,
    ImageGenerationRequest,
    ImageResponse,
    MenuItem,
    MenuItemCreate,
    Order,
    OrderItemsUpdate,
    Restaurant,
    RestaurantCreate,
    ReverseGeocodeRequest,
    SessionResponse,
    StaffLoginRequest,
    StaffUserCreate,
    StatsResponse,
    StatusUpdateRequest,
    User,
    UserRole,
)
from app.services.geo import BaseGeoService, describe_location, get_geo_service
from app.services.imagery import BaseImageService, get_image_service
from app.services.invoice import render_invoice
from app.state import AppState

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_state(request: Request) -> AppState:
    return request.app.state.gab_eats


def require_session(state: AppState = Depends(get_state)) -> User:
    if state.current_user is None:
        raise AuthenticationRequired()
    return state.current_user


def require_customer(user: User = Depends(require_session)) -> User:
    if user.role != UserRole.CUSTOMER:
        raise AuthorizationError("This page is for customers")
    return user


def require_operator(user: User = Depends(require_session)) -> User:
    if not user.is_operator:
        raise AuthorizationError("Staff or admin access required")
    return user


def session_view(state: AppState) -> SessionResponse:
    return SessionResponse(
        user=state.current_user,
        cart=state.cart,
        cart_subtotal=state.cart_subtotal(),
    )


# =============================================================================
# PUBLIC ROUTES
# =============================================================================

router = APIRouter()


@router.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍛 Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(state: AppState = Depends(get_state)) -> HealthResponse:
    """Report sync status and whether the remote mirror answers."""
    if state.remote is None:
        remote_status = "disabled"
    else:
        remote_status = "healthy" if await state.remote.health_check() else "unhealthy"

    overall = "operational" if remote_status in ("disabled", "healthy") else "degraded"

    return HealthResponse(
        status=overall,
        sync_status=state.sync_status.value,
        initializing=state.initializing,
        remote_mirror=remote_status,
        snapshot_timestamp=state.snapshot.timestamp,
        timestamp=datetime.now(),
    )


@router.get("/api/state", tags=["State"])
async def get_master_state(state: AppState = Depends(get_state)) -> dict[str, Any]:
    return state.snapshot.to_document()


@router.get("/api/settings", response_model=GlobalSettings, tags=["State"])
async def get_global_settings(state: AppState = Depends(get_state)) -> GlobalSettings:
    return state.settings


@router.get("/api/restaurants", response_model=list[Restaurant], tags=["Catalogue"])
async def list_restaurants(
    q: str = Query("", max_length=100),
    cuisine: str = Query("All"),
    state: AppState = Depends(get_state),
) -> list[Restaurant]:
    return state.search_restaurants(q, cuisine)


@router.get("/api/cuisines", tags=["Catalogue"])
async def list_cuisines(state: AppState = Depends(get_state)) -> list[str]:
    return state.cuisines()


@router.get("/api/restaurants/{restaurant_id}", response_model=Restaurant, tags=["Catalogue"])
async def get_restaurant(restaurant_id: str, state: AppState = Depends(get_state)) -> Restaurant:
    return state.get_restaurant(restaurant_id)


# =============================================================================
# SESSION & CART
# =============================================================================

@router.get("/api/session", response_model=SessionResponse, tags=["Session"])
async def get_session(state: AppState = Depends(get_state)) -> SessionResponse:
    return session_view(state)


@router.post("/api/session/customer", response_model=SessionResponse, tags=["Session"])
async def login_customer(
    body: CustomerLoginRequest,
    state: AppState = Depends(get_state),
) -> SessionResponse:
    state.login_customer(body.phone)
    return session_view(state)


@router.post("/api/session/staff", response_model=SessionResponse, tags=["Session"])
async def login_staff(
    body: StaffLoginRequest,
    state: AppState = Depends(get_state),
) -> SessionResponse:
    if not state.login_staff(body.username, body.password):
        raise AuthenticationRequired("Invalid username or password")
    return session_view(state)


@router.delete("/api/session", response_model=SessionResponse, tags=["Session"])
async def logout(state: AppState = Depends(get_state)) -> SessionResponse:
    state.logout()
    return session_view(state)


@router.post("/api/cart", response_model=SessionResponse, tags=["Cart"])
async def add_to_cart(body: CartAddRequest, state: AppState = Depends(get_state)) -> SessionResponse:
    state.add_menu_item_to_cart(body.restaurant_id, body.item_id)
    return session_view(state)


@router.delete("/api/cart/{item_id}", response_model=SessionResponse, tags=["Cart"])
async def remove_from_cart(item_id: str, state: AppState = Depends(get_state)) -> SessionResponse:
    state.remove_from_cart(item_id)
    return session_view(state)


@router.delete("/api/cart", response_model=SessionResponse, tags=["Cart"])
async def clear_cart(state: AppState = Depends(get_state)) -> SessionResponse:
    state.clear_cart()
    return session_view(state)


# =============================================================================
# ORDERS (CUSTOMER)
# =============================================================================

@router.post(
    "/api/checkout",
    response_model=Order,
    status_code=status.HTTP_201_CREATED,
    tags=["Orders"],
)
async def checkout(
    body: CheckoutRequest,
    state: AppState = Depends(get_state),
    user: User = Depends(require_session),
) -> Order:
    """Place an order from the session cart."""
    coordinates = None
    if body.latitude is not None and body.longitude is not None:
        coordinates = Coordinates(lat=body.latitude, lng=body.longitude)

    return state.place_order(
        customer_name=body.customer_name,
        address=body.address,
        contact_no=body.contact_no,
        coordinates=coordinates,
    )


@router.get("/api/my-orders", response_model=list[Order], tags=["Orders"])
async def my_orders(
    state: AppState = Depends(get_state),
    user: User = Depends(require_customer),
) -> list[Order]:
    return state.my_orders()


@router.get("/api/orders/{order_id}/invoice", response_class=PlainTextResponse, tags=["Orders"])
async def download_invoice(
    order_id: str,
    state: AppState = Depends(get_state),
    user: User = Depends(require_session),
) -> PlainTextResponse:
    order = state.get_order(order_id)
    if not user.is_operator and order.contact_no != user.identifier:
        raise AuthorizationError("You can only download your own invoices")

    return PlainTextResponse(
        render_invoice(order, state.settings),
        headers={"Content-Disposition": f'attachment; filename="invoice-{order.id}.txt"'},
    )


@router.post("/api/geo/reverse", response_model=AddressResponse, tags=["Helpers"])
async def reverse_geocode(
    body: ReverseGeocodeRequest,
    geo: BaseGeoService = Depends(get_geo_service),
) -> AddressResponse:
    return await describe_location(geo, body.latitude, body.longitude)


# =============================================================================
# OPERATOR CONSOLE
# =============================================================================

admin = APIRouter(prefix="/api/admin", dependencies=[Depends(require_operator)])


@admin.get("/stats", response_model=StatsResponse, tags=["Admin"])
async def dashboard_stats(state: AppState = Depends(get_state)) -> StatsResponse:
    return state.stats()


@admin.get("/orders", response_model=list[Order], tags=["Admin"])
async def list_orders(state: AppState = Depends(get_state)) -> list[Order]:
    return state.orders


@admin.put("/orders/{order_id}/status", response_model=Order, tags=["Admin"])
async def update_order_status(
    order_id: str,
    body: StatusUpdateRequest,
    state: AppState = Depends(get_state),
) -> Order:
    return state.update_order_status(order_id, body.status)


@admin.put("/orders/{order_id}/items", response_model=Order, tags=["Admin"])
async def update_order_items(
    order_id: str,
    body: OrderItemsUpdate,
    state: AppState = Depends(get_state),
) -> Order:
    return state.reprice_order(order_id, body.items)


@admin.delete("/orders/{order_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Admin"])
async def delete_order(order_id: str, state: AppState = Depends(get_state)) -> None:
    state.delete_order(order_id)


@admin.post(
    "/restaurants",
    response_model=Restaurant,
    status_code=status.HTTP_201_CREATED,
    tags=["Admin"],
)
async def create_restaurant(body: RestaurantCreate, state: AppState = Depends(get_state)) -> Restaurant:
    return state.create_restaurant(body.name, body.cuisine, body.image)


@admin.put("/restaurants/{restaurant_id}", response_model=Restaurant, tags=["Admin"])
async def update_restaurant(
    restaurant_id: str,
    body: Restaurant,
    state: AppState = Depends(get_state),
) -> Restaurant:
    restaurant = body.model_copy(update={"id": restaurant_id})
    state.update_restaurant(restaurant)
    return restaurant


@admin.delete("/restaurants/{restaurant_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Admin"])
async def delete_restaurant(restaurant_id: str, state: AppState = Depends(get_state)) -> None:
    state.delete_restaurant(restaurant_id)


@admin.post(
    "/restaurants/{restaurant_id}/menu",
    response_model=MenuItem,
    status_code=status.HTTP_201_CREATED,
    tags=["Admin"],
)
async def create_menu_item(
    restaurant_id: str,
    body: MenuItemCreate,
    state: AppState = Depends(get_state),
) -> MenuItem:
    return state.create_menu_item(
        restaurant_id,
        name=body.name,
        price=body.price,
        description=body.description,
        category=body.category,
        image=body.image,
    )


@admin.put("/restaurants/{restaurant_id}/menu/{item_id}", response_model=MenuItem, tags=["Admin"])
async def update_menu_item(
    restaurant_id: str,
    item_id: str,
    body: MenuItem,
    state: AppState = Depends(get_state),
) -> MenuItem:
    item = body.model_copy(update={"id": item_id})
    state.update_menu_item(restaurant_id, item)
    return item


@admin.delete(
    "/restaurants/{restaurant_id}/menu/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Admin"],
)
async def delete_menu_item(restaurant_id: str, item_id: str, state: AppState = Depends(get_state)) -> None:
    state.delete_menu_item(restaurant_id, item_id)


@admin.get("/users", response_model=list[User], tags=["Admin"])
async def list_users(state: AppState = Depends(get_state)) -> list[User]:
    return state.users


@admin.post("/users", response_model=User, status_code=status.HTTP_201_CREATED, tags=["Admin"])
async def create_staff_user(body: StaffUserCreate, state: AppState = Depends(get_state)) -> User:
    return state.create_staff_user(body.username, body.password, body.rights)


@admin.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Admin"])
async def delete_user(user_id: str, state: AppState = Depends(get_state)) -> None:
    state.delete_user(user_id)


@admin.put("/settings", response_model=GlobalSettings, tags=["Admin"])
async def update_settings(body: GlobalSettings, state: AppState = Depends(get_state)) -> GlobalSettings:
    state.update_settings(body)
    return state.settings


@admin.get("/notifications", tags=["Admin"])
async def notification_log(state: AppState = Depends(get_state)) -> list[dict]:
    return state.notification_log()


@admin.post("/reset-cache", response_model=SessionResponse, tags=["Admin"])
async def reset_local_cache(state: AppState = Depends(get_state)) -> SessionResponse:
    """Wipe this client's stored state and reload the remote copy."""
    await state.reset_local_cache()
    return session_view(state)


@admin.post("/images", response_model=ImageResponse, tags=["Admin"])
async def generate_image(
    body: ImageGenerationRequest,
    images: BaseImageService = Depends(get_image_service),
) -> ImageResponse:
    result = await images.generate(body.prompt)
    return ImageResponse(success=result.success, image=result.image, message=result.error_message)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def _error(status_code: int, error: str, detail: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "detail": detail},
    )


async def authentication_handler(request: Request, exc: AuthenticationRequired) -> JSONResponse:
    return _error(status.HTTP_401_UNAUTHORIZED, "Unauthorized", exc.message)


async def authorization_handler(request: Request, exc: AuthorizationError) -> JSONResponse:
    logger.warning(f"Forbidden {request.method} {request.url.path}: {exc.message}")
    return _error(status.HTTP_403_FORBIDDEN, "Forbidden", exc.message)


async def validation_handler(request: Request, exc: StateValidationError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, "Bad Request", exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid request")
    return _error(status.HTTP_400_BAD_REQUEST, "Bad Request", f"{field}: {message}" if field else message)


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, "Not Found", exc.message)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal Server Error",
        str(exc) if settings.debug else "An unexpected error occurred",
    )


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(state: Optional[AppState] = None) -> FastAPI:
    """
    Build the API around a state container.

    Args:
        state: Container to serve; a default one is built from settings
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_state: AppState = app.state.gab_eats

        logger.info("=" * 60)
        logger.info(f"🚀 Starting {settings.app_name}")
        logger.info(f"   Version: {settings.app_version}")
        logger.info(f"   Environment: {settings.env_mode.value}")
        logger.info(f"   Data directory: {app_state.store.directory}")
        logger.info("=" * 60)

        if settings.use_real_services:
            missing = settings.validate_production_config()
            if missing:
                logger.warning(f"⚠️ Missing production config: {missing}")

        await app_state.start()
        logger.info(
            f"✅ State ready (sync={app_state.sync_status.value}, "
            f"ts={app_state.snapshot.timestamp})"
        )

        yield

        logger.info("Shutting down...")
        await app_state.close()
        if get_image_service.cache_info().currsize:
            await get_image_service().close()
        logger.info("✅ Cleanup complete")

    application = FastAPI(
        title=settings.app_name,
        description=(
            "Client state service for the GAB-EATS food delivery platform: "
            "local-first snapshot with an optional shared remote mirror."
        ),
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    application.state.gab_eats = state or AppState()

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(router)
    application.include_router(admin)

    application.add_exception_handler(AuthenticationRequired, authentication_handler)
    application.add_exception_handler(AuthorizationError, authorization_handler)
    application.add_exception_handler(StateValidationError, validation_handler)
    application.add_exception_handler(RequestValidationError, request_validation_handler)
    application.add_exception_handler(NotFoundError, not_found_handler)
    application.add_exception_handler(Exception, global_exception_handler)

    return application


app = create_app()
