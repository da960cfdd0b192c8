from app.schemas import UserRole
from app.state.session import Session
from app.state.defaults import bootstrap_admin
from app.state import mutators

KEY = "logged_user"


def test_customer_login_is_persisted(store, clock, settings):
    session = Session(store, KEY, clock)

    user = session.login_customer("03001234567")

    assert user.id == f"c-{clock()}"
    assert user.role == UserRole.CUSTOMER
    assert user.password is None and user.rights == []
    assert Session(store, KEY, clock).current_user == user


def test_bootstrap_login_ignores_user_list(store, clock, settings):
    session = Session(store, KEY, clock)

    assert session.login_staff("ansar", "Anudada@007", users=[], bootstrap=bootstrap_admin(settings))
    assert session.current_user.id == "admin-1"


def test_staff_login_checks_users_and_exact_password(store, clock, settings):
    staff = mutators.new_staff_user("Rider1", "s3cret", ["orders"], created_ms=9)
    session = Session(store, KEY, clock)

    assert not session.login_staff("rider1", "S3CRET", users=[staff], bootstrap=bootstrap_admin(settings))
    assert session.current_user is None

    assert session.login_staff("RIDER1", "s3cret", users=[staff], bootstrap=bootstrap_admin(settings))
    assert session.current_user.id == "staff-9"


def test_logout_clears_identity_cart_and_stored_key(store, clock):
    session = Session(store, KEY, clock)
    session.login_customer("03001234567")
    session.cart = ["placeholder"]

    session.logout()

    assert session.current_user is None
    assert session.cart == []
    assert store.get(KEY) is None


def test_invalid_stored_identity_is_discarded(store, clock):
    store.set(KEY, {"id": "c-1"})

    assert Session(store, KEY, clock).current_user is None
