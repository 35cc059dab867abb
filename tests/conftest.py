import itertools
from datetime import datetime, timedelta

import pytest

from storefront import create_app
from storefront.models import Address, Item, Order, OrderItem, OrderStatus, Role, User, db

BASE_TIME = datetime(2024, 3, 1, 10, 0, 0)


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login_as(client):
    """Setzt den eingeloggten User direkt in der Session."""
    def _login_as(user):
        with client.session_transaction() as sess:
            sess["user_id"] = user.id
    return _login_as


# --------------------------------
# Factories
# --------------------------------
@pytest.fixture
def make_user(app):
    counter = itertools.count(1)

    def _make_user(role=Role.USER, password="password", **kwargs):
        n = next(counter)
        kwargs.setdefault("name", f"User {n}")
        kwargs.setdefault("email", f"user{n}@example.com")
        user = User(role=role, **kwargs)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def make_address(app):
    counter = itertools.count(1)

    def _make_address(user, **kwargs):
        n = next(counter)
        kwargs.setdefault("name", f"Address {n}")
        kwargs.setdefault("street_address", f"{n} Main St")
        kwargs.setdefault("city", "Denver")
        kwargs.setdefault("state", "CO")
        kwargs.setdefault("zip", "80202")
        address = Address(user=user, **kwargs)
        db.session.add(address)
        db.session.commit()
        return address
    return _make_address


@pytest.fixture
def make_item(app):
    counter = itertools.count(1)

    def _make_item(merchant, **kwargs):
        n = next(counter)
        kwargs.setdefault("name", f"Item {n}")
        kwargs.setdefault("price", 10.0)
        kwargs.setdefault("inventory", 100)
        item = Item(user=merchant, **kwargs)
        db.session.add(item)
        db.session.commit()
        return item
    return _make_item


@pytest.fixture
def make_order(app):
    def _make_order(buyer, address=None, status=OrderStatus.PENDING):
        order = Order(user=buyer, address=address, status=status)
        db.session.add(order)
        db.session.commit()
        return order
    return _make_order


@pytest.fixture
def make_order_item(app):
    def _make_order_item(order, item, quantity=1, price=None, fulfilled=True, minutes=None):
        """minutes=None laesst updated_at == created_at (noch nicht bearbeitet)."""
        updated_at = BASE_TIME if minutes is None else BASE_TIME + timedelta(minutes=minutes)
        order_item = OrderItem(
            order=order,
            item=item,
            quantity=quantity,
            price=item.price if price is None else price,
            fulfilled=fulfilled,
            created_at=BASE_TIME,
            updated_at=updated_at,
        )
        db.session.add(order_item)
        db.session.commit()
        return order_item
    return _make_order_item
