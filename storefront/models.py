import enum
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import case, distinct, extract, func, select
from werkzeug.security import check_password_hash, generate_password_hash

db = SQLAlchemy()

# Platzhalter fuer noch nicht bearbeitete Positionen (praktisch "unendlich")
UNFULFILLED_SECONDS = 1_000_000_000


def _now():
    return datetime.now(timezone.utc)


class Role(enum.Enum):
    USER = "user"
    MERCHANT = "merchant"
    ADMIN = "admin"


class OrderStatus(enum.Enum):
    PENDING = "pending"
    PACKAGED = "packaged"
    SHIPPED = "shipped"
    CANCELLED = "cancelled"


def _enum_type(enum_cls):
    return db.Enum(
        enum_cls,
        native_enum=False,
        values_callable=lambda members: [m.value for m in members],
    )


class TimestampMixin:
    created_at = db.Column(db.DateTime, nullable=False, default=_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=_now, onupdate=_now)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # neu angelegte Zeilen: beide Zeitstempel identisch
        if self.created_at is None:
            self.created_at = _now()
        if self.updated_at is None:
            self.updated_at = self.created_at


def _counted_sales(stmt):
    """Nur erfuellte Positionen aus nicht stornierten Bestellungen."""
    return stmt.where(
        Order.status != OrderStatus.CANCELLED,
        OrderItem.fulfilled.is_(True),
    )


# --------------------------------
# User Modell
# --------------------------------
class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(200), nullable=False)
    role = db.Column(_enum_type(Role), nullable=False, default=Role.USER)
    active = db.Column(db.Boolean, nullable=False, default=True)
    # kein Foreign Key, veraltete IDs liefern keine Adresse
    default_address_id = db.Column(db.Integer)

    orders = db.relationship("Order", backref="user", order_by="Order.id")
    items = db.relationship("Item", backref="user", order_by="Item.id")
    addresses = db.relationship("Address", backref="user", order_by="Address.id")

    def __repr__(self):
        return f"<User {self.email}>"

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == Role.ADMIN

    @property
    def is_merchant(self):
        return self.role == Role.MERCHANT

    # ----------------------------
    # Adressen
    # ----------------------------
    @property
    def default_address(self):
        if self.default_address_id is None:
            return None
        stmt = select(Address).where(
            Address.id == self.default_address_id,
            Address.user_id == self.id,
        )
        return db.session.scalars(stmt).first()

    def active_addresses(self):
        stmt = (
            select(Address)
            .where(Address.user_id == self.id, Address.active.is_(True))
            .order_by(Address.id)
        )
        return db.session.scalars(stmt).all()

    def active_with_default_first(self):
        addresses = list(self.active_addresses())
        default = self.default_address
        if default is None:
            return addresses
        return [default] + [a for a in addresses if a.id != default.id]

    # ----------------------------
    # Bestellungen als Haendler
    # ----------------------------
    def merchant_orders(self, status=None):
        stmt = (
            select(Order)
            .join(Order.order_items)
            .join(OrderItem.item)
            .where(Item.user_id == self.id)
            .distinct()
            .order_by(Order.id)
        )
        if status is not None:
            stmt = stmt.where(Order.status == OrderStatus(status))
        return db.session.scalars(stmt).all()

    def merchant_for_order(self, order):
        return self.merchant_for_order_id(order.id)

    def merchant_for_order_id(self, order_id):
        stmt = (
            select(OrderItem.id)
            .join(OrderItem.item)
            .where(Item.user_id == self.id, OrderItem.order_id == order_id)
            .limit(1)
        )
        return db.session.scalar(stmt) is not None

    # ----------------------------
    # Verkaufsstatistik
    # ----------------------------
    def total_items_sold(self):
        stmt = _counted_sales(
            select(func.coalesce(func.sum(OrderItem.quantity), 0))
            .select_from(OrderItem)
            .join(OrderItem.item)
            .join(OrderItem.order)
            .where(Item.user_id == self.id)
        )
        return db.session.scalar(stmt)

    def total_inventory(self):
        stmt = select(func.coalesce(func.sum(Item.inventory), 0)).where(
            Item.user_id == self.id
        )
        return db.session.scalar(stmt)

    def top_shipping(self, metric, quantity):
        columns = {"state": Address.state, "city": Address.city}
        if metric not in columns:
            raise ValueError(f"Unbekannte Versandmetrik: {metric}")
        column = columns[metric]

        stmt = _counted_sales(
            select(column)
            .select_from(OrderItem)
            .join(OrderItem.item)
            .join(OrderItem.order)
            .join(Order.address)
            .where(Item.user_id == self.id)
        )
        stmt = (
            stmt.group_by(column)
            .order_by(func.count(OrderItem.id).desc(), column)
            .limit(quantity)
        )
        return db.session.scalars(stmt).all()

    def top_3_shipping_states(self):
        return self.top_shipping("state", 3)

    def top_3_shipping_cities(self):
        return self.top_shipping("city", 3)

    # ----------------------------
    # Kunden dieses Haendlers
    # ----------------------------
    def _buyers_of_my_items(self, *columns):
        return _counted_sales(
            select(User, *columns)
            .join(User.orders)
            .join(Order.order_items)
            .join(OrderItem.item)
            .where(Item.user_id == self.id, User.active.is_(True))
        ).group_by(User.id)

    def top_active_user(self):
        """Aktivster Kunde als Zeile (User, order_count) oder None."""
        order_count = func.count(distinct(Order.id)).label("order_count")
        stmt = (
            self._buyers_of_my_items(order_count)
            .order_by(order_count.desc(), User.id)
            .limit(1)
        )
        return db.session.execute(stmt).first()

    def biggest_order(self):
        """Bestellung mit den meisten eigenen Artikeln als (Order, item_count) oder None."""
        item_count = func.sum(OrderItem.quantity).label("item_count")
        stmt = _counted_sales(
            select(Order, item_count)
            .join(Order.order_items)
            .join(OrderItem.item)
            .where(Item.user_id == self.id)
        )
        stmt = stmt.group_by(Order.id).order_by(item_count.desc(), Order.id).limit(1)
        return db.session.execute(stmt).first()

    def top_buyers(self, quantity=3):
        total_spent = func.sum(OrderItem.quantity * OrderItem.price).label("total_spent")
        stmt = (
            self._buyers_of_my_items(total_spent)
            .order_by(total_spent.desc(), User.id)
            .limit(quantity)
        )
        return db.session.execute(stmt).all()

    def previous_buyers(self):
        stmt = (
            select(User.email)
            .join(User.orders)
            .join(Order.order_items)
            .join(OrderItem.item)
            .where(Item.user_id == self.id, User.active.is_(True))
            .group_by(User.id, User.email)
            .order_by(User.id)
        )
        return db.session.scalars(stmt).all()

    def never_ordered(self, previous):
        stmt = (
            select(User.email)
            .where(User.active.is_(True), User.id != self.id)
            .where(User.email.not_in(list(previous)))
            .order_by(User.id)
        )
        return db.session.scalars(stmt).all()

    # ----------------------------
    # Haendler-Ranglisten
    # ----------------------------
    @classmethod
    def _merchant_sales(cls, *columns):
        return (
            select(cls, *columns)
            .join(cls.items)
            .join(Item.order_items)
            .join(OrderItem.order)
        )

    @classmethod
    def top_merchants(cls, quantity):
        total_earned = func.sum(OrderItem.quantity * OrderItem.price).label("total_earned")
        stmt = _counted_sales(cls._merchant_sales(total_earned))
        stmt = (
            stmt.group_by(cls.id)
            .order_by(total_earned.desc(), cls.name)
            .limit(quantity)
        )
        return db.session.execute(stmt).all()

    @classmethod
    def popular_merchants(cls, quantity):
        total_orders = func.count(OrderItem.id).label("total_orders")
        stmt = _counted_sales(cls._merchant_sales(total_orders))
        stmt = (
            stmt.group_by(cls.id)
            .order_by(total_orders.desc(), cls.name)
            .limit(quantity)
        )
        return db.session.execute(stmt).all()

    @classmethod
    def merchant_by_speed(cls, quantity, direction):
        """
        Eine Zeile (User, time_diff) pro Position einer nicht stornierten Bestellung.

        time_diff ist die Bearbeitungszeit in Sekunden. Positionen, die seit dem
        Anlegen nicht mehr angefasst wurden, bekommen UNFULFILLED_SECONDS und
        landen damit bei "fastest" hinten und bei "slowest" vorne.
        """
        if direction not in ("asc", "desc"):
            raise ValueError(f"Unbekannte Sortierung: {direction}")

        # SQLite rechnet mit ganzen Sekunden, PostgreSQL mit Bruchteilen
        elapsed = extract("epoch", OrderItem.updated_at) - extract("epoch", OrderItem.created_at)
        time_diff = case(
            (OrderItem.updated_at > OrderItem.created_at, func.coalesce(elapsed, 0)),
            else_=UNFULFILLED_SECONDS,
        ).label("time_diff")
        ordering = time_diff.asc() if direction == "asc" else time_diff.desc()

        stmt = (
            cls._merchant_sales(time_diff)
            .where(Order.status != OrderStatus.CANCELLED)
            .order_by(ordering, OrderItem.id)
            .limit(quantity)
        )
        return db.session.execute(stmt).all()

    @classmethod
    def fastest_merchants(cls, quantity):
        return cls.merchant_by_speed(quantity, "asc")

    @classmethod
    def slowest_merchants(cls, quantity):
        return cls.merchant_by_speed(quantity, "desc")


# --------------------------------
# Adressen
# --------------------------------
class Address(db.Model):
    __tablename__ = "addresses"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    street_address = db.Column(db.String(200), nullable=False)
    city = db.Column(db.String(120), nullable=False)
    state = db.Column(db.String(60), nullable=False)
    zip = db.Column(db.String(20), nullable=False)
    active = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<Address {self.name}>"


# --------------------------------
# Artikel
# --------------------------------
class Item(db.Model):
    __tablename__ = "items"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    price = db.Column(db.Float, nullable=False, default=0.0)
    inventory = db.Column(db.Integer, nullable=False, default=0)
    active = db.Column(db.Boolean, nullable=False, default=True)

    order_items = db.relationship("OrderItem", backref="item", order_by="OrderItem.id")

    def __repr__(self):
        return f"<Item {self.name}>"


# --------------------------------
# Bestellungen
# --------------------------------
class Order(TimestampMixin, db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    address_id = db.Column(db.Integer, db.ForeignKey("addresses.id"))
    status = db.Column(_enum_type(OrderStatus), nullable=False, default=OrderStatus.PENDING)

    address = db.relationship("Address")
    order_items = db.relationship("OrderItem", backref="order", order_by="OrderItem.id")

    def __repr__(self):
        return f"<Order {self.id} {self.status.value}>"

    # Summen werden immer aus den Positionen berechnet
    @property
    def total_quantity(self):
        return sum(oi.quantity for oi in self.order_items)

    @property
    def grand_total(self):
        return sum(oi.quantity * oi.price for oi in self.order_items)


class OrderItem(TimestampMixin, db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Float, nullable=False)
    fulfilled = db.Column(db.Boolean, nullable=False, default=False)

    @property
    def subtotal(self):
        return self.quantity * self.price
