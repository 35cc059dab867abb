import pytest

from storefront.models import OrderStatus, Role


@pytest.fixture
def merchant(make_user):
    return make_user(role=Role.MERCHANT, name="Merchant")


def test_merchant_orders_are_distinct_and_filterable(merchant, make_user, make_item, make_order, make_order_item):
    buyer = make_user()
    other_merchant = make_user(role=Role.MERCHANT)
    i1 = make_item(merchant)
    i2 = make_item(merchant)
    foreign = make_item(other_merchant)

    o1 = make_order(buyer)
    make_order_item(o1, i1)
    make_order_item(o1, i2)
    o2 = make_order(buyer, status=OrderStatus.SHIPPED)
    make_order_item(o2, i1)
    o3 = make_order(buyer)
    make_order_item(o3, foreign)

    assert merchant.merchant_orders() == [o1, o2]
    assert merchant.merchant_orders("shipped") == [o2]
    assert merchant.merchant_orders(OrderStatus.PENDING) == [o1]
    assert merchant.merchant_orders("cancelled") == []


def test_merchant_for_order(merchant, make_user, make_item, make_order, make_order_item):
    buyer = make_user()
    other_merchant = make_user(role=Role.MERCHANT)
    mine = make_order(buyer)
    make_order_item(mine, make_item(merchant))
    theirs = make_order(buyer)
    make_order_item(theirs, make_item(other_merchant))

    assert merchant.merchant_for_order(mine) is True
    assert merchant.merchant_for_order(theirs) is False


def test_total_items_sold_and_top_buyer(merchant, make_user, make_item, make_order, make_order_item):
    buyer = make_user(name="Buyer")
    i1 = make_item(merchant, price=10.0)
    i2 = make_item(merchant, price=5.0)
    order = make_order(buyer)
    make_order_item(order, i1, quantity=2)
    make_order_item(order, i2, quantity=1)

    assert merchant.total_items_sold() == 3
    rows = merchant.top_buyers(1)
    assert len(rows) == 1
    assert rows[0].User == buyer
    assert rows[0].total_spent == 25


def test_total_items_sold_ignores_unfulfilled_and_cancelled(merchant, make_user, make_item, make_order, make_order_item):
    buyer = make_user()
    item = make_item(merchant)
    make_order_item(make_order(buyer), item, quantity=4)
    make_order_item(make_order(buyer), item, quantity=7, fulfilled=False)
    make_order_item(make_order(buyer, status=OrderStatus.CANCELLED), item, quantity=9)

    assert merchant.total_items_sold() == 4


def test_sales_aggregates_are_zero_without_sales(merchant):
    assert merchant.total_items_sold() == 0
    assert merchant.total_inventory() == 0


def test_total_inventory(merchant, make_user, make_item):
    make_item(merchant, inventory=12)
    make_item(merchant, inventory=30)
    make_item(make_user(role=Role.MERCHANT), inventory=500)

    assert merchant.total_inventory() == 42


def test_top_shipping_states_and_cities(merchant, make_user, make_address, make_item, make_order, make_order_item):
    buyer = make_user()
    item = make_item(merchant)
    denver = make_address(buyer, city="Denver", state="CO")
    boulder = make_address(buyer, city="Boulder", state="CO")
    austin = make_address(buyer, city="Austin", state="TX")
    reno = make_address(buyer, city="Reno", state="NV")
    seattle = make_address(buyer, city="Seattle", state="WA")

    for address, count in ((denver, 2), (boulder, 1), (austin, 2), (reno, 1)):
        for _ in range(count):
            make_order_item(make_order(buyer, address=address), item)
    # zaehlen nicht
    make_order_item(make_order(buyer, address=seattle), item, fulfilled=False)
    make_order_item(make_order(buyer, address=seattle, status=OrderStatus.CANCELLED), item)
    make_order_item(make_order(buyer, address=seattle, status=OrderStatus.CANCELLED), item)

    assert merchant.top_3_shipping_states() == ["CO", "TX", "NV"]
    assert merchant.top_3_shipping_cities() == ["Austin", "Denver", "Boulder"]
    assert merchant.top_shipping("state", 1) == ["CO"]


def test_top_shipping_rejects_unknown_metric(merchant):
    with pytest.raises(ValueError):
        merchant.top_shipping("zip; drop table users", 3)
