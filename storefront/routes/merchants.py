from flask import Blueprint, abort, current_app, g, render_template, request

from ..access import can_view_dashboard, can_view_merchant_order
from ..models import Order, OrderStatus, User, db

merchants_bp = Blueprint("merchants", __name__)


# ----------------------------
# Haendler-Dashboard
# ----------------------------
@merchants_bp.route("/dashboard")
def dashboard():
    if not can_view_dashboard(g.user):
        abort(404)

    merchant = g.user
    size = current_app.config["TOP_LIST_SIZE"]
    previous = merchant.previous_buyers()

    return render_template(
        "merchants/dashboard.html",
        merchant=merchant,
        total_items_sold=merchant.total_items_sold(),
        total_inventory=merchant.total_inventory(),
        top_states=merchant.top_shipping("state", size),
        top_cities=merchant.top_shipping("city", size),
        top_active_user=merchant.top_active_user(),
        biggest_order=merchant.biggest_order(),
        top_buyers=merchant.top_buyers(size),
        previous_buyers=previous,
        never_ordered=merchant.never_ordered(previous),
    )


@merchants_bp.route("/dashboard/orders")
def dashboard_orders():
    if not can_view_dashboard(g.user):
        abort(404)

    status = request.args.get("status") or None
    if status is not None and status not in {s.value for s in OrderStatus}:
        abort(404)

    return render_template(
        "merchants/orders.html",
        orders=g.user.merchant_orders(status),
        status=status,
        statuses=list(OrderStatus),
    )


@merchants_bp.route("/dashboard/orders/<int:order_id>")
def dashboard_order(order_id):
    if not can_view_merchant_order(g.user, order_id):
        abort(404)

    order = db.get_or_404(Order, order_id)
    # nur die eigenen Positionen anzeigen
    own_items = [oi for oi in order.order_items if oi.item.user_id == g.user.id]
    return render_template("merchants/order.html", order=order, order_items=own_items)


# ----------------------------
# Haendler-Ranglisten
# ----------------------------
@merchants_bp.route("/")
@merchants_bp.route("/merchants")
def index():
    size = current_app.config["TOP_LIST_SIZE"]
    return render_template(
        "merchants/index.html",
        top_merchants=User.top_merchants(size),
        popular_merchants=User.popular_merchants(size),
        fastest_merchants=User.fastest_merchants(size),
        slowest_merchants=User.slowest_merchants(size),
    )
