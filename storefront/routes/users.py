from flask import Blueprint, abort, flash, g, redirect, render_template, request, url_for

from ..access import can_view_profile
from ..models import User, db
from ..services.accounts import AccountError, update_user

users_bp = Blueprint("users", __name__)


# ----------------------------
# Helper
# ----------------------------
def _own_id():
    return g.user.id if g.user else None


def _load_profile(user_id):
    # Zugriff pruefen bevor irgendetwas geladen wird
    if not can_view_profile(g.user, user_id):
        abort(404)
    return db.get_or_404(User, user_id)


def _profile_urls(user, own):
    if own:
        return {
            "show_url": url_for("users.profile"),
            "edit_url": url_for("users.profile_edit"),
            "orders_url": url_for("users.profile_orders"),
        }
    return {
        "show_url": url_for("users.show", user_id=user.id),
        "edit_url": url_for("users.edit", user_id=user.id),
        "orders_url": url_for("users.orders", user_id=user.id),
    }


def _render_show(user, own):
    return render_template(
        "users/show.html",
        user=user,
        addresses=user.active_with_default_first(),
        default_address_id=user.default_address_id,
        **_profile_urls(user, own),
    )


def _handle_edit(user, own):
    urls = _profile_urls(user, own)
    if request.method == "POST":
        try:
            update_user(
                user,
                request.form.get("name"),
                request.form.get("email"),
                password=request.form.get("password"),
            )
        except AccountError as e:
            for message in e.messages:
                flash(message, "error")
            return render_template("users/edit.html", user=user, form=request.form, **urls), 400

        flash("Profile updated.", "success")
        return redirect(urls["show_url"])

    form = {"name": user.name, "email": user.email}
    return render_template("users/edit.html", user=user, form=form, **urls)


def _render_orders(user, own):
    return render_template("users/orders.html", user=user, orders=user.orders, **_profile_urls(user, own))


# ----------------------------
# Eigenes Profil
# ----------------------------
@users_bp.route("/profile")
def profile():
    return _render_show(_load_profile(_own_id()), own=True)


@users_bp.route("/profile/edit", methods=["GET", "POST"])
def profile_edit():
    return _handle_edit(_load_profile(_own_id()), own=True)


@users_bp.route("/profile/orders")
def profile_orders():
    return _render_orders(_load_profile(_own_id()), own=True)


# ----------------------------
# Profil eines anderen Users (Admin)
# ----------------------------
@users_bp.route("/users/<int:user_id>")
def show(user_id):
    return _render_show(_load_profile(user_id), own=False)


@users_bp.route("/users/<int:user_id>/edit", methods=["GET", "POST"])
def edit(user_id):
    return _handle_edit(_load_profile(user_id), own=False)


@users_bp.route("/users/<int:user_id>/orders")
def orders(user_id):
    return _render_orders(_load_profile(user_id), own=False)
