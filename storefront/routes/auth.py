from flask import Blueprint, flash, g, redirect, render_template, request, session, url_for

from ..services.accounts import ADDRESS_FIELDS, AccountError, authenticate, get_user, register_user

auth_bp = Blueprint("auth", __name__)


@auth_bp.before_app_request
def load_current_user():
    g.user = get_user(session.get("user_id"))


# ---------- LOGIN ----------
@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        email = request.form.get("email")
        password = request.form.get("password")

        user = authenticate(email, password)
        if user:
            session["user_id"] = user.id
            flash(f"Welcome, {user.name}!", "success")
            return redirect(url_for("users.profile"))

        flash("Invalid email or password.", "error")
        return redirect(url_for("auth.login"))

    return render_template("login.html")


# ---------- REGISTRIERUNG ----------
@auth_bp.route("/register", methods=["GET", "POST"])
def register():
    if request.method == "POST":
        address = {field: request.form.get(f"address_{field}") for field in ADDRESS_FIELDS}
        if not any(address.values()):
            address = None

        try:
            user = register_user(
                request.form.get("name"),
                request.form.get("email"),
                request.form.get("password"),
                address=address,
            )
        except AccountError as e:
            for message in e.messages:
                flash(message, "error")
            return render_template("register.html", form=request.form), 400

        session["user_id"] = user.id
        flash("You are now registered and logged in.", "success")
        return redirect(url_for("users.profile"))

    return render_template("register.html", form={})


# ---------- LOGOUT ----------
@auth_bp.route("/logout")
def logout():
    session.pop("user_id", None)
    flash("You have been logged out.", "info")
    return redirect(url_for("merchants.index"))
