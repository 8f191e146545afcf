from flask import Blueprint, render_template, request, redirect, url_for, flash, session
from flask_login import login_user, logout_user, current_user
from configs import db
from dao import user as user_dao

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _safe_next(url: str | None) -> str:
    # only local paths
    if url and url.startswith("/") and not url.startswith("//"):
        return url
    return url_for("main.home")


@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        session.pop("_flashes", None)

        email = request.form.get("email", "").strip()
        password = request.form.get("password", "")
        user = user_dao.authenticate(db.session, email, password)

        if not user:
            flash("Correo o contraseña incorrectos", "danger")
            return render_template("auth/login.html"), 401

        if not user.is_active:
            flash("La cuenta está desactivada", "warning")
            return render_template("auth/login.html"), 403

        login_user(user, remember=True)
        flash("Sesión iniciada", "success")
        return redirect(_safe_next(request.args.get("next")))

    return render_template("auth/login.html")


@auth_bp.route("/logout")
def logout():
    if current_user.is_authenticated:
        logout_user()
        session.pop("_flashes", None)
        flash("Sesión cerrada", "info")
    return redirect(url_for("auth.login"))
