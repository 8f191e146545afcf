from flask import Blueprint, render_template, request, redirect, url_for, flash
from flask_login import login_required
from configs import db
from dao import client as client_dao
from utils.result import attempt
from utils.validators import parse_bool

client_bp = Blueprint("client_web", __name__)


def _form_fields():
    return dict(
        name=request.form.get("name", ""),
        document_type=request.form.get("document_type"),
        document=request.form.get("document"),
        address=request.form.get("address"),
        phone=request.form.get("phone"),
        email=request.form.get("email"),
    )


@client_bp.route("/clients")
@login_required
def clients_list():
    search = request.args.get("search", "").strip()
    clients = client_dao.list_clients(db.session, search=search or None)
    return render_template("client/clients.html", clients=clients, search=search)


@client_bp.route("/clients/add", methods=["GET", "POST"])
@login_required
def clients_add():
    if request.method == "POST":
        result = attempt(client_dao.create_client, db.session, **_form_fields())
        if result.ok:
            flash("Cliente creado", "success")
            return redirect(url_for("client_web.clients_list"))
        flash(result.message, "warning")
        return (
            render_template("client/client_form.html", action="add", client=None, form=request.form),
            result.status,
        )
    return render_template("client/client_form.html", action="add", client=None, form={})


@client_bp.route("/clients/edit/<int:client_id>", methods=["GET", "POST"])
@login_required
def clients_edit(client_id: int):
    c = client_dao.get_client(db.session, client_id)
    if not c:
        flash("Cliente no encontrado", "warning")
        return redirect(url_for("client_web.clients_list"))
    if request.method == "POST":
        result = attempt(
            client_dao.update_client,
            db.session,
            client_id,
            is_active=parse_bool(request.form.get("is_active")),
            **_form_fields(),
        )
        if result.ok:
            flash("Cliente actualizado", "success")
            return redirect(url_for("client_web.clients_list"))
        flash(result.message, "warning")
        return (
            render_template("client/client_form.html", action="edit", client=c, form=request.form),
            result.status,
        )
    return render_template("client/client_form.html", action="edit", client=c, form={})
