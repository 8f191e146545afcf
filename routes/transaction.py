from flask import Blueprint, render_template, request, redirect, url_for, flash
from flask_login import current_user, login_required
from configs import db
from dao import client as client_dao, material as material_dao, transaction as tx_dao
from utils.result import attempt

transaction_bp = Blueprint("transaction_web", __name__)


def extract_lines(form) -> list[dict]:
    """
    Line items from the repeated ``material_id`` / ``quantity`` /
    ``unit_price`` inputs of the form, one dict per row. Fully blank rows
    (the form's spare row) are skipped; partial rows are kept so the
    validator can reject them.
    """
    material_ids = form.getlist("material_id")
    quantities = form.getlist("quantity")
    prices = form.getlist("unit_price")
    width = max(len(material_ids), len(quantities), len(prices))

    def _at(values, i):
        return values[i].strip() if i < len(values) and values[i] else ""

    lines = []
    for i in range(width):
        row = {
            "material_id": _at(material_ids, i),
            "quantity": _at(quantities, i),
            "unit_price": _at(prices, i),
        }
        if any(row.values()):
            lines.append(row)
    return lines


def _render_form(status: int = 200):
    return (
        render_template(
            "transaction/transaction_form.html",
            clients=client_dao.list_clients(db.session, active_only=True),
            materials=material_dao.list_materials(db.session),
            form=request.form,
        ),
        status,
    )


@transaction_bp.route("/transactions")
@login_required
def transactions_list():
    search = request.args.get("search", "").strip()
    transactions = tx_dao.list_transactions(db.session, search=search or None)
    return render_template(
        "transaction/transactions.html", transactions=transactions, search=search
    )


@transaction_bp.route("/transactions/add", methods=["GET", "POST"])
@login_required
def transactions_add():
    if request.method == "POST":
        result = attempt(
            tx_dao.create_transaction,
            db.session,
            request.form.get("client_id"),
            extract_lines(request.form),
            current_user.id,
            notes=request.form.get("notes"),
        )
        if result.ok:
            tx = result.value
            flash(f"Transacción {tx.folio} registrada", "success")
            return redirect(url_for("transaction_web.transactions_detail", tx_id=tx.id))
        flash(result.message, "warning")
        return _render_form(result.status)
    return _render_form()


@transaction_bp.route("/transactions/<int:tx_id>")
@login_required
def transactions_detail(tx_id: int):
    tx = tx_dao.get_transaction(db.session, tx_id)
    if not tx:
        flash("Transacción no encontrada", "warning")
        return redirect(url_for("transaction_web.transactions_list"))
    return render_template("transaction/transaction_detail.html", tx=tx)
