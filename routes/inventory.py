from flask import Blueprint, render_template, request, redirect, url_for, flash
from flask_login import current_user, login_required
from configs import db
from dao import inventory as inv_dao, material as material_dao
from db.models.inventory import MovementType
from utils.result import attempt

inventory_bp = Blueprint("inventory_web", __name__)


def _render_inventory(status: int = 200):
    search = request.args.get("search", "").strip()
    rows = inv_dao.list_inventory(db.session, search=search or None)
    return (
        render_template(
            "inventory/inventory.html",
            rows=rows,
            search=search,
            materials=material_dao.list_materials(db.session),
            kinds=list(MovementType),
        ),
        status,
    )


@inventory_bp.route("/inventory")
@login_required
def inventory_list():
    return _render_inventory()


@inventory_bp.route("/inventory/adjust", methods=["POST"])
@login_required
def inventory_adjust():
    result = attempt(
        inv_dao.post_adjustment,
        db.session,
        request.form.get("material_id"),
        request.form.get("type"),
        request.form.get("quantity"),
        reference=request.form.get("reference"),
        user=current_user,
    )
    if not result.ok:
        flash(result.message, "warning")
        return _render_inventory(result.status)
    mv = result.value
    flash(f"Movimiento registrado. Nuevo saldo: {mv.balance} kg", "success")
    return redirect(url_for("inventory_web.inventory_list"))


@inventory_bp.route("/inventory/<int:material_id>/movements")
@login_required
def inventory_movements(material_id: int):
    m = material_dao.get_material(db.session, material_id)
    if not m:
        flash("Material no encontrado", "warning")
        return redirect(url_for("inventory_web.inventory_list"))
    movements = inv_dao.list_movements(db.session, material_id)
    return render_template("inventory/movements.html", material=m, movements=movements)
