from flask import Blueprint, render_template, request, redirect, url_for, flash
from flask_login import login_required
from configs import db
from dao import material as material_dao
from utils.result import attempt
from utils.validators import parse_bool

material_bp = Blueprint("material_web", __name__)


def _form_fields():
    return dict(
        code=request.form.get("code", ""),
        name=request.form.get("name", ""),
        category=request.form.get("category", ""),
        price=request.form.get("price", ""),
        description=request.form.get("description"),
    )


@material_bp.route("/materials")
@login_required
def materials_list():
    search = request.args.get("search", "").strip()
    materials = material_dao.list_materials(db.session, search=search or None, active_only=False)
    return render_template("material/materials.html", materials=materials, search=search)


@material_bp.route("/materials/add", methods=["GET", "POST"])
@login_required
def materials_add():
    if request.method == "POST":
        result = attempt(material_dao.create_material, db.session, **_form_fields())
        if result.ok:
            flash("Material creado", "success")
            return redirect(url_for("material_web.materials_list"))
        flash(result.message, "warning")
        return (
            render_template(
                "material/material_form.html", action="add", material=None, form=request.form
            ),
            result.status,
        )
    return render_template("material/material_form.html", action="add", material=None, form={})


@material_bp.route("/materials/edit/<int:material_id>", methods=["GET", "POST"])
@login_required
def materials_edit(material_id: int):
    m = material_dao.get_material(db.session, material_id)
    if not m:
        flash("Material no encontrado", "warning")
        return redirect(url_for("material_web.materials_list"))
    if request.method == "POST":
        result = attempt(
            material_dao.update_material,
            db.session,
            material_id,
            is_active=parse_bool(request.form.get("is_active")),
            **_form_fields(),
        )
        if result.ok:
            flash("Material actualizado", "success")
            return redirect(url_for("material_web.materials_list"))
        flash(result.message, "warning")
        return (
            render_template(
                "material/material_form.html", action="edit", material=m, form=request.form
            ),
            result.status,
        )
    return render_template("material/material_form.html", action="edit", material=m, form={})
