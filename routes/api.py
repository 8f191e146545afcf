# routes/api.py
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from configs import db
from dao import material as material_dao, transaction as tx_dao, user as user_dao
from utils.auth import admin_required
from utils.result import Result, attempt

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _error(result: Result):
    e = result.error
    return (
        jsonify({"error": e.message, "kind": e.kind.value, "code": e.code}),
        result.status,
    )


@api_bp.route("/materials")
@login_required
def api_materials():
    materials = material_dao.list_materials(db.session)
    return jsonify(
        [
            {
                "id": m.id,
                "code": m.code,
                "name": m.name,
                "category": m.category,
                "price": str(m.price),
                "stock": str(m.stock),
            }
            for m in materials
        ]
    )


@api_bp.route("/materials/seed", methods=["POST"])
@admin_required
def api_materials_seed():
    result = attempt(material_dao.seed_materials, db.session)
    if not result.ok:
        return _error(result)
    return jsonify(
        {
            "message": "Materiales procesados exitosamente",
            "results": [
                {"action": action, "code": m.code, "name": m.name}
                for action, m in result.value
            ],
        }
    )


@api_bp.route("/transactions", methods=["POST"])
@login_required
def api_transactions_create():
    payload = request.get_json(silent=True) or {}
    lines = payload.get("lines")
    if not isinstance(lines, list):
        lines = []
    result = attempt(
        tx_dao.create_transaction,
        db.session,
        payload.get("client_id"),
        lines,
        current_user.id,
        notes=payload.get("notes"),
    )
    if not result.ok:
        return _error(result)
    return jsonify(tx_dao.transaction_receipt(result.value)), 201


@api_bp.route("/transactions/latest")
@login_required
def api_transactions_latest():
    tx = tx_dao.latest_transaction(db.session)
    if not tx:
        return jsonify({"error": "No hay transacciones"}), 404
    return jsonify(
        {
            "id": tx.id,
            "folio": tx.folio,
            "created_at": tx.created_at.isoformat() if tx.created_at else None,
            "client": {
                "name": tx.client.name,
                "document": tx.client.document,
                "document_type": tx.client.document_type,
            },
        }
    )


@api_bp.route("/transactions/<int:tx_id>/details")
@login_required
def api_transactions_details(tx_id: int):
    tx = tx_dao.get_transaction(db.session, tx_id)
    if not tx:
        return jsonify({"error": "Transacción no encontrada"}), 404
    return jsonify(tx_dao.transaction_receipt(tx))


@api_bp.route("/auth/ensure-user", methods=["POST"])
@admin_required
def api_ensure_user():
    payload = request.get_json(silent=True) or {}
    result = attempt(
        user_dao.ensure_user, db.session, payload.get("email"), name=payload.get("name")
    )
    if not result.ok:
        return _error(result)
    u = result.value
    return jsonify({"ok": True, "id": u.id, "email": u.email, "role": u.role.value})
