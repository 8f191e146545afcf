from datetime import date
from flask import Blueprint, render_template, request
from flask_login import login_required
from configs import db
from dao import inventory as inv_dao, transaction as tx_dao

history_bp = Blueprint("history_web", __name__)

HISTORY_TYPES = ("all", "transactions", "movements")


def _parse_date(s: str | None):
    if not s:
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        return None


@history_bp.route("/history")
@login_required
def history():
    search = request.args.get("search", "").strip() or None
    kind = request.args.get("type", "all")
    if kind not in HISTORY_TYPES:
        kind = "all"
    date_from = _parse_date(request.args.get("date_from"))
    date_to = _parse_date(request.args.get("date_to"))

    transactions, movements = [], []
    if kind in ("all", "transactions"):
        transactions = tx_dao.list_transactions(
            db.session, search=search, date_from=date_from, date_to=date_to, limit=100
        )
    if kind in ("all", "movements"):
        movements = inv_dao.search_movements(
            db.session, search=search, date_from=date_from, date_to=date_to
        )

    return render_template(
        "history.html",
        transactions=transactions,
        movements=movements,
        search=search or "",
        kind=kind,
        date_from=date_from,
        date_to=date_to,
    )
