# index.py
from datetime import datetime, time
from flask import Blueprint, render_template
from flask_login import login_required
from sqlalchemy import func, select
from configs import db
from db.models.client import Client
from db.models.material import Material
from db.models.transaction import Transaction

main_bp = Blueprint("main", __name__)


@main_bp.app_context_processor
def inject_now():
    return {"current_year": datetime.now().year}


@main_bp.route("/")
@login_required
def home():
    s = db.session
    today = datetime.combine(datetime.utcnow().date(), time.min)
    stats = {
        "materials": s.scalar(
            select(func.count(Material.id)).filter(Material.is_active.is_(True))
        ),
        "clients": s.scalar(
            select(func.count(Client.id)).filter(Client.is_active.is_(True))
        ),
        "transactions_today": s.scalar(
            select(func.count(Transaction.id)).filter(Transaction.created_at >= today)
        ),
        "stock_kg": s.scalar(
            select(func.coalesce(func.sum(Material.stock), 0)).filter(
                Material.is_active.is_(True)
            )
        ),
    }
    return render_template("index.html", stats=stats)
