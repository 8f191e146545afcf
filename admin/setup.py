# admin/setup.py
from flask import redirect, url_for, request, flash
from flask_login import current_user, logout_user
from flask_admin import Admin, AdminIndexView, expose
from flask_admin.contrib.sqla import ModelView
from flask_admin.menu import MenuLink
from flask_admin.theme import Bootstrap4Theme
from configs import db
from db.models.user import UserRole


def _is_admin() -> bool:
    return current_user.is_authenticated and current_user.has_role(UserRole.ADMIN)


class MyAdminIndex(AdminIndexView):
    @expose("/")
    def index(self):
        # not logged in -> login page, no flash
        if not current_user.is_authenticated:
            return redirect(url_for("auth.login", next=request.url))

        if not current_user.has_role(UserRole.ADMIN):
            flash("No tienes permiso para entrar a la administración.", "danger")
            return redirect(url_for("main.home"))

        return super().index()

    @expose("/logout")
    def admin_logout(self):
        if current_user.is_authenticated:
            logout_user()
            flash("Sesión cerrada.", "success")
        return redirect(url_for("admin.index"))

    def is_accessible(self):
        return _is_admin()

    def inaccessible_callback(self, name, **kwargs):
        if not current_user.is_authenticated:
            return redirect(url_for("auth.login", next=request.url))
        flash("No tienes permiso para entrar a la administración.", "danger")
        return redirect(url_for("main.home"))


class SecureModelView(ModelView):
    can_view_details = True
    can_export = True

    def is_accessible(self):
        return _is_admin()

    def inaccessible_callback(self, name, **kwargs):
        return redirect(url_for("auth.login", next=request.url))


class LedgerView(SecureModelView):
    """History tables are append-only: browse and export, nothing else."""

    can_create = False
    can_edit = False
    can_delete = False


class UserView(SecureModelView):
    column_list = ["id", "email", "name", "role", "is_active", "created_at"]
    column_searchable_list = ["email", "name"]
    form_excluded_columns = ["password_hash", "created_at"]
    can_delete = False


class ClientView(SecureModelView):
    column_list = ["id", "name", "document_type", "document", "phone", "email", "is_active"]
    column_searchable_list = ["name", "document", "email"]
    column_filters = ["is_active"]
    form_excluded_columns = ["transactions", "created_at", "updated_at"]
    can_delete = False


class MaterialView(SecureModelView):
    column_list = ["id", "code", "name", "category", "price", "stock", "is_active"]
    column_searchable_list = ["code", "name", "category"]
    column_filters = ["category", "is_active"]
    # stock moves only through the ledger
    form_excluded_columns = ["stock", "version", "movements", "created_at", "updated_at"]
    can_delete = False


class TransactionView(LedgerView):
    column_searchable_list = ["folio"]
    column_filters = ["status", "type", "created_at", "client_id"]
    column_list = [
        "id",
        "folio",
        "client",
        "user",
        "type",
        "status",
        "total_weight",
        "total_amount",
        "created_at",
    ]


class MovementView(LedgerView):
    column_filters = ["type", "material_id", "created_at"]
    column_list = ["id", "material", "type", "quantity", "balance", "reference", "created_at"]
    column_default_sort = ("id", True)


def init_admin(app):

    admin = Admin(
        app,
        name="Chatarrera Admin",
        theme=Bootstrap4Theme(),
        index_view=MyAdminIndex(url="/manage"),
        url="/manage",
    )
    # model imports here to avoid circular imports
    from db.models.user import User
    from db.models.client import Client
    from db.models.material import Material
    from db.models.inventory import InventoryMovement
    from db.models.transaction import Transaction, TransactionDetail

    admin.add_view(
        UserView(User, db.session, category="Sistema", endpoint="admin_user", name="Usuarios")
    )
    admin.add_view(
        ClientView(
            Client, db.session, category="Catálogos", endpoint="admin_client", name="Clientes"
        )
    )
    admin.add_view(
        MaterialView(
            Material,
            db.session,
            category="Catálogos",
            endpoint="admin_material",
            name="Materiales",
        )
    )
    admin.add_view(
        TransactionView(
            Transaction,
            db.session,
            category="Historial",
            endpoint="admin_transaction",
            name="Transacciones",
        )
    )
    admin.add_view(
        LedgerView(
            TransactionDetail,
            db.session,
            category="Historial",
            endpoint="admin_transaction_detail",
            name="Detalle de transacciones",
        )
    )
    admin.add_view(
        MovementView(
            InventoryMovement,
            db.session,
            category="Historial",
            endpoint="admin_movement",
            name="Movimientos de inventario",
        )
    )
    admin.add_link(
        MenuLink(
            name="Salir",
            category="Sistema",
            endpoint="admin.admin_logout",
            icon_type="glyph",
            icon_value="glyphicon-log-out",
        )
    )

    return admin
