from index import main_bp
from routes.auth import auth_bp
from routes.material import material_bp
from routes.client import client_bp
from routes.inventory import inventory_bp
from routes.transaction import transaction_bp
from routes.history import history_bp
from routes.api import api_bp


def blue_print(app):
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(material_bp)
    app.register_blueprint(client_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(transaction_bp)
    app.register_blueprint(history_bp)
    app.register_blueprint(api_bp)
