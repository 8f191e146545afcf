import logging

from flask import Flask

from configs import Config, db, login
from db.models.user import User, UserRole
from blueprint import blue_print
from admin.setup import init_admin


def _setup_logging(level_name: str) -> None:
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(level)


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    _setup_logging(app.config["LOG_LEVEL"])

    db.init_app(app)
    login.init_app(app)
    login.login_view = "auth.login"
    login.login_message = "Inicia sesión para continuar"

    @app.context_processor
    def inject_enums():
        return dict(UserRole=UserRole)

    init_admin(app)  # /manage
    blue_print(app)
    return app


@login.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


if __name__ == "__main__":
    create_app().run(debug=True, host="0.0.0.0", port=5000)
