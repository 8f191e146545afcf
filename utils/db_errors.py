# utils/db_errors.py
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    StatementError,
)
from sqlalchemy.orm.exc import StaleDataError

from utils.errors import (
    AppError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

# (column hint, code, message); the first hint found in the driver message wins
_UNIQUE_TARGETS = [
    ("folio", "DUPLICATE_FOLIO", "El folio ya existe. Intenta de nuevo."),
    ("code", "DUPLICATE_CODE", "El código del material ya existe. Usa otro código."),
    ("email", "DUPLICATE_EMAIL", "El correo electrónico ya está registrado."),
    ("document", "DUPLICATE_DOCUMENT", "El documento del cliente ya está registrado."),
]


def _raw_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig if orig is not None else exc).lower()


def _is_unique_violation(msg: str) -> bool:
    return "unique" in msg or "duplicate key" in msg


def _is_fk_violation(msg: str) -> bool:
    return "foreign key" in msg


def translate_db_error(exc: Exception) -> AppError:
    """Map a SQLAlchemy failure onto the application error taxonomy."""
    if isinstance(exc, AppError):
        return exc

    if isinstance(exc, StaleDataError):
        return ConflictError(
            "El registro fue modificado por otra operación. Intenta de nuevo.",
            code="WRITE_CONFLICT",
        )

    if isinstance(exc, IntegrityError):
        msg = _raw_message(exc)
        if _is_unique_violation(msg):
            for hint, code, text in _UNIQUE_TARGETS:
                if hint in msg:
                    return ConflictError(text, code=code, field=hint)
            return ConflictError("Ya existe un registro con estos datos únicos.")
        if _is_fk_violation(msg):
            return NotFoundError(
                "Error de relación: el registro referenciado no existe.",
                code="FK_VIOLATION",
            )
        if "not null" in msg:
            return ValidationError("Faltan datos obligatorios.", code="MISSING_FIELD")
        return PersistenceError("Error de integridad en la base de datos.")

    if isinstance(exc, (OperationalError, InterfaceError)):
        msg = _raw_message(exc)
        if "no such table" in msg or "does not exist" in msg:
            return PersistenceError(
                "La tabla no existe en la base de datos.", code="MISSING_TABLE"
            )
        return PersistenceError(
            "Error al inicializar la conexión a la base de datos.",
            code="DB_UNAVAILABLE",
        )

    if isinstance(exc, StatementError) and not isinstance(exc, DBAPIError):
        return ValidationError("Error de validación en los datos enviados.")

    if isinstance(exc, SQLAlchemyError):
        return PersistenceError("Error desconocido en la base de datos.")

    return PersistenceError("Error desconocido. Por favor, intenta de nuevo.")
