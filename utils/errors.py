# utils/errors.py
"""
Typed errors raised by the dao layer.

Each error carries an ``ErrorKind`` (what sort of failure) and a stable
``code`` (which rule failed) next to the user-facing message, so callers
can branch without looking at the text.
"""
import enum


class ErrorKind(enum.Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INSUFFICIENT_STOCK = "insufficient_stock"
    PERSISTENCE = "persistence"


class AppError(Exception):
    kind = ErrorKind.PERSISTENCE
    default_code = "APP_ERROR"

    def __init__(self, message: str, code: str | None = None, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.field = field

    def __repr__(self):
        return f"{type(self).__name__}({self.code!r}, {self.message!r})"


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION
    default_code = "INVALID"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    default_code = "NOT_FOUND"


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    default_code = "CONFLICT"


class InsufficientStockError(AppError):
    kind = ErrorKind.INSUFFICIENT_STOCK
    default_code = "INSUFFICIENT_STOCK"


class PersistenceError(AppError):
    kind = ErrorKind.PERSISTENCE
    default_code = "DB_ERROR"


# ---------- named failures ----------
def no_client_selected() -> ValidationError:
    return ValidationError(
        "Debe seleccionar un cliente", code="NO_CLIENT_SELECTED", field="client_id"
    )


def empty_line_set() -> ValidationError:
    return ValidationError(
        "Debe agregar al menos un material", code="EMPTY_LINE_SET", field="lines"
    )


def invalid_line_quantity(idx: int) -> ValidationError:
    return ValidationError(
        f"Línea {idx}: la cantidad debe ser mayor a 0 y menor a 100,000,000,000 kg",
        code="INVALID_LINE_QUANTITY",
        field="quantity",
    )


def invalid_line_price(idx: int) -> ValidationError:
    return ValidationError(
        f"Línea {idx}: el precio unitario debe ser mayor a 0 y no mayor a $999,999.99",
        code="INVALID_LINE_PRICE",
        field="unit_price",
    )


def amount_too_large() -> ValidationError:
    return ValidationError(
        "El importe de la transacción excede el máximo permitido",
        code="AMOUNT_TOO_LARGE",
        field="lines",
    )


def invalid_quantity() -> ValidationError:
    return ValidationError(
        "La cantidad debe ser mayor a 0 y menor a 100,000,000,000 kg",
        code="INVALID_QUANTITY",
        field="quantity",
    )


def stock_limit_exceeded(code: str) -> ValidationError:
    return ValidationError(
        f"El inventario de {code} excedería el máximo registrable",
        code="STOCK_LIMIT",
        field="quantity",
    )


def material_not_found(material_id=None) -> NotFoundError:
    suffix = f" (#{material_id})" if material_id is not None else ""
    return NotFoundError(f"Material no encontrado{suffix}", code="MATERIAL_NOT_FOUND")


def client_not_found() -> NotFoundError:
    return NotFoundError("Cliente no encontrado", code="CLIENT_NOT_FOUND")


def insufficient_stock(code: str, available, requested) -> InsufficientStockError:
    return InsufficientStockError(
        f"No hay suficiente inventario de {code}: "
        f"disponible {available} kg, solicitado {requested} kg"
    )
