# utils/validators.py
"""Server-side re-validation of form input for the catalog screens."""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from utils.errors import ValidationError

CODE_RE = re.compile(r"^[A-Z0-9\-_]+$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[+]?[\d\s\-()]{10,}$")

MAX_PRICE = Decimal("999999.99")
# column bounds: Numeric(14,3) for kg, Numeric(14,2) for amounts
MAX_QUANTITY = Decimal("99999999999.999")
MAX_AMOUNT = Decimal("999999999999.99")
CENTS = Decimal("0.01")
GRAMS = Decimal("0.001")


def to_decimal(value, places: Decimal | None = None) -> Decimal | None:
    """Parse a form/JSON value into a finite Decimal, or None if it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = repr(value)
    try:
        d = Decimal(str(value).strip().replace(",", ""))
        if not d.is_finite():
            return None
        if places is not None:
            # overflows the context precision for huge exponents
            d = d.quantize(places, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return None
    return d


def _clean(value) -> str:
    return str(value or "").strip()


def _optional(value) -> str | None:
    v = _clean(value)
    return v or None


def _length(value: str, field: str, label: str, lo: int, hi: int) -> None:
    if not value:
        raise ValidationError(f"{label} es obligatorio", code="REQUIRED", field=field)
    if len(value) < lo or len(value) > hi:
        raise ValidationError(
            f"{label} debe tener entre {lo} y {hi} caracteres",
            code="INVALID_LENGTH",
            field=field,
        )


def validate_material_form(code, name, category, price, description=None) -> dict:
    code = _clean(code)
    name = _clean(name)
    category = _clean(category)

    _length(code, "code", "El código", 2, 20)
    if not CODE_RE.match(code):
        raise ValidationError(
            "El código solo puede contener letras mayúsculas, números, guiones y guiones bajos",
            code="INVALID_FORMAT",
            field="code",
        )
    _length(name, "name", "El nombre", 2, 100)
    _length(category, "category", "La categoría", 2, 50)

    p = to_decimal(price, CENTS)
    if p is None or p < 0:
        raise ValidationError(
            "El precio debe ser un número mayor o igual a 0",
            code="INVALID_PRICE",
            field="price",
        )
    if p > MAX_PRICE:
        raise ValidationError(
            "El precio no puede ser mayor a $999,999.99",
            code="INVALID_PRICE",
            field="price",
        )

    return {
        "code": code,
        "name": name,
        "category": category,
        "price": p,
        "description": _optional(description),
    }


def validate_client_form(
    name, document_type=None, document=None, address=None, phone=None, email=None
) -> dict:
    name = _clean(name)
    _length(name, "name", "El nombre", 2, 100)

    document = _optional(document)
    if document and len(document) < 5:
        raise ValidationError(
            "El documento debe tener al menos 5 caracteres",
            code="INVALID_LENGTH",
            field="document",
        )

    email = _optional(email)
    if email and not EMAIL_RE.match(email):
        raise ValidationError(
            "El correo electrónico no es válido", code="INVALID_FORMAT", field="email"
        )

    phone = _optional(phone)
    if phone and not PHONE_RE.match(phone):
        raise ValidationError(
            "El teléfono no es válido", code="INVALID_FORMAT", field="phone"
        )

    return {
        "name": name,
        "document_type": _optional(document_type),
        "document": document,
        "address": _optional(address),
        "phone": phone,
        "email": email.lower() if email else None,
    }


def parse_bool(value) -> bool:
    return str(value or "").strip().lower() in ("1", "true", "on", "yes")
