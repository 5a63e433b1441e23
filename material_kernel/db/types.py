"""
Module: material_kernel.db.types
Responsibility: Shared column conventions for every module's ORM models, so
    that quantities and ERP foreign-key ids are declared and normalized
    identically everywhere.
Architecture position: Kernel > DB.  May be imported by ORM modules, domain
    models and services.  MUST NOT import from those layers.

Invariants enforced:
    - No floats for quantities.  All quantities are Decimal with 9 decimal
      places of precision (Numeric(38, 9) via the Base type map).
    - ERP foreign keys are plain integers where 0 means "not set".
"""

from decimal import Decimal

from sqlalchemy import String

# Enum names are stored as strings of this length
ENUM_NAME_LENGTH = 50

# Short document status codes (e.g. "CO", "DR")
DOC_STATUS_LENGTH = 2

QTY_DECIMAL_PLACES = 9

NO_REPO_ID = 0


def enum_name_column() -> String:
    return String(ENUM_NAME_LENGTH)


def is_repo_id_set(value: int | None) -> bool:
    """True if *value* references an actual record (positive id)."""
    return value is not None and value > 0


def to_qty(value) -> Decimal:
    """
    Coerce *value* to a Decimal quantity.

    Floats are rejected; use strings or Decimals for fractional quantities.

    Raises:
        TypeError: value is a float.
    """
    if isinstance(value, float):
        raise TypeError(f"float quantities are not allowed: {value!r}")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)
