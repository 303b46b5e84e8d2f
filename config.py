"""
Configuration for the dealership sales core.

Values are read from the environment once at import time. A `.env` file at the
project root is loaded first so local development does not need exported
variables.

Environment variables:
- SUPABASE_URL / SUPABASE_KEY: only required by the Supabase store adapter
- CONTRACT_NUMBER_PREFIX / INVOICE_NUMBER_PREFIX / DEPOSIT_NUMBER_PREFIX /
  PROFORMA_NUMBER_PREFIX: document number prefixes
- NUMBER_ALLOCATION_ATTEMPTS: bounded retries for number allocation
- INVOICE_DUE_DAYS: default days between invoice issue and due date
- DEFAULT_TAX_RATE: VAT percentage offered by the forms
- DEPOSIT_DEADLINE_DAYS: default days between a deposit and its sale deadline
- DEPOSIT_DEFAULT_PERCENT: deposit suggested as a share of the total price
- PROFORMA_VALIDITY_DAYS: default validity of a proforma
- CURRENCY_SYMBOL / THOUSANDS_SEPARATOR / DECIMAL_SEPARATOR: money formatting
"""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


def _env_str(name: str, default: str) -> str:
    """Read a string setting, stripping whitespace and surrounding quotes."""

    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    return value or default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as e:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {raw!r}") from e


# Supabase credentials. Read lazily by repositories.client.
SUPABASE_URL: str | None = os.getenv("SUPABASE_URL")
SUPABASE_KEY: str | None = os.getenv("SUPABASE_KEY")

# Document numbering
CONTRACT_NUMBER_PREFIX: str = _env_str("CONTRACT_NUMBER_PREFIX", "CV")
INVOICE_NUMBER_PREFIX: str = _env_str("INVOICE_NUMBER_PREFIX", "FAC")
DEPOSIT_NUMBER_PREFIX: str = _env_str("DEPOSIT_NUMBER_PREFIX", "SN")
PROFORMA_NUMBER_PREFIX: str = _env_str("PROFORMA_NUMBER_PREFIX", "PF")
NUMBER_ALLOCATION_ATTEMPTS: int = max(1, _env_int("NUMBER_ALLOCATION_ATTEMPTS", 3))

# Invoicing defaults
INVOICE_DUE_DAYS: int = _env_int("INVOICE_DUE_DAYS", 30)
DEFAULT_TAX_RATE: Decimal = Decimal(_env_str("DEFAULT_TAX_RATE", "21"))

# Deposit and proforma defaults
DEPOSIT_DEADLINE_DAYS: int = _env_int("DEPOSIT_DEADLINE_DAYS", 15)
DEPOSIT_DEFAULT_PERCENT: Decimal = Decimal(_env_str("DEPOSIT_DEFAULT_PERCENT", "10"))
PROFORMA_VALIDITY_DAYS: int = _env_int("PROFORMA_VALIDITY_DAYS", 15)

# Money formatting (es-ES convention by default: 24.550,00 €)
CURRENCY_SYMBOL: str = _env_str("CURRENCY_SYMBOL", "€")
THOUSANDS_SEPARATOR: str = _env_str("THOUSANDS_SEPARATOR", ".")
DECIMAL_SEPARATOR: str = _env_str("DECIMAL_SEPARATOR", ",")
