# models/settings.py
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation

# key -> value written on first start (settings are stored as text)
DEFAULT_SETTINGS = {
    "default_price_per_page": "0",
    "default_extra_hour_rate": "0",
    "default_fixed_price": "0",
    "company_name": "",
    "company_email": "",
    "company_phone": "",
    "company_address": "",
    "company_website": "",
    "tax_rate": "0",
    "currency": "TRY",
    "language": "tr",
}

NUMERIC_KEYS = ("default_price_per_page", "default_extra_hour_rate", "default_fixed_price", "tax_rate")


def _to_decimal(value: str | None) -> Decimal:
    try:
        return Decimal(value) if value not in (None, "") else Decimal("0")
    except InvalidOperation:
        return Decimal("0")


@dataclass
class Settings:
    default_price_per_page: Decimal = Decimal("0")
    default_extra_hour_rate: Decimal = Decimal("0")
    default_fixed_price: Decimal = Decimal("0")
    company_name: str = ""
    company_email: str = ""
    company_phone: str = ""
    company_address: str = ""
    company_website: str = ""
    tax_rate: Decimal = Decimal("0")
    currency: str = "TRY"
    language: str = "tr"

    @classmethod
    def from_rows(cls, rows: list[dict]) -> "Settings":
        """Typed view over `SELECT key, value FROM settings`; unknown keys are ignored."""
        raw = {r["key"]: r["value"] for r in rows}
        values = {}
        for f in fields(cls):
            if f.name not in raw:
                continue
            if f.name in NUMERIC_KEYS:
                values[f.name] = _to_decimal(raw[f.name])
            else:
                values[f.name] = raw[f.name] or DEFAULT_SETTINGS[f.name]
        return cls(**values)
