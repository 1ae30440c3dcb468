"""Invoice and company profile records consumed by the renderer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from .formatting import safe_float


class Country(str, Enum):
    INDIA = "india"
    JAPAN = "japan"

    @classmethod
    def parse(cls, raw: Any) -> "Country":
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.INDIA


class Language(str, Enum):
    EN = "en"
    JA = "ja"

    @classmethod
    def parse(cls, raw: Any) -> "Language":
        if isinstance(raw, cls):
            return raw
        value = str(raw or "en").strip().lower()
        if value not in ("en", "ja"):
            raise ValueError(f"Unsupported language {raw!r}; expected 'en' or 'ja'.")
        return cls(value)


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return str(value)


def _optional_text(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = _text(data, key).strip()
    return value or None


@dataclass(frozen=True)
class ServiceItem:
    id: str
    description: str
    hours: float
    rate: float

    @property
    def amount(self) -> float:
        return self.hours * self.rate

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ServiceItem":
        return cls(
            id=_text(data, "id"),
            description=_text(data, "description"),
            hours=safe_float(data.get("hours")),
            rate=safe_float(data.get("rate")),
        )


@dataclass(frozen=True)
class Invoice:
    """A single invoice as supplied by the invoice-storage collaborator.

    Service order is rendering order. ``invoice_number`` is a display key only;
    nothing here assumes it is unique.
    """

    id: str
    invoice_number: str
    date: str
    due_date: Optional[str] = None
    employee_name: str = ""
    employee_id: str = ""
    employee_email: str = ""
    employee_address: str = ""
    employee_mobile: str = ""
    services: Tuple[ServiceItem, ...] = ()
    tax_rate: float = 0.0
    country: Country = Country.INDIA

    @property
    def subtotal(self) -> float:
        return sum((service.amount for service in self.services), 0.0)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Invoice":
        services = data.get("services") or []
        return cls(
            id=_text(data, "id"),
            invoice_number=_text(data, "invoiceNumber"),
            date=_text(data, "date"),
            due_date=_optional_text(data, "dueDate"),
            employee_name=_text(data, "employeeName"),
            employee_id=_text(data, "employeeId"),
            employee_email=_text(data, "employeeEmail"),
            employee_address=_text(data, "employeeAddress"),
            employee_mobile=_text(data, "employeeMobile"),
            services=tuple(ServiceItem.from_dict(item) for item in services),
            tax_rate=safe_float(data.get("taxRate")),
            country=Country.parse(data.get("country") or Country.INDIA.value),
        )


@dataclass(frozen=True)
class BankDetails:
    bank_name: str = ""
    account_number: str = ""
    account_holder_name: str = ""
    ifsc_code: str = ""
    branch_name: Optional[str] = None
    branch_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BankDetails":
        return cls(
            bank_name=_text(data, "bankName"),
            account_number=_text(data, "accountNumber"),
            account_holder_name=_text(data, "accountHolderName"),
            ifsc_code=_text(data, "ifscCode"),
            branch_name=_optional_text(data, "branchName"),
            branch_code=_optional_text(data, "branchCode"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bankName": self.bank_name,
            "accountNumber": self.account_number,
            "accountHolderName": self.account_holder_name,
            "ifscCode": self.ifsc_code,
            "branchName": self.branch_name,
            "branchCode": self.branch_code,
        }


@dataclass(frozen=True)
class CompanyProfile:
    company_name: str
    company_address: str = ""
    company_logo_url: Optional[str] = None
    bank_details: BankDetails = field(default_factory=BankDetails)
    gstin: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CompanyProfile":
        bank = data.get("bankDetails") or {}
        return cls(
            company_name=_text(data, "companyName"),
            company_address=_text(data, "companyAddress"),
            company_logo_url=_optional_text(data, "companyLogoUrl"),
            bank_details=BankDetails.from_dict(bank) if isinstance(bank, Mapping) else BankDetails(),
            gstin=_optional_text(data, "gstin"),
            phone=_optional_text(data, "phone"),
            email=_optional_text(data, "email"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "companyName": self.company_name,
            "companyAddress": self.company_address,
            "companyLogoUrl": self.company_logo_url,
            "bankDetails": self.bank_details.to_dict(),
            "gstin": self.gstin,
            "phone": self.phone,
            "email": self.email,
        }
