"""Company profile resolution and bank-detail fallbacks."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

from .config import PROFILE_PATH
from .models import BankDetails, CompanyProfile, Language
from .translations import get_translations

logger = logging.getLogger(__name__)

FALLBACK_BANK_EN = BankDetails(
    bank_name="HDFC Bank",
    account_number="123456789012",
    account_holder_name="Ory Folks Pvt Ltd",
    ifsc_code="HDFC0001234",
    branch_code="01234",
)

FALLBACK_BANK_JA = BankDetails(
    bank_name="三菱UFJ銀行",
    account_number="1234567",
    account_holder_name="株式会社オライフォークス",
    ifsc_code="",
    branch_name="東京支店",
)

JA_ACCOUNT_TYPE = "普通預金"


def default_profile(language: Language = Language.EN) -> CompanyProfile:
    t = get_translations(language)
    return CompanyProfile(
        company_name=t["company_name"],
        company_address=t["company_address"],
        bank_details=FALLBACK_BANK_JA if t.is_japanese else FALLBACK_BANK_EN,
        gstin=t["company_gstin"],
        phone=t["company_phone"],
        email=t["company_email"],
    )


def load_cached_profile(path: Optional[str] = PROFILE_PATH) -> Optional[CompanyProfile]:
    if not path or not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable cached company profile %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring cached company profile %s: not a JSON object", path)
        return None
    return CompanyProfile.from_dict(data)


def save_cached_profile(profile: CompanyProfile, path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(profile.to_dict(), handle, ensure_ascii=False, indent=2)


def resolve_company_profile(
    explicit: Optional[CompanyProfile] = None,
    language: Language = Language.EN,
    cache_path: Optional[str] = PROFILE_PATH,
) -> CompanyProfile:
    """Explicit profile, then the cached local profile, then the built-in one."""
    if explicit is not None:
        return explicit
    cached = load_cached_profile(cache_path)
    if cached is not None:
        return cached
    return default_profile(language)


@dataclass(frozen=True)
class PaymentDetails:
    """Bank lines shown in the payment block, after fallbacks are applied."""

    bank_name: str
    branch_name: str
    account_type: str
    account_number: str
    account_name: str
    ifsc_code: str
    branch_code: str


def _first(*values: Optional[str]) -> str:
    for value in values:
        if value and value.strip():
            return value.strip()
    return ""


def payment_details(profile: CompanyProfile, language: Language) -> PaymentDetails:
    bank = profile.bank_details
    fallback = FALLBACK_BANK_JA if language is Language.JA else FALLBACK_BANK_EN
    return PaymentDetails(
        bank_name=_first(bank.bank_name, fallback.bank_name),
        branch_name=_first(bank.branch_name, fallback.branch_name),
        account_type=JA_ACCOUNT_TYPE if language is Language.JA else "",
        account_number=_first(bank.account_number, fallback.account_number),
        account_name=_first(
            bank.account_holder_name,
            profile.company_name,
            fallback.account_holder_name,
        ),
        ifsc_code=_first(bank.ifsc_code, fallback.ifsc_code),
        branch_code=_first(bank.branch_code, fallback.branch_code),
    )
