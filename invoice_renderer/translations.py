"""English and Japanese label tables for invoice documents.

Each render receives its own read-only snapshot of the table for the target
language, so no process-wide "current language" exists to switch and restore.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping, Union

from .models import Language

EN: Dict[str, str] = {
    "invoice_no": "Invoice #",
    "date": "Date:",
    "due_date": "Due Date:",
    "from": "From",
    "bill_to": "Bill To",
    "employee_id": "Employee ID",
    "email": "Email",
    "phone": "Phone",
    "address": "Address",
    "sno": "SNO",
    "description": "Description",
    "hours": "Hours",
    "unit_price": "Unit Price",
    "amount": "Amount",
    "subtotal": "Subtotal",
    "cgst": "CGST",
    "sgst": "SGST",
    "consumption_tax": "Consumption Tax",
    "grand_total": "Grand Total",
    "thank_you": "Thank you for your business!",
    "thank_you_message": "Thank you for your business!",
    "company_seal": "",
    "payment_instructions": "Payment Details",
    "bank_name": "Bank Name:",
    "branch_name": "Branch:",
    "account_type": "Account Type:",
    "account_number": "Account Number:",
    "account_name": "Account Name:",
    "ifsc": "IFSC Code:",
    "branch_code": "Branch Code:",
    "payment_note": "Please quote the invoice number as the payment reference.",
    "authorised_signature": "Authorised Signature",
    "contact_info": "Contact Information",
    "phone_hours": "(Weekdays 9:00-18:00)",
    "company_name": "Ory Folks Pvt Ltd",
    "company_address": "Vedayapalem, Nellore, Andhra Pradesh, PIN: 524004, India",
    "company_gstin": "GSTIN: 29ABCDE1234F1Z5",
    "company_phone": "Phone: +91 98765 43210",
    "company_email": "Email: info@oryfolks.com",
    "contact_phone": "TEL: +91 98765 43210",
    "contact_email": "Email: info@oryfolks.com",
}

JA: Dict[str, str] = {
    "invoice_no": "請求書番号",
    "date": "発行日:",
    "due_date": "支払期限:",
    "from": "差出人",
    "bill_to": "請求先",
    "employee_id": "社員番号",
    "email": "メール",
    "phone": "電話番号",
    "address": "住所",
    "sno": "番号",
    "description": "内容",
    "hours": "時間",
    "unit_price": "単価",
    "amount": "金額",
    "subtotal": "小計",
    "cgst": "CGST",
    "sgst": "SGST",
    "consumption_tax": "消費税",
    "grand_total": "合計金額",
    "thank_you": "ご利用ありがとうございました。",
    "thank_you_message": "今後ともご愛顧のほどよろしくお願い申し上げます。",
    "company_seal": "〒 (会社印)",
    "payment_instructions": "お振込先",
    "bank_name": "銀行名:",
    "branch_name": "支店名:",
    "account_type": "口座種別:",
    "account_number": "口座番号:",
    "account_name": "口座名義:",
    "ifsc": "IFSCコード:",
    "branch_code": "支店コード:",
    "payment_note": "振込手数料は貴社にてご負担ください。",
    "authorised_signature": "承認者署名",
    "contact_info": "お問い合わせ先",
    "phone_hours": "(平日 9:00〜18:00)",
    "company_name": "株式会社オライフォークス",
    "company_address": "〒100-0005、東京都千代田区丸の内1-1-1",
    "company_gstin": "登録番号: T1234567890123",
    "company_phone": "電話: 03-1234-5678",
    "company_email": "メール: info@oryfolks.co.jp",
    "contact_phone": "TEL: 03-1234-5678",
    "contact_email": "Email: info@oryfolks.co.jp",
}

TABLES = {
    Language.EN: EN,
    Language.JA: JA,
}


class Translations:
    """Read-only label lookup for one language, falling back to English."""

    def __init__(self, language: Language, table: Mapping[str, str]) -> None:
        self.language = language
        self._table = MappingProxyType(dict(table))

    def __getitem__(self, key: str) -> str:
        if key in self._table:
            return self._table[key]
        return EN[key]

    @property
    def is_japanese(self) -> bool:
        return self.language is Language.JA


def get_translations(language: Union[Language, str]) -> Translations:
    lang = Language.parse(language)
    return Translations(lang, TABLES[lang])
