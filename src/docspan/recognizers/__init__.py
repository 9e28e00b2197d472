"""Value recognizers for Czech documents."""

from docspan.recognizers.base import ValueTypeRecognizer
from docspan.recognizers.cz_amount import AmountRecognizer, RpsnRecognizer
from docspan.recognizers.cz_banking import CzechBankAccountRecognizer, IbanRecognizer
from docspan.recognizers.cz_birth_number import CzechBirthNumberRecognizer
from docspan.recognizers.cz_contact import CzechAddressRecognizer, CzechPhoneRecognizer
from docspan.recognizers.cz_date import CzechDateRecognizer
from docspan.recognizers.cz_identifiers import CzechCompanyIdRecognizer, CzechVatIdRecognizer
from docspan.recognizers.cz_person import CzechPartyRecognizer
from docspan.recognizers.registry import create_default_recognizers

__all__ = [
    "ValueTypeRecognizer",
    "AmountRecognizer",
    "RpsnRecognizer",
    "IbanRecognizer",
    "CzechBankAccountRecognizer",
    "CzechBirthNumberRecognizer",
    "CzechAddressRecognizer",
    "CzechPhoneRecognizer",
    "CzechDateRecognizer",
    "CzechCompanyIdRecognizer",
    "CzechVatIdRecognizer",
    "CzechPartyRecognizer",
    "create_default_recognizers",
]
