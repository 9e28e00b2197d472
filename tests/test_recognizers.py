"""Unit tests for value recognizers."""

import pytest

from docspan.config.pattern_loader import PatternConfig
from docspan.core.types import ValueType
from docspan.recognizers import (
    AmountRecognizer,
    CzechAddressRecognizer,
    CzechBankAccountRecognizer,
    CzechBirthNumberRecognizer,
    CzechCompanyIdRecognizer,
    CzechDateRecognizer,
    CzechPartyRecognizer,
    CzechPhoneRecognizer,
    CzechVatIdRecognizer,
    IbanRecognizer,
    RpsnRecognizer,
    create_default_recognizers,
)
from docspan.recognizers.custom_pattern import (
    create_recognizer_from_config,
    create_recognizers_from_configs,
)
from docspan.recognizers.registry import DEFAULT_RECOGNIZER_CLASSES, entities_for_types


def _spans(recognizer, text):
    results = recognizer.analyze(text, entities=[recognizer.entity], nlp_artifacts=None)
    return sorted(text[r.start:r.end] for r in results if r.score > 0)


class TestCzechBirthNumberRecognizer:
    """Tests for the birth number recognizer."""

    @pytest.fixture
    def recognizer(self):
        """Create recognizer instance."""
        return CzechBirthNumberRecognizer()

    def test_valid_numbers(self, recognizer, valid_birth_numbers):
        """Test validation of valid birth numbers."""
        for number in valid_birth_numbers:
            assert recognizer.validate_result(number) is True

    def test_invalid_numbers(self, recognizer, invalid_birth_numbers):
        """Test rejection of invalid birth numbers."""
        for number in invalid_birth_numbers:
            assert recognizer.validate_result(number) is False

    def test_finds_number_in_text(self, recognizer):
        """Test detection in running text."""
        assert _spans(recognizer, "Jan Novák, RČ 940115/1234, bytem Praha") == ["940115/1234"]

    def test_impossible_date_dropped(self, recognizer):
        """Test that a pattern hit with an impossible date is dropped."""
        assert _spans(recognizer, "RČ 941319/1022") == []

    def test_short_number_never_matches(self, recognizer):
        """Test that 12345 is never a birth number."""
        assert _spans(recognizer, "číslo 12345") == []

    def test_metadata(self, recognizer):
        """Test recognizer metadata."""
        assert recognizer.entity == "CZ_BIRTH_NUMBER"
        assert recognizer.value_type is ValueType.BIRTH_NUMBER
        assert recognizer.category == "identifiers"
        assert recognizer.confidence == 0.95
        assert "rodné číslo" in recognizer.context


class TestIdentifierRecognizers:
    """Tests for IČO and DIČ recognizers."""

    def test_labeled_company_id(self):
        """Test that a labeled IČO with a valid check digit is found."""
        recognizer = CzechCompanyIdRecognizer()
        assert _spans(recognizer, "ABC s.r.o., IČO: 27082440") == ["27082440"]
        assert _spans(recognizer, "IČ 27082440") == ["27082440"]

    def test_company_id_bad_check_digit(self):
        """Test that an IČO failing the mod-11 check is dropped."""
        assert _spans(CzechCompanyIdRecognizer(), "IČO: 27082441") == []

    def test_unlabeled_digits_ignored(self):
        """Test that a bare eight-digit run is not an IČO."""
        assert _spans(CzechCompanyIdRecognizer(), "objednávka 27082440") == []

    def test_vat_id(self):
        """Test DIČ detection."""
        assert _spans(CzechVatIdRecognizer(), "DIČ: CZ27082440") == ["CZ27082440"]


class TestBankingRecognizers:
    """Tests for IBAN and domestic account recognizers."""

    def test_iban_compact(self, valid_iban):
        """Test a compact IBAN."""
        assert _spans(IbanRecognizer(), f"na účet {valid_iban}.") == [valid_iban]

    def test_iban_grouped(self):
        """Test an IBAN printed in groups of four."""
        text = "IBAN: CZ65 0800 0000 1920 0014 5399"
        assert _spans(IbanRecognizer(), text) == ["CZ65 0800 0000 1920 0014 5399"]

    def test_iban_bad_checksum(self):
        """Test that a mod-97 failure is dropped."""
        assert _spans(IbanRecognizer(), "CZ6508000000192000145398") == []

    def test_bank_account(self):
        """Test a domestic account number."""
        assert _spans(CzechBankAccountRecognizer(), "účet 19-2000145399/0800") == [
            "19-2000145399/0800"
        ]


class TestAmountRecognizers:
    """Tests for amount and RPSN recognizers."""

    def test_grouped_amount_single_hit(self):
        """Test that the ungrouped tail of a grouped amount is not reported."""
        assert _spans(AmountRecognizer(), "Kupní cena činí 7 850 000 Kč.") == ["7 850 000 Kč"]

    def test_plain_amount(self):
        """Test an ungrouped amount with currency."""
        assert _spans(AmountRecognizer(), "záloha 1500000 CZK") == ["1500000 CZK"]

    def test_number_without_currency_ignored(self):
        """Test that a bare number is not an amount."""
        assert _spans(AmountRecognizer(), "parcela 1500") == []

    def test_rpsn(self):
        """Test a percentage rate."""
        assert _spans(RpsnRecognizer(), "RPSN 12,5 % ročně") == ["12,5 %"]


class TestDateRecognizer:
    """Tests for the date recognizer."""

    @pytest.fixture
    def recognizer(self):
        """Create recognizer instance."""
        return CzechDateRecognizer()

    def test_date_formats(self, recognizer):
        """Test dotted, spaced and ISO dates."""
        text = "dne 15.1.1994, splatné 30. 6. 2024, vydáno 2024-02-29"
        assert _spans(recognizer, text) == ["15.1.1994", "2024-02-29", "30. 6. 2024"]

    def test_impossible_date_dropped(self, recognizer):
        """Test that 31. 2. fails calendar validation."""
        assert _spans(recognizer, "dne 31. 2. 2024") == []


class TestContactRecognizers:
    """Tests for phone and address recognizers."""

    def test_phone_with_prefix(self):
        """Test an international phone number."""
        assert _spans(CzechPhoneRecognizer(), "tel. +420 777 123 456") == ["+420 777 123 456"]

    def test_phone_plain(self):
        """Test a national phone number."""
        assert _spans(CzechPhoneRecognizer(), "mobil 777123456") == ["777123456"]

    def test_address(self):
        """Test a street address with ZIP and town."""
        text = "bytem Vinohradská 12, 120 00 Praha 2."
        assert _spans(CzechAddressRecognizer(), text) == ["Vinohradská 12, 120 00 Praha 2"]


class TestCzechPartyRecognizer:
    """Tests for the party name recognizer."""

    def test_full_names(self):
        """Test two-word names."""
        text = "Prodávající: Jan Novák, kupující: Marie Svobodová."
        assert _spans(CzechPartyRecognizer(), text) == ["Jan Novák", "Marie Svobodová"]

    def test_case_sensitive(self):
        """Test that lowercase words are not names."""
        assert _spans(CzechPartyRecognizer(), "jan novák") == []


class TestRegistry:
    """Tests for the recognizer registry."""

    def test_default_order(self, recognizers):
        """Test that every default recognizer is registered in order."""
        assert [type(r) for r in recognizers] == DEFAULT_RECOGNIZER_CLASSES
        assert recognizers[0].entity == "CZ_BIRTH_NUMBER"

    def test_language(self):
        """Test that the language is passed to every recognizer."""
        assert all(r.supported_language == "cs" for r in create_default_recognizers())

    def test_custom_recognizers_appended(self):
        """Test registering extra recognizers."""
        extra = CzechPhoneRecognizer()
        recognizers = create_default_recognizers(custom_recognizers=[extra])
        assert recognizers[-1] is extra

    def test_missing_config_warns(self, tmp_path):
        """Test that a missing pattern file warns instead of raising."""
        with pytest.warns(UserWarning, match="Failed to load custom patterns"):
            recognizers = create_default_recognizers(config_path=tmp_path / "missing.yaml")
        assert len(recognizers) == len(DEFAULT_RECOGNIZER_CLASSES)

    def test_config_patterns_loaded(self, tmp_path):
        """Test that YAML patterns become recognizers."""
        config = tmp_path / "patterns.yaml"
        config.write_text(
            "patterns:\n"
            "  - name: contract_number\n"
            "    value_type: text\n"
            "    regex: 'SML-\\d{4}/\\d{2}'\n",
            encoding="utf-8",
        )
        recognizers = create_default_recognizers(config_path=config)
        assert recognizers[-1].entity == "CONTRACT_NUMBER"

    def test_entities_for_types(self, recognizers):
        """Test entity lookup by value type."""
        entities = entities_for_types(recognizers, [ValueType.IBAN, ValueType.BANK_ACCOUNT])
        assert entities == {"IBAN", "CZ_BANK_ACCOUNT"}


class TestCustomPatternRecognizer:
    """Tests for recognizers built from configuration."""

    def test_create_from_config(self):
        """Test the factory."""
        config = PatternConfig(
            name="contract_number",
            value_type="text",
            regex=r"SML-\d{4}/\d{2}",
            confidence=0.85,
            category="identifiers",
        )
        recognizer = create_recognizer_from_config(config)
        assert recognizer.name == "CustomContractNumberRecognizer"
        assert recognizer.entity == "CONTRACT_NUMBER"
        assert recognizer.confidence == 0.85
        assert recognizer.category == "identifiers"
        assert _spans(recognizer, "Smlouva SML-2024/07 ze dne") == ["SML-2024/07"]

    def test_typed_pattern_validates(self):
        """Test that a custom pattern of a typed value still passes its validator."""
        config = PatternConfig(name="order_date", value_type="date", regex=r"\d{2}\.\d{2}\.\d{4}")
        recognizer = create_recognizer_from_config(config)
        assert _spans(recognizer, "01.02.2024 a 31.02.2024") == ["01.02.2024"]

    def test_create_many(self):
        """Test building several recognizers."""
        configs = [
            PatternConfig(name="a_code", value_type="text", regex="A-\\d+"),
            PatternConfig(name="b_code", value_type="text", regex="B-\\d+"),
        ]
        recognizers = create_recognizers_from_configs(configs)
        assert [r.entity for r in recognizers] == ["A_CODE", "B_CODE"]
