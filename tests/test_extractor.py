"""Tests for typed entity and clause extraction."""

from docspan.core.extractor import (
    CLAUSE_RULES,
    deduplicate_values,
    extract_clauses,
    resolve_span_conflicts,
)
from docspan.core.types import MatchAlgorithm, SearchMatch, ValueType


def _by_type(matches):
    found = {}
    for match in matches:
        found.setdefault(match.type, []).append(match.text)
    return found


class TestEntityExtractor:
    """Tests for EntityExtractor.extract_entities()."""

    def test_contract_values(self, extractor, contract_text):
        """Test that every typed value of the contract is extracted."""
        found = _by_type(extractor.extract_entities(contract_text))
        assert found[ValueType.BIRTH_NUMBER] == ["940115/1234"]
        assert found[ValueType.IBAN] == ["CZ6508000000192000145399"]
        assert found[ValueType.AMOUNT] == ["7 850 000 Kč"]
        assert found[ValueType.RPSN] == ["5,9 %"]
        assert found[ValueType.PHONE] == ["+420 777 123 456"]
        assert found[ValueType.DATE] == ["15.1.1994", "30. 6. 2024"]
        assert found[ValueType.NAME] == ["Jan Novák", "Marie Svobodová"]
        assert found[ValueType.ADDRESS] == ["Vinohradská 12, 120 00 Praha 2"]

    def test_spans_match_original(self, extractor, contract_text):
        """Test that every match text is the original slice."""
        for match in extractor.extract_entities(contract_text):
            assert contract_text[match.start:match.end] == match.text
            assert match.algorithm is MatchAlgorithm.PATTERN
            assert match.score == 1.0

    def test_never_birth_number(self, extractor):
        """Test that 12345 is never extracted as a birth number."""
        matches = extractor.extract_entities("Číslo objednávky 12345, RČ 12345")
        assert all(m.type is not ValueType.BIRTH_NUMBER for m in matches)

    def test_valid_birth_number(self, extractor):
        """Test that 940919/1022 is extracted as a birth number."""
        matches = extractor.extract_entities("rodné číslo 940919/1022")
        assert [(m.text, m.type) for m in matches] == [("940919/1022", ValueType.BIRTH_NUMBER)]

    def test_same_span_conflict(self, extractor):
        """Test that the higher prior wins when a birth number also looks like an account."""
        matches = extractor.extract_entities("RČ 940115/1234")
        assert len(matches) == 1
        assert matches[0].entity == "CZ_BIRTH_NUMBER"
        assert matches[0].confidence == 0.95

    def test_account_without_birth_date(self, extractor):
        """Test that an account whose digits are no date stays an account."""
        matches = extractor.extract_entities("účet 2000145399/0800")
        assert [(m.text, m.type) for m in matches] == [("2000145399/0800", ValueType.BANK_ACCOUNT)]

    def test_category_deduplication(self, extractor):
        """Test that repeated values collapse to the first instance."""
        text = "RČ 940115/1234, opakuji RČ 940115 / 1234."
        matches = extractor.extract_entities(text, value_types=[ValueType.BIRTH_NUMBER])
        assert len(matches) == 1
        assert matches[0].start == 3

    def test_company_id(self, extractor):
        """Test IČO extraction."""
        matches = extractor.extract_entities("ABC s.r.o., IČO: 27082440", entities=["CZ_COMPANY_ID"])
        assert [m.text for m in matches] == ["27082440"]

    def test_filter_by_value_type(self, extractor, contract_text):
        """Test restricting extraction to some value types."""
        matches = extractor.extract_entities(contract_text, value_types=[ValueType.AMOUNT])
        assert {m.type for m in matches} == {ValueType.AMOUNT}

    def test_filter_by_entity(self, extractor, contract_text):
        """Test restricting extraction to some entities."""
        matches = extractor.extract_entities(contract_text, entities=["PHONE_NUMBER"])
        assert [m.entity for m in matches] == ["PHONE_NUMBER"]

    def test_canonical_values(self, extractor):
        """Test that matches carry canonical values."""
        matches = extractor.extract_entities("RČ 940115 / 1234")
        assert matches[0].text == "940115 / 1234"
        assert matches[0].value == "940115/1234"

    def test_context_length_override(self, extractor):
        """Test the context window override."""
        text = "xxxxxxxxxx RČ 940115/1234 yyyyyyyyyy"
        match = extractor.extract_entities(text, context_length=2)[0]
        assert match.context == "Č 940115/1234 y"

    def test_empty_input(self, extractor, sample_texts):
        """Test empty and value-free documents."""
        assert extractor.extract_entities("") == []
        assert extractor.extract_entities(None) == []
        assert extractor.extract_entities(sample_texts["no_values"]) == []

    def test_supported_entities(self, extractor):
        """Test that every recognizer entity is listed."""
        assert "CZ_BIRTH_NUMBER" in extractor.supported_entities
        assert "IBAN" in extractor.supported_entities


class TestConflictResolution:
    """Tests for span conflicts and value deduplication."""

    def test_resolve_span_conflicts(self):
        """Test that the highest confidence wins, first seen on ties."""
        low = SearchMatch(0, 5, "abcde", confidence=0.5, entity="LOW")
        high = SearchMatch(0, 5, "abcde", confidence=0.9, entity="HIGH")
        tie = SearchMatch(0, 5, "abcde", confidence=0.9, entity="TIE")
        assert [m.entity for m in resolve_span_conflicts([low, high, tie])] == ["HIGH"]

    def test_different_spans_kept(self):
        """Test that distinct spans do not conflict."""
        first = SearchMatch(0, 5, "abcde")
        second = SearchMatch(0, 4, "abcd")
        assert len(resolve_span_conflicts([first, second])) == 2

    def test_deduplicate_values_per_category(self):
        """Test case and whitespace insensitive deduplication within a category."""
        matches = [
            SearchMatch(10, 19, "Jan Novák", confidence=0.7, category="parties"),
            SearchMatch(0, 10, "JAN  NOVÁK", confidence=0.7, category="parties"),
            SearchMatch(30, 39, "Jan Novák", confidence=0.7, category="other"),
        ]
        deduplicated = deduplicate_values(matches)
        assert [(m.start, m.category) for m in deduplicated] == [(0, "parties"), (30, "other")]

    def test_higher_confidence_instance_kept(self):
        """Test that a later instance with higher confidence replaces the earlier one."""
        matches = [
            SearchMatch(0, 3, "abc", confidence=0.5, category="c"),
            SearchMatch(10, 13, "abc", confidence=0.8, category="c"),
        ]
        assert [m.start for m in deduplicate_values(matches)] == [10]


class TestClauseExtraction:
    """Tests for label-anchored clause rules."""

    def test_purchase_price(self):
        """Test the purchase price clause."""
        matches = extract_clauses("Kupní cena činí 7 850 000 Kč.")
        assert [(m.text, m.type, m.entity) for m in matches] == [
            ("7 850 000 Kč", ValueType.AMOUNT, "CLAUSE_PURCHASE_PRICE")
        ]

    def test_contract_clauses(self, contract_text):
        """Test every clause of the sample contract."""
        found = {m.entity: m.text for m in extract_clauses(contract_text)}
        assert found["CLAUSE_PURCHASE_PRICE"] == "7 850 000 Kč"
        assert found["CLAUSE_PAYMENT_TERMS"] == "30. 6. 2024"
        assert found["CLAUSE_BIRTH_NUMBER"] == "940115/1234"
        assert found["CLAUSE_CONTRACTING_PARTIES"] in ("Jan Novák", "Marie Svobodová")

    def test_contracting_parties(self, contract_text):
        """Test that both parties are captured."""
        names = [
            m.text
            for m in extract_clauses(contract_text)
            if m.entity == "CLAUSE_CONTRACTING_PARTIES"
        ]
        assert names == ["Jan Novák", "Marie Svobodová"]

    def test_property_description(self):
        """Test the parcel clause."""
        matches = extract_clauses("Předmětem je pozemek parc. č. 123/4 v obci Říčany.")
        assert [m.text for m in matches] == ["123/4"]

    def test_invalid_clause_value_dropped(self):
        """Test that a clause value failing its validator is dropped."""
        assert extract_clauses("rodné číslo 941319/1022") == []

    def test_restricted_rules(self, extractor, contract_text):
        """Test restricting clause rules by value type."""
        matches = extractor.extract_clauses(contract_text, value_types=[ValueType.DATE])
        assert [m.text for m in matches] == ["30. 6. 2024"]

    def test_rule_entities_unique(self):
        """Test that clause entities are distinct."""
        entities = [rule.entity for rule in CLAUSE_RULES]
        assert len(entities) == len(set(entities))
