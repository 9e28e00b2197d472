"""Pytest fixtures and configuration."""

import pytest


@pytest.fixture(scope="session")
def recognizers():
    """Default value recognizers (regex only, no NLP model needed)."""
    from docspan.recognizers.registry import create_default_recognizers
    return create_default_recognizers()


@pytest.fixture(scope="session")
def extractor(recognizers):
    """Entity extractor over the default recognizers."""
    from docspan.core.extractor import EntityExtractor
    return EntityExtractor(recognizers=recognizers)


@pytest.fixture
def engine(extractor):
    """Search engine without cache."""
    from docspan.core.engine import SearchEngine
    return SearchEngine(extractor=extractor)


@pytest.fixture
def contract_text():
    """A short Czech purchase contract."""
    return (
        "# Kupní smlouva\n"
        "\n"
        "Prodávající: Jan Novák, nar. 15.1.1994, RČ 940115/1234, "
        "bytem Vinohradská 12, 120 00 Praha 2.\n"
        "Kupující: Marie Svobodová, tel. +420 777 123 456.\n"
        "\n"
        "Kupní cena činí 7 850 000 Kč a je splatná do 30. 6. 2024 "
        "na účet CZ6508000000192000145399.\n"
        "Úroková sazba RPSN 5,9 %.\n"
    )


@pytest.fixture
def sample_texts():
    """Sample texts for testing."""
    return {
        "scenario": "Jan Novák, nar. 15.1.1994, RČ 940115/1234, kupní cena 7 850 000 Kč.",
        "two_names": "Jan Novák a Pavel Novák",
        "markdown": "**Jan Novák** prodává _pozemek_ v obci `Říčany`.",
        "no_values": "Dnes je hezky.",
        "empty": "",
    }


@pytest.fixture
def valid_birth_numbers():
    """Valid Czech birth numbers."""
    return [
        "940919/1022",
        "940115/1234",
        "456123/123",   # 3-digit suffix, born before 1954, female
    ]


@pytest.fixture
def invalid_birth_numbers():
    """Invalid Czech birth numbers."""
    return [
        "12345",          # Too short
        "941319/1022",    # Month 13
        "940132/1022",    # Day 32
        "850101/123",     # 3-digit suffix after 1954
        "abcdef/1234",    # Not digits
    ]


@pytest.fixture
def valid_iban():
    """A Czech IBAN with a correct mod-97 check."""
    return "CZ6508000000192000145399"


@pytest.fixture
def long_contract(contract_text):
    """The purchase contract repeated as numbered articles, past 10 000 characters."""
    return "".join(f"\n## Článek {i}\n\n{contract_text}" for i in range(1, 40))
