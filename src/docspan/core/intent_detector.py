"""
Query Intent Detection

Decides whether a query names a kind of value ("rodné číslo", "kupní
cena") or is itself a value to look for ("Novák", "940115/1234").

A label query is answered by extracting values of the requested types;
its literal text is never returned as a value. A value query is searched
for literally, exactly first and fuzzily when nothing exact is found.

Example:
    "Jaké je rodné číslo?" -> label query, birth numbers
    "Novák"                -> value query
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from docspan.core.types import ValueType
from docspan.core.value_types import FREE_FORM_TYPES, validate_value
from docspan.utils.text import fold_text

_WORD_PATTERN = re.compile(r"\w+")

# Keywords of at least this length also match longer words ("splatnost" -> "splatnosti").
PREFIX_MATCH_LENGTH = 5


@dataclass(frozen=True)
class IntentRule:
    """Keywords that identify one kind of requested value.

    Attributes:
        name: Intent name.
        keywords: Folded keywords.
        value_types: Value types the intent asks for.
        entities: Recognizer and clause entities producing those values.
        fallback: Only applies when no other intent matched.
    """

    name: str
    keywords: tuple[str, ...]
    value_types: tuple[ValueType, ...]
    entities: tuple[str, ...]
    fallback: bool = False


INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule(
        "birth_number",
        ("rodne", "rodneho", "rc"),
        (ValueType.BIRTH_NUMBER,),
        ("CZ_BIRTH_NUMBER", "CLAUSE_BIRTH_NUMBER"),
    ),
    IntentRule(
        "company_id",
        ("ico", "dic", "identifikacni"),
        (ValueType.TEXT,),
        ("CZ_COMPANY_ID", "CZ_VAT_ID"),
    ),
    IntentRule(
        "bank_account",
        ("ucet", "uctu", "iban", "banka", "bankovni"),
        (ValueType.IBAN, ValueType.BANK_ACCOUNT),
        ("IBAN", "CZ_BANK_ACCOUNT"),
    ),
    IntentRule(
        "amount",
        ("cena", "ceny", "cenu", "castka", "castku", "penize", "kolik", "hodnota", "suma", "zaloha", "platba"),
        (ValueType.AMOUNT,),
        ("AMOUNT", "CLAUSE_PURCHASE_PRICE"),
    ),
    IntentRule(
        "rpsn",
        ("rpsn", "urok", "uroku", "procent", "sazba"),
        (ValueType.RPSN,),
        ("RPSN",),
    ),
    IntentRule(
        "date",
        ("datum", "kdy", "termin", "lhuta", "splatnost", "narozeni", "narozen", "nar"),
        (ValueType.DATE,),
        ("DATE", "CLAUSE_PAYMENT_TERMS"),
    ),
    IntentRule(
        "person",
        ("jmeno", "osoba", "kdo", "prodavajici", "kupujici", "najemce", "pronajimatel", "strany"),
        (ValueType.NAME,),
        ("PERSON", "CLAUSE_CONTRACTING_PARTIES"),
    ),
    IntentRule(
        "phone",
        ("telefon", "mobil", "kontakt", "tel"),
        (ValueType.PHONE,),
        ("PHONE_NUMBER",),
    ),
    IntentRule(
        "address",
        ("adresa", "adresu", "bydliste", "sidlo", "ulice"),
        (ValueType.ADDRESS,),
        ("ADDRESS",),
    ),
    IntentRule(
        "property",
        ("pozemek", "parcela", "parc", "nemovitost"),
        (ValueType.TEXT,),
        ("CLAUSE_PROPERTY_DESCRIPTION",),
    ),
    IntentRule(
        "identifier",
        ("cislo", "cisla"),
        (ValueType.BIRTH_NUMBER, ValueType.BANK_ACCOUNT),
        ("CZ_BIRTH_NUMBER", "CZ_COMPANY_ID", "CZ_BANK_ACCOUNT", "IBAN"),
        fallback=True,
    ),
)


@dataclass
class QueryIntent:
    """An intent detected in a query.

    Attributes:
        name: Intent name.
        value_types: Value types the query asks for.
        entities: Entities able to produce such values.
        matched_keywords: Query words that triggered the intent.
        confidence: Share of query words that are keywords of this intent.
    """

    name: str
    value_types: tuple[ValueType, ...]
    entities: tuple[str, ...]
    matched_keywords: list[str] = field(default_factory=list)
    confidence: float = 0.0


def _keyword_hit(word: str, keywords: tuple[str, ...]) -> bool:
    for keyword in keywords:
        if word == keyword:
            return True
        if len(keyword) >= PREFIX_MATCH_LENGTH and word.startswith(keyword):
            return True
    return False


def detect_query_intents(
    query: Optional[str],
    rules: tuple[IntentRule, ...] = INTENT_RULES,
) -> list[QueryIntent]:
    """Detect the kinds of value a query asks for.

    Matching is case- and diacritic-insensitive and works on whole words.

    Args:
        query: The user's query.
        rules: Intent rules to apply.

    Returns:
        Intents ordered by confidence (rule order breaks ties); empty for a
        value query.

    Example:
        >>> [i.name for i in detect_query_intents("Rodné číslo")]
        ['birth_number']
    """
    if not query or not isinstance(query, str):
        return []

    words = _WORD_PATTERN.findall(fold_text(query))
    if not words:
        return []

    intents: list[QueryIntent] = []
    fallbacks: list[QueryIntent] = []

    for rule in rules:
        matched = [word for word in words if _keyword_hit(word, rule.keywords)]
        if not matched:
            continue
        intent = QueryIntent(
            name=rule.name,
            value_types=rule.value_types,
            entities=rule.entities,
            matched_keywords=matched,
            confidence=len(matched) / len(words),
        )
        (fallbacks if rule.fallback else intents).append(intent)

    if not intents:
        intents = fallbacks

    intents.sort(key=lambda i: -i.confidence)
    return intents


def is_value_query(
    query: Optional[str],
    value_type: Optional[ValueType] = None,
    intents: Optional[list[QueryIntent]] = None,
) -> bool:
    """True if the query text itself is the value to look for.

    A query that validates as its hinted (non free-form) type is always a
    value query; otherwise a query with intents, or one failing its hinted
    type, is a label query.
    """
    if not query or not query.strip():
        return False

    typed = value_type is not None and value_type not in FREE_FORM_TYPES
    if typed and validate_value(query, value_type):
        return True

    if intents is None:
        intents = detect_query_intents(query)
    if intents:
        return False
    return not typed
