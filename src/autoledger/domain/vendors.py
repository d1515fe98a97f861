"""Static vendor knowledge base for well-known Dutch merchants.

In-memory only: no persistence and no external calls. Keywords are matched
on word boundaries so short brand names ("BP") do not fire inside longer
words ("BPOST").
"""

from dataclasses import dataclass
from typing import Optional

from autoledger.domain.chart import GENERAL_EXPENSES_CODE, PRIVATE_WITHDRAWALS_CODE
from autoledger.utils.text_matching import contains_word


@dataclass(frozen=True)
class VendorEntry:
    """One vendor category: keywords, target account code and confidence."""

    category: str
    keywords: tuple[str, ...]
    account_code: str
    confidence: int
    cash_withdrawal: bool = False


@dataclass(frozen=True)
class VendorMatch:
    entry: VendorEntry
    keyword: str


VENDOR_TABLE = (
    # Cash withdrawals are private, never an expense
    VendorEntry(
        "Cash withdrawal",
        ("geldmaat", "geldopname", "geldautomaat", "cash withdrawal", "atm"),
        PRIVATE_WITHDRAWALS_CODE,
        100,
        cash_withdrawal=True,
    ),
    VendorEntry(
        "Fuel",
        ("shell", "bp", "esso", "texaco", "totalenergies", "tango", "tinq",
         "fastned", "tesla supercharger", "avia", "gulf", "argos"),
        "4310",
        90,
    ),
    VendorEntry(
        "Parking",
        ("parkmobile", "q-park", "yellowbrick", "easypark", "parkeren", "parking"),
        "4300",
        90,
    ),
    VendorEntry(
        "Travel",
        ("ns groep", "ns reizigers", "ov-chipkaart", "klm", "transavia", "uber"),
        "4300",
        85,
    ),
    VendorEntry(
        "Car maintenance",
        ("kwik-fit", "kwikfit", "carglass", "profile car", "euromaster"),
        "4310",
        90,
    ),
    VendorEntry(
        "Telecom",
        ("kpn", "ziggo", "vodafone", "t-mobile", "odido", "simyo"),
        "4220",
        95,
    ),
    VendorEntry(
        "Software",
        ("google workspace", "microsoft 365", "adobe", "dropbox", "zoom",
         "slack", "github", "atlassian"),
        "4210",
        95,
    ),
    VendorEntry(
        "Bookkeeping software",
        ("moneybird", "exact online", "twinfield", "afas"),
        "4210",
        95,
    ),
    VendorEntry(
        "Insurance",
        ("interpolis", "centraal beheer", "unive", "achmea", "nationale-nederlanden", "allianz"),
        "4600",
        90,
    ),
    VendorEntry(
        "Bank costs",
        ("transactiekosten", "bankkosten", "rabobank", "ing bank", "abn amro", "knab", "bunq"),
        "4900",
        80,
    ),
    VendorEntry(
        "Hardware store",
        ("gamma", "praxis", "karwei", "hornbach", "hubo", "bouwmarkt"),
        GENERAL_EXPENSES_CODE,
        85,
    ),
    VendorEntry(
        "Office supplies",
        ("hema", "action", "blokker", "bruna", "staples", "viking"),
        GENERAL_EXPENSES_CODE,
        80,
    ),
    VendorEntry(
        "Supermarket",
        ("albert heijn", "jumbo", "lidl", "aldi", "picnic", "plus supermarkt",
         "dirk van den broek", "sligro", "makro", "hanos"),
        GENERAL_EXPENSES_CODE,
        75,
    ),
    VendorEntry(
        "Drugstore",
        ("kruidvat", "etos"),
        GENERAL_EXPENSES_CODE,
        75,
    ),
    VendorEntry(
        "Meals and representation",
        ("thuisbezorgd", "mcdonalds", "burger king", "starbucks", "brasserie"),
        "4360",
        75,
    ),
)


def lookup_vendor(text: str, table: tuple[VendorEntry, ...] = VENDOR_TABLE) -> Optional[VendorMatch]:
    """Find the vendor entry for a transaction text.

    Cash withdrawals always win. Otherwise the longest matching keyword
    wins, and on equal length the earlier table entry.
    """
    for entry in table:
        if not entry.cash_withdrawal:
            continue
        for keyword in entry.keywords:
            if contains_word(text, keyword):
                return VendorMatch(entry=entry, keyword=keyword)

    best: Optional[VendorMatch] = None
    for entry in table:
        if entry.cash_withdrawal:
            continue
        for keyword in entry.keywords:
            if not contains_word(text, keyword):
                continue
            if best is None or len(keyword) > len(best.keyword):
                best = VendorMatch(entry=entry, keyword=keyword)
    return best
