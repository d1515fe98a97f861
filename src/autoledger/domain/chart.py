"""Default chart of accounts and the system account codes."""

from autoledger.domain.entities import AccountType

BANK_ACCOUNT_CODE = "1100"
DEBTORS_CODE = "1200"
SALES_SUSPENSE_CODE = "1300"
CREDITORS_CODE = "1600"
PRIVATE_WITHDRAWALS_CODE = "1800"
PURCHASE_SUSPENSE_CODE = "2300"
GENERAL_EXPENSES_CODE = "4700"
REVENUE_CODE = "8000"

# Private equity accounts live in this code range
PRIVATE_EQUITY_RANGE = ("1800", "1899")

# (code, name, type, system_protected, capital_asset)
DEFAULT_CHART = [
    ("0100", "Inventaris", AccountType.ASSET, False, True),
    ("0200", "Computers en hardware", AccountType.ASSET, False, True),
    ("0300", "Vervoermiddelen", AccountType.ASSET, False, True),
    (BANK_ACCOUNT_CODE, "Bank", AccountType.ASSET, True, False),
    (DEBTORS_CODE, "Debiteuren", AccountType.ASSET, True, False),
    (SALES_SUSPENSE_CODE, "Nog te vorderen verkoopfacturen", AccountType.ASSET, True, False),
    (CREDITORS_CODE, "Crediteuren", AccountType.LIABILITY, True, False),
    (PRIVATE_WITHDRAWALS_CODE, "Privé opnames", AccountType.EQUITY, False, False),
    (PURCHASE_SUSPENSE_CODE, "Nog te ontvangen inkoopfacturen", AccountType.LIABILITY, True, False),
    ("4100", "Huisvestingskosten", AccountType.EXPENSE, False, False),
    ("4200", "Afschrijvingen", AccountType.EXPENSE, False, False),
    ("4210", "Software en abonnementen", AccountType.EXPENSE, False, False),
    ("4220", "Telefoon en internet", AccountType.EXPENSE, False, False),
    ("4300", "Reis- en parkeerkosten", AccountType.EXPENSE, False, False),
    ("4310", "Autokosten en brandstof", AccountType.EXPENSE, False, False),
    ("4360", "Representatiekosten", AccountType.EXPENSE, False, False),
    ("4400", "Verkoopkosten en reclame", AccountType.EXPENSE, False, False),
    ("4600", "Verzekeringen", AccountType.EXPENSE, False, False),
    ("4650", "Accountants- en advieskosten", AccountType.EXPENSE, False, False),
    (GENERAL_EXPENSES_CODE, "Kantoor- en algemene kosten", AccountType.EXPENSE, False, False),
    ("4900", "Bankkosten en rente", AccountType.EXPENSE, False, False),
    (REVENUE_CODE, "Omzet", AccountType.REVENUE, False, False),
]
