"""Rule store: keyword rules, lookup and learning from user decisions."""

import logging
from datetime import datetime, UTC
from typing import Iterable, Optional

from autoledger.database.base import Database
from autoledger.domain.chart import GENERAL_EXPENSES_CODE
from autoledger.domain.entities import BankTransaction, MatchType, PostingMode, Rule
from autoledger.domain.errors import NotFoundError, ValidationError
from autoledger.utils.text_matching import clean_description, contains_word, matching_text

logger = logging.getLogger(__name__)

SYSTEM_RULE_PRIORITY = 100
MAX_KEYWORD_LENGTH = 100

# (keyword, match type, account code)
DEFAULT_SYSTEM_RULES = [
    ("Kosten betaalrekening", MatchType.CONTAINS, "4900"),
    ("Kosten zakelijk betalingsverkeer", MatchType.CONTAINS, "4900"),
    ("Debetrente", MatchType.CONTAINS, "4900"),
    ("Huur", MatchType.CONTAINS, "4100"),
    ("Eneco", MatchType.CONTAINS, "4100"),
    ("Vattenfall", MatchType.CONTAINS, "4100"),
    ("Essent", MatchType.CONTAINS, "4100"),
    ("Kantoorartikelen", MatchType.CONTAINS, GENERAL_EXPENSES_CODE),
]


def rule_matches(rule: Rule, transaction: BankTransaction) -> bool:
    """Check a single rule against the counterparty and description."""
    texts = [
        text
        for text in (
            transaction.counterparty or "",
            transaction.description,
            clean_description(transaction.description),
        )
        if text
    ]
    if rule.match_type == MatchType.EXACT:
        keyword = rule.keyword.strip().lower()
        return any(text.strip().lower() == keyword for text in texts)
    return any(contains_word(text, rule.keyword) for text in texts)


def find_matching_rule(rules: Iterable[Rule], transaction: BankTransaction) -> Optional[Rule]:
    """Return the winning active rule for a transaction.

    Rules are tried by priority (highest first); on equal priority the
    longer, more specific keyword wins.
    """
    ordered = sorted(
        (rule for rule in rules if rule.is_active),
        key=lambda rule: (-rule.priority, -len(rule.keyword), rule.id),
    )
    for rule in ordered:
        if rule_matches(rule, transaction):
            return rule
    return None


def learning_keyword(transaction: BankTransaction) -> str:
    """Pattern a decision is learned under: counterparty first, else description."""
    return matching_text(transaction)[:MAX_KEYWORD_LENGTH].strip()


class RuleService:
    """Service for keyword rules and self-learning."""

    def __init__(self, db: Database):
        """Initialize rule service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_rule(
        self,
        keyword: str,
        account_id: Optional[int] = None,
        contact_id: Optional[int] = None,
        match_type: MatchType = MatchType.CONTAINS,
        priority: Optional[int] = None,
        is_system: bool = False,
    ) -> int:
        """Create a rule.

        Args:
            keyword: Text to look for in the counterparty or description
            account_id: Target account
            contact_id: Target contact; a rule with a contact books in Relation mode
            match_type: Contains (whole words) or Exact (whole text)
            priority: Higher wins; defaults to system or learned priority
            is_system: Seeded default rather than user-created

        Returns:
            Rule ID

        Raises:
            ValidationError: If keyword is empty or the rule has no target
            NotFoundError: If the account or contact does not exist
        """
        keyword = (keyword or "").strip()
        if not keyword:
            raise ValidationError("Rule keyword is required")
        if account_id is None and contact_id is None:
            raise ValidationError("A rule needs a target account or contact")
        if account_id is not None and self.db.get_account(account_id) is None:
            raise NotFoundError(f"Account {account_id} not found")
        if contact_id is not None and self.db.get_contact(contact_id) is None:
            raise NotFoundError(f"Contact {contact_id} not found")
        if priority is None:
            priority = SYSTEM_RULE_PRIORITY if is_system else self.learned_priority()
        return self.db.create_rule(
            keyword=keyword[:MAX_KEYWORD_LENGTH],
            match_type=MatchType(match_type),
            account_id=account_id,
            contact_id=contact_id,
            priority=priority,
            is_system=is_system,
        )

    def learned_priority(self) -> int:
        """Priority for user rules: just below every system default."""
        system_priorities = [r.priority for r in self.db.list_rules() if r.is_system]
        return min(system_priorities + [SYSTEM_RULE_PRIORITY]) - 1

    def seed_system_rules(self) -> int:
        """Create the default system rules whose target accounts exist.

        Returns:
            Number of rules created
        """
        created = 0
        with self.db.atomic():
            for keyword, match_type, code in DEFAULT_SYSTEM_RULES:
                account = self.db.get_account_by_code(code)
                if account is None or self.db.find_rule_by_keyword(keyword) is not None:
                    continue
                self.create_rule(
                    keyword, account_id=account.id, match_type=match_type, is_system=True
                )
                created += 1
        return created

    def get_rule(self, rule_id: int) -> Optional[Rule]:
        return self.db.get_rule(rule_id)

    def list_rules(self, active_only: bool = False) -> list[Rule]:
        return self.db.list_rules(active_only=active_only)

    def deactivate_rule(self, rule_id: int) -> None:
        if self.db.get_rule(rule_id) is None:
            raise NotFoundError(f"Rule {rule_id} not found")
        self.db.set_rule_active(rule_id, False)

    def find_matching_rule(self, transaction: BankTransaction) -> Optional[Rule]:
        """Look up the winning active rule for a transaction."""
        return find_matching_rule(self.db.list_rules(active_only=True), transaction)

    def learn(
        self,
        transaction: BankTransaction,
        mode: PostingMode,
        account_id: Optional[int],
        contact_id: Optional[int] = None,
    ) -> Optional[Rule]:
        """Record a confirmed or corrected classification.

        An existing active rule with the same keyword is reinforced: its
        usage counter goes up and last-used is refreshed, its content is left
        alone. Otherwise a new user rule is created below the system defaults.

        Args:
            transaction: The transaction the user confirmed or corrected
            mode: Posting mode the user chose
            account_id: Account the user chose
            contact_id: Contact the user chose (Relation mode)

        Returns:
            The reinforced or created rule, or None if there is no usable text

        Raises:
            ValidationError: If the decision lacks the target its mode needs
        """
        mode = PostingMode(mode)
        if mode == PostingMode.RELATION and contact_id is None:
            raise ValidationError("Relation mode decisions need a contact to learn from")
        if mode == PostingMode.DIRECT and account_id is None:
            raise ValidationError("Direct mode decisions need an account to learn from")

        keyword = learning_keyword(transaction)
        if not keyword:
            logger.debug("Nothing to learn from transaction %d", transaction.id)
            return None

        now = datetime.now(UTC)
        existing = self.db.find_rule_by_keyword(keyword)
        if existing is not None:
            self.db.record_rule_use(existing.id, now)
            logger.info("Reinforced rule %d '%s'", existing.id, existing.keyword)
            return self.db.get_rule(existing.id)

        rule_id = self.create_rule(
            keyword,
            account_id=account_id,
            # The rule's mode is derived from whether it carries a contact
            contact_id=contact_id if mode == PostingMode.RELATION else None,
            match_type=MatchType.CONTAINS,
        )
        self.db.record_rule_use(rule_id, now)
        logger.info("Learned rule %d '%s' (%s)", rule_id, keyword, mode.value)
        return self.db.get_rule(rule_id)
