"""
Ledger entry domain: entry types and their balance-mutation recipes.

Every entry type has exactly one EntryRecipe describing
- which optional references must be present and which must be absent,
- which references are checked for ownership,
- which account is debited (sufficiency-checked) and which is credited.

Operations:
- INCOME: to_account += amount
- EXPENSE: from_account -= amount
- REPAYMENT: from_account -= amount, linked to a loan
- TRANSFER: from_account -= amount, to_account += amount
- SETTLEMENT: to_account += sign * amount (system only, monthly sweep)
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional

from bookkeeper.domain.errors import EntryValidationError


class EntryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    REPAYMENT = "repayment"
    TRANSFER = "transfer"
    SETTLEMENT = "settlement"


# Optional reference fields of a ledger entry
FROM_ACCOUNT = "from_account_id"
TO_ACCOUNT = "to_account_id"
RELATED_LOAN = "related_loan_id"
SETTLEMENT_MONTH = "settlement_month"

REFERENCE_FIELDS = (FROM_ACCOUNT, TO_ACCOUNT, RELATED_LOAN, SETTLEMENT_MONTH)

# Money columns are NUMERIC(20, 2)
CENT = Decimal("0.01")


def is_whole_cents(amount: Decimal) -> bool:
    """False when amount has digits below one cent (or is too large to quantize)"""
    try:
        return amount == amount.quantize(CENT)
    except InvalidOperation:
        return False


@dataclass(frozen=True)
class EntryRecipe:
    entry_type: EntryType
    required: frozenset
    debit_field: Optional[str] = None
    credit_field: Optional[str] = None
    owned_loan: bool = False
    user_constructible: bool = True

    @property
    def forbidden(self) -> frozenset:
        return frozenset(REFERENCE_FIELDS) - self.required

    @property
    def owned_accounts(self) -> tuple:
        """Account fields whose ownership must be verified, debit side first"""
        if not self.user_constructible:
            return ()
        return tuple(f for f in (self.debit_field, self.credit_field) if f is not None)


RECIPES: dict[EntryType, EntryRecipe] = {
    EntryType.INCOME: EntryRecipe(
        entry_type=EntryType.INCOME,
        required=frozenset({TO_ACCOUNT}),
        credit_field=TO_ACCOUNT,
    ),
    EntryType.EXPENSE: EntryRecipe(
        entry_type=EntryType.EXPENSE,
        required=frozenset({FROM_ACCOUNT}),
        debit_field=FROM_ACCOUNT,
    ),
    EntryType.REPAYMENT: EntryRecipe(
        entry_type=EntryType.REPAYMENT,
        required=frozenset({FROM_ACCOUNT, RELATED_LOAN}),
        debit_field=FROM_ACCOUNT,
        owned_loan=True,
    ),
    EntryType.TRANSFER: EntryRecipe(
        entry_type=EntryType.TRANSFER,
        required=frozenset({FROM_ACCOUNT, TO_ACCOUNT}),
        debit_field=FROM_ACCOUNT,
        credit_field=TO_ACCOUNT,
    ),
    EntryType.SETTLEMENT: EntryRecipe(
        entry_type=EntryType.SETTLEMENT,
        required=frozenset({TO_ACCOUNT, SETTLEMENT_MONTH}),
        credit_field=TO_ACCOUNT,
        user_constructible=False,
    ),
}

# Adding an EntryType without a recipe is a programming error
if set(RECIPES) != set(EntryType):
    raise RuntimeError("every EntryType needs an EntryRecipe")


def parse_entry_type(value) -> EntryType:
    """str -> EntryType, raising EntryValidationError for unknown types"""
    if isinstance(value, EntryType):
        return value
    try:
        return EntryType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in EntryType)
        raise EntryValidationError(f"Unknown entry type: {value!r}. Use one of: {allowed}")


def recipe_for(entry_type) -> EntryRecipe:
    return RECIPES[parse_entry_type(entry_type)]


@dataclass
class EntryDraft:
    """
    A ledger entry that has not been written yet.

    Built from a user request (CreateEntryUseCase) or by the monthly
    settlement procedure. validate() enforces the recipe's field matrix
    without touching the database.
    """
    entry_type: EntryType
    amount: Decimal
    entry_date: date
    description: str = ""
    category_id: Optional[int] = None
    related_loan_id: Optional[int] = None
    from_account_id: Optional[int] = None
    to_account_id: Optional[int] = None
    settlement_month: Optional[str] = None
    settlement_sign: Optional[int] = None

    @property
    def recipe(self) -> EntryRecipe:
        return recipe_for(self.entry_type)

    def validate(self, system: bool = False) -> None:
        """
        Raise EntryValidationError if this draft does not match its type.

        Args:
            system: True only for entries produced by the system itself
                    (monthly settlement); user requests must pass False.
        """
        self.entry_type = parse_entry_type(self.entry_type)
        recipe = self.recipe

        if not recipe.user_constructible and not system:
            raise EntryValidationError(
                f"Entries of type '{recipe.entry_type.value}' are created by the system only"
            )

        if not isinstance(self.amount, Decimal):
            raise EntryValidationError("Amount must be a decimal value")
        if not self.amount.is_finite() or self.amount <= 0:
            raise EntryValidationError("Amount must be greater than zero")
        if not is_whole_cents(self.amount):
            raise EntryValidationError("Amount may have at most 2 decimal places")

        type_name = recipe.entry_type.value
        missing = sorted(f for f in recipe.required if getattr(self, f) is None)
        if missing:
            raise EntryValidationError(
                f"A {type_name} entry requires: {', '.join(missing)}"
            )
        present = sorted(f for f in recipe.forbidden if getattr(self, f) is not None)
        if present:
            raise EntryValidationError(
                f"A {type_name} entry must not carry: {', '.join(present)}"
            )

        if recipe.entry_type == EntryType.TRANSFER and self.from_account_id == self.to_account_id:
            raise EntryValidationError("Source and destination accounts must differ")

        if recipe.entry_type == EntryType.SETTLEMENT:
            if self.settlement_sign not in (1, -1):
                raise EntryValidationError("A settlement entry requires settlement_sign of +1 or -1")
        elif self.settlement_sign is not None:
            raise EntryValidationError(f"A {type_name} entry must not carry: settlement_sign")


def balance_effects(entry) -> list[tuple[int, Decimal]]:
    """
    Ordered (account_id, signed delta) pairs an entry applies when created.

    Works for EntryDraft and for stored LedgerEntry rows (entry_type may be a
    plain string there). Debit comes before credit.
    """
    recipe = recipe_for(entry.entry_type)
    amount = Decimal(entry.amount)
    effects = []

    if recipe.debit_field is not None:
        effects.append((getattr(entry, recipe.debit_field), -amount))

    if recipe.credit_field is not None:
        sign = 1
        if recipe.entry_type == EntryType.SETTLEMENT:
            sign = entry.settlement_sign or 1
        effects.append((getattr(entry, recipe.credit_field), amount * sign))

    return effects


def reversal_effects(entry) -> list[tuple[int, Decimal]]:
    """Exact inverse of balance_effects(entry)"""
    return [(account_id, -delta) for account_id, delta in balance_effects(entry)]
