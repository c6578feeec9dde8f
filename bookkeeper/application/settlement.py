"""
Monthly settlement - sweeps last month's net income into the primary account

Idempotent per user and month: an explicit check runs first, and the
(user_id, settlement_month) unique constraint turns a lost race into the
same SettlementAlreadyPostedError.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookkeeper.application.reports import sum_by_type_and_period
from bookkeeper.application.transactions import post_entry
from bookkeeper.application.unit_of_work import unit_of_work
from bookkeeper.config import get_settings
from bookkeeper.domain.entry import EntryDraft, EntryType
from bookkeeper.domain.errors import NoPrimaryAccountError, SettlementAlreadyPostedError
from bookkeeper.domain.period import MonthPeriod, previous_month
from bookkeeper.infrastructure.db.models import Account, LedgerEntry

logger = logging.getLogger(__name__)

SETTLEMENT_SETTLED = "settled"
SETTLEMENT_NOOP = "noop"


@dataclass
class SettlementResult:
    status: str  # settled, noop
    period_key: str
    amount: Decimal  # signed net; 0 for noop
    entry_id: int | None = None

    @property
    def message(self) -> str:
        if self.status == SETTLEMENT_NOOP:
            return f"{self.period_key}: income and expense are balanced, nothing to sweep"
        return f"{self.period_key}: net {self.amount:.2f} swept into the primary account"


def settlement_description(period_key: str, net: Decimal) -> str:
    if net > 0:
        return f"{period_key} surplus, moved into the primary account"
    return f"{period_key} deficit, deducted from the primary account"


class MonthlySettlementUseCase:
    """
    Use case: settle the previous calendar month for one user

    Steps:
    1. already settled for this month -> SettlementAlreadyPostedError
    2. no primary account -> NoPrimaryAccountError
    3. net = income - expense of that month
    4. net == 0 -> noop result, nothing written
    5. primary += net, settlement entry with amount |net|
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, now: datetime | None = None) -> SettlementResult:
        if now is None:
            now = datetime.now(get_settings().get_timezone())
        period = previous_month(now)
        period_key = period.key

        with unit_of_work(self.db):
            result = self._settle(user_id, period)

        if result.status == SETTLEMENT_SETTLED:
            logger.info("Settlement %s posted for user %s: %s", period_key, user_id, result.amount)
        else:
            logger.info("Settlement %s for user %s: nothing to sweep", period_key, user_id)
        return result

    def _settle(self, user_id: int, period: MonthPeriod) -> SettlementResult:
        period_key = period.key

        if self._already_settled(user_id, period_key):
            raise SettlementAlreadyPostedError(period_key)

        primary = self.db.execute(
            select(Account)
            .where(Account.user_id == user_id, Account.is_primary.is_(True))
            .with_for_update()
        ).scalar_one_or_none()
        if primary is None:
            raise NoPrimaryAccountError()

        net = sum_by_type_and_period(self.db, user_id, period.year, period.month).net
        if net == 0:
            return SettlementResult(status=SETTLEMENT_NOOP, period_key=period_key, amount=Decimal("0"))

        draft = EntryDraft(
            entry_type=EntryType.SETTLEMENT,
            amount=abs(net),
            entry_date=period.last_day,
            description=settlement_description(period_key, net),
            to_account_id=primary.id,
            settlement_month=period_key,
            settlement_sign=1 if net > 0 else -1,
        )
        try:
            entry = post_entry(self.db, user_id, draft, system=True)
        except IntegrityError:
            # Concurrent settlement won the race on uq_transactions_user_settlement_month
            raise SettlementAlreadyPostedError(period_key)

        return SettlementResult(
            status=SETTLEMENT_SETTLED,
            period_key=period_key,
            amount=net,
            entry_id=entry.id,
        )

    def _already_settled(self, user_id: int, period_key: str) -> bool:
        found = self.db.execute(
            select(LedgerEntry.id).where(
                LedgerEntry.user_id == user_id,
                LedgerEntry.settlement_month == period_key,
            )
        ).first()
        return found is not None
