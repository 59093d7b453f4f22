"""
Portfolio persistence.

Reads return a PortfolioSnapshot. A user without a portfolio row gets a
default preview (persisted=False) instead of an error; only
create_portfolio materializes it.

Mutations for one user run under user_lock(). SQLite ignores
SELECT ... FOR UPDATE, so the lock is what keeps two orders from
validating against the same cash.
"""

from decimal import Decimal
from typing import List, Optional, Sequence
from uuid import UUID
from datetime import datetime, timezone
import asyncio
import logging
import weakref

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from papertrade.core.config import settings
from papertrade.models.portfolio import (
    Holding,
    Portfolio,
    PortfolioHolding,
    PortfolioSnapshot,
)
from papertrade.services.exceptions import PortfolioNotFoundError, UnauthorizedError

logger = logging.getLogger(__name__)

# Entries disappear once no coroutine holds a reference to the lock
_user_locks: "weakref.WeakValueDictionary[UUID, asyncio.Lock]" = weakref.WeakValueDictionary()


def user_lock(user_id: UUID) -> asyncio.Lock:
    """Process-wide lock serializing portfolio mutations for one user"""
    lock = _user_locks.get(user_id)
    if lock is None:
        lock = asyncio.Lock()
        _user_locks[user_id] = lock
    return lock


class PortfolioStore:

    def __init__(self, db: AsyncSession, starting_cash: Optional[Decimal] = None):
        self.db = db
        self.starting_cash = (
            starting_cash if starting_cash is not None else settings.STARTING_CASH
        )

    async def get_or_create_portfolio(
        self, user_id: UUID, for_update: bool = False
    ) -> PortfolioSnapshot:
        """Stored portfolio, or an unpersisted default preview if there is none"""
        portfolio = await self._get_portfolio(user_id, for_update=for_update)

        if not portfolio:
            return PortfolioSnapshot(
                user_id=user_id,
                cash=self.starting_cash,
                total_value=self.starting_cash,
                holdings=[],
                persisted=False
            )

        rows = await self._get_holdings(user_id)
        return PortfolioSnapshot(
            user_id=user_id,
            cash=portfolio.cash,
            total_value=portfolio.total_value,
            holdings=[
                Holding(symbol=row.symbol, quantity=row.quantity, avg_price=row.avg_price)
                for row in rows
            ],
            persisted=True
        )

    async def create_portfolio(self, user_id: UUID) -> UUID:
        """Materialize the default portfolio. Idempotent."""
        if user_id is None:
            raise UnauthorizedError()

        existing = await self._get_portfolio(user_id)
        if existing:
            return existing.user_id

        self.db.add(Portfolio(
            user_id=user_id,
            cash=self.starting_cash,
            total_value=self.starting_cash
        ))
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent create for the same user
            await self.db.rollback()
            return user_id

        logger.info(f"Portfolio created for user_id={user_id}")
        return user_id

    async def persist_portfolio(
        self,
        user_id: UUID,
        cash: Decimal,
        total_value: Decimal,
        holdings: Sequence[Holding],
        commit: bool = True
    ) -> None:
        """
        Write a snapshot. Holdings are diffed by symbol so rows that did not
        change are left untouched. Silently skipped if the user has no
        portfolio yet.
        """
        if user_id is None:
            raise UnauthorizedError()

        portfolio = await self._get_portfolio(user_id)
        if not portfolio:
            logger.debug(f"No portfolio for user_id={user_id}, snapshot not persisted")
            return

        changed = False
        if portfolio.cash != cash or portfolio.total_value != total_value:
            portfolio.cash = cash
            portfolio.total_value = total_value
            changed = True

        rows = {row.symbol: row for row in await self._get_holdings(user_id)}

        for position, holding in enumerate(holdings):
            if holding.quantity <= 0:
                raise ValueError(f"Holding {holding.symbol} has non-positive quantity")

            row = rows.pop(holding.symbol, None)
            if row is None:
                self.db.add(PortfolioHolding(
                    user_id=user_id,
                    symbol=holding.symbol,
                    position=position,
                    quantity=holding.quantity,
                    avg_price=holding.avg_price
                ))
                changed = True
            elif (
                row.quantity != holding.quantity
                or row.avg_price != holding.avg_price
                or row.position != position
            ):
                row.quantity = holding.quantity
                row.avg_price = holding.avg_price
                row.position = position
                row.updated_at = datetime.now(timezone.utc)
                changed = True

        # Whatever is left was sold out
        for row in rows.values():
            await self.db.delete(row)
            changed = True

        if changed:
            portfolio.updated_at = datetime.now(timezone.utc)

        if commit:
            await self.db.commit()

    async def reset_portfolio(self, user_id: UUID) -> PortfolioSnapshot:
        """Back to starting cash with no holdings. Trade history is kept."""
        if user_id is None:
            raise UnauthorizedError()

        async with user_lock(user_id):
            portfolio = await self._get_portfolio(user_id, for_update=True)
            if not portfolio:
                raise PortfolioNotFoundError()

            await self.persist_portfolio(
                user_id, self.starting_cash, self.starting_cash, [], commit=True
            )
        logger.info(f"Portfolio reset for user_id={user_id}")
        return await self.get_or_create_portfolio(user_id)

    async def _get_portfolio(
        self, user_id: UUID, for_update: bool = False
    ) -> Optional[Portfolio]:
        stmt = select(Portfolio).where(Portfolio.user_id == user_id)
        if for_update:
            # Reload even if the row is already in the identity map
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _get_holdings(self, user_id: UUID) -> List[PortfolioHolding]:
        stmt = (
            select(PortfolioHolding)
            .where(PortfolioHolding.user_id == user_id)
            .order_by(PortfolioHolding.position)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
