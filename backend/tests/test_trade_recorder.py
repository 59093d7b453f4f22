from decimal import Decimal

import pytest

from papertrade.models.trade import TradeSide, TradeStatus
from papertrade.services.exceptions import UnauthorizedError
from papertrade.services.trade_recorder import TradeRecorder


async def test_record_trade_returns_id_and_stores_executed_trade(session, user_id):
    recorder = TradeRecorder(session)
    trade_id = await recorder.record_trade(
        user_id, "AAPL", TradeSide.BUY, 10, Decimal("150"), "heap"
    )

    trades = await recorder.list_trades(user_id)
    assert [t.id for t in trades] == [trade_id]
    trade = trades[0]
    assert trade.side == "BUY"
    assert trade.status == TradeStatus.EXECUTED.value
    assert trade.algorithm == "heap"
    assert trade.profit == 0


async def test_record_trade_requires_identity(session):
    with pytest.raises(UnauthorizedError) as exc:
        await TradeRecorder(session).record_trade(
            None, "AAPL", TradeSide.BUY, 1, Decimal("150"), "heap"
        )
    assert "unauthorized" in str(exc.value)


async def test_list_trades_newest_first_and_per_user(session, user_id):
    import uuid

    recorder = TradeRecorder(session)
    other = uuid.uuid4()
    first = await recorder.record_trade(user_id, "AAPL", "BUY", 1, Decimal("100"), "heap")
    await recorder.record_trade(other, "MSFT", "BUY", 1, Decimal("100"), "stack")
    second = await recorder.record_trade(user_id, "TSLA", "BUY", 1, Decimal("100"), "queue")

    trades = await recorder.list_trades(user_id)
    assert [t.id for t in trades] == [second, first]
    assert [t.id for t in await recorder.list_trades(user_id, limit=1)] == [second]


async def test_stats_for_empty_history(session, user_id):
    stats = await TradeRecorder(session).get_stats(user_id)
    assert stats["total_trades"] == 0
    assert stats["total_profit"] == 0
    assert stats["win_rate"] == 0
    assert stats["recent_trades"] == []


async def test_stats_aggregate_profit_and_win_rate(session, user_id):
    recorder = TradeRecorder(session)
    for profit in ["0", "25.5", "-10", "4.5"]:
        await recorder.record_trade(
            user_id, "AAPL", TradeSide.SELL, 1, Decimal("100"), "heap",
            profit=Decimal(profit)
        )

    stats = await recorder.get_stats(user_id)
    assert stats["total_trades"] == 4
    assert stats["total_profit"] == Decimal("20")
    assert stats["win_rate"] == pytest.approx(50.0)
    assert 0 <= stats["win_rate"] <= 100


async def test_recent_trades_capped_at_ten(session, user_id):
    recorder = TradeRecorder(session)
    ids = []
    for _ in range(12):
        ids.append(await recorder.record_trade(
            user_id, "AAPL", TradeSide.BUY, 1, Decimal("100"), "heap"
        ))

    stats = await recorder.get_stats(user_id)
    assert stats["total_trades"] == 12
    assert [t.id for t in stats["recent_trades"]] == list(reversed(ids))[:10]
