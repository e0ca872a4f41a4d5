"""
Tests for portfolio rollups.
"""

from datetime import date
from decimal import Decimal

from trade_insight.models import PortfolioTransactions, TaxLot, LotType
from trade_insight.portfolio import calculate_holdings, summarize_portfolio, top_performers


class TestSummarizePortfolio:
    """Tests for summarize_portfolio."""

    def test_sample_totals(self, sample_transactions, sample_prices):
        rollup = calculate_holdings(sample_transactions, sample_prices).rollup

        assert rollup.total_value == Decimal("4000")
        assert rollup.total_cost_basis == Decimal("3100")
        assert rollup.total_realized_pnl == Decimal("-100")
        assert rollup.total_unrealized_pnl == Decimal("900")
        assert rollup.total_return == Decimal("800")
        assert rollup.total_dividends == Decimal("135")
        assert rollup.total_commissions == Decimal("3.50")
        assert rollup.open_positions == 2

    def test_total_value_is_sum_of_open_market_values(self, sample_transactions, sample_prices):
        report = calculate_holdings(sample_transactions, sample_prices)

        open_values = sum(
            h.market_value for h in report.holdings if h.market_value is not None
        )
        assert report.rollup.total_value == open_values

    def test_return_percent(self, sample_transactions, sample_prices):
        rollup = calculate_holdings(sample_transactions, sample_prices).rollup

        expected = Decimal("800") / Decimal("3100") * 100
        assert rollup.total_return_percent == expected

    def test_net_profit(self, sample_transactions, sample_prices):
        rollup = calculate_holdings(sample_transactions, sample_prices).rollup

        assert rollup.net_profit == Decimal("800") + Decimal("135") - Decimal("3.50")

    def test_empty_holdings(self):
        rollup = summarize_portfolio([])

        assert rollup.total_value == Decimal("0")
        assert rollup.total_return_percent == Decimal("0")
        assert rollup.top_gainers == []
        assert rollup.top_losers == []

    def test_shorts_reported_separately(self):
        transactions = PortfolioTransactions(
            portfolio_id="P1",
            lots=[
                TaxLot(
                    id="l1", symbol="AAA",
                    quantity=Decimal("10"), remaining_quantity=Decimal("10"),
                    cost_basis=Decimal("10"), acquired_at=date(2024, 1, 2),
                ),
                TaxLot(
                    id="s1", symbol="BBB",
                    quantity=Decimal("5"), remaining_quantity=Decimal("5"),
                    cost_basis=Decimal("20"), acquired_at=date(2024, 1, 2),
                    lot_type=LotType.SHORT,
                ),
            ],
        )

        rollup = calculate_holdings(
            transactions, {"AAA": Decimal("12"), "BBB": Decimal("18")}
        ).rollup

        assert rollup.total_value == Decimal("120")
        assert rollup.short_market_value == Decimal("-90")
        assert rollup.total_cost_basis == Decimal("200")
        assert rollup.open_positions == 1


class TestTopPerformers:
    """Tests for top_performers."""

    def test_gainers_and_losers(self, sample_transactions, sample_prices):
        report = calculate_holdings(sample_transactions, sample_prices)

        gainers, losers = top_performers(report.holdings, n=5)

        assert [g.symbol for g in gainers] == ["MSFT", "AAPL"]
        assert [loser.symbol for loser in losers] == ["TSLA"]
        assert gainers[0].pnl == Decimal("700")

    def test_limit(self, sample_transactions, sample_prices):
        report = calculate_holdings(sample_transactions, sample_prices)

        gainers, _ = top_performers(report.holdings, n=1)

        assert [g.symbol for g in gainers] == ["MSFT"]

    def test_rollup_carries_performers(self, sample_transactions, sample_prices):
        rollup = calculate_holdings(sample_transactions, sample_prices, top_n=1).rollup

        assert [g.symbol for g in rollup.top_gainers] == ["MSFT"]
        assert [loser.symbol for loser in rollup.top_losers] == ["TSLA"]

    def test_closed_holding_percent_uses_zero_cost(self, sample_transactions, sample_prices):
        """Closed holdings have zero open cost; percent falls back to 0."""
        report = calculate_holdings(sample_transactions, sample_prices)

        _, losers = top_performers(report.holdings)

        assert losers[0].percent == Decimal("0")
