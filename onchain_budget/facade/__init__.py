"""Read model aggregation and chart data"""

from .aggregation import FinancialAggregator, ReadModelSnapshot
from .charts import build_chart_data, category_breakdown, daily_trend, monthly_spending, token_allocation

__all__ = [
    "FinancialAggregator",
    "ReadModelSnapshot",
    "build_chart_data",
    "category_breakdown",
    "daily_trend",
    "monthly_spending",
    "token_allocation"
]
