"""ClickHouse schema for the watchlist and price history tables."""
from typing import List
import logging

from pricewatch.repository.clickhouse_client import ClickHouseConnection

logger = logging.getLogger(__name__)

# Owned by the watchlist CRUD side; created here so a fresh database works.
WATCHED_STOCKS_DDL = """
CREATE TABLE IF NOT EXISTS watched_stocks (
    id UInt64,
    ticker String,
    company_name Nullable(String),
    intrinsic_value Nullable(Decimal(10, 2)),
    conviction_score UInt8 DEFAULT 5,
    updated_at DateTime DEFAULT now()
) ENGINE = ReplacingMergeTree(updated_at)
ORDER BY id
"""

PRICE_HISTORY_DDL = """
CREATE TABLE IF NOT EXISTS price_history (
    stock_id UInt64,
    price Decimal(10, 2),
    change_percent Nullable(Decimal(7, 2)),
    timestamp DateTime64(6, 'UTC')
) ENGINE = MergeTree
ORDER BY (stock_id, timestamp)
"""

SCHEMA: List[str] = [WATCHED_STOCKS_DDL, PRICE_HISTORY_DDL]


def init_schema(connection: ClickHouseConnection) -> None:
    """Create tables if they do not exist."""
    for ddl in SCHEMA:
        connection.execute(ddl)
    logger.info(f"ClickHouse schema ready ({len(SCHEMA)} tables)")
