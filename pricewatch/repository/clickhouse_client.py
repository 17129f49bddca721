"""ClickHouse database connection management."""
from typing import List, Any, Optional, Sequence
from clickhouse_driver import Client
import logging

from pricewatch.config import clickhouse_config

logger = logging.getLogger(__name__)


class ClickHouseConnection:
    """Manages the ClickHouse connection shared by the repositories."""

    def __init__(
        self,
        host: str = None,
        port: int = None,
        database: str = None,
        user: str = None,
        password: str = None,
    ):
        self.host = host or clickhouse_config.HOST
        self.port = port or clickhouse_config.PORT
        self.database = database or clickhouse_config.DATABASE
        self.user = user or clickhouse_config.USER
        self.password = password or clickhouse_config.PASSWORD
        self._client: Optional[Client] = None

    def connect(self) -> None:
        """Establish connection to ClickHouse."""
        try:
            self._client = Client(
                host=self.host,
                port=self.port,
                database=self.database,
                user=self.user,
                password=self.password,
            )
            logger.info(f"Connected to ClickHouse at {self.host}:{self.port}/{self.database}")
        except Exception as e:
            logger.error(f"Failed to connect to ClickHouse: {e}")
            raise

    def disconnect(self) -> None:
        """Close connection to ClickHouse."""
        if self._client:
            self._client.disconnect()
            self._client = None
            logger.info("Disconnected from ClickHouse")

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def execute(self, query: str, params: Optional[dict] = None) -> List[Any]:
        """Execute a query and return result rows."""
        return self.client.execute(query, params or {})

    def insert_rows(self, table: str, columns: Sequence[str], rows: List[tuple]) -> None:
        """Insert rows using the native-protocol VALUES form."""
        if not rows:
            return
        query = f"INSERT INTO {table} ({', '.join(columns)}) VALUES"
        self.client.execute(query, rows)

    def ping(self) -> bool:
        """Check that the server answers a trivial query."""
        try:
            self.execute("SELECT 1")
            return True
        except Exception as e:
            logger.warning(f"ClickHouse ping failed: {e}")
            return False

    @property
    def client(self) -> Client:
        """Get underlying client."""
        if not self._client:
            raise RuntimeError("Not connected to ClickHouse")
        return self._client
