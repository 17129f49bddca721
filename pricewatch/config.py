"""Configuration management using python-dotenv."""
import os
from pathlib import Path
from typing import Dict, List, Optional
from dotenv import load_dotenv

# Load .env file from project root
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)


def _split_csv(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


class ClickHouseConfig:
    """ClickHouse connection configuration."""
    HOST: str = os.getenv("CLICKHOUSE_HOST", "localhost")
    PORT: int = int(os.getenv("CLICKHOUSE_PORT", "9000"))
    DATABASE: str = os.getenv("CLICKHOUSE_DB", "pricewatch")
    USER: str = os.getenv("CLICKHOUSE_USER", "default")
    PASSWORD: str = os.getenv("CLICKHOUSE_PASSWORD", "")


class AppConfig:
    """Application configuration."""
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    # "clickhouse" or "memory"
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "clickhouse").lower()
    # e.g. "AAPL:180.50,MSFT:320" - only used by the in-memory watchlist
    WATCHLIST_SEED: str = os.getenv("WATCHLIST_SEED", "")

    def watchlist_seed(self) -> Dict[str, Optional[float]]:
        """Parse WATCHLIST_SEED into ticker -> intrinsic value."""
        seed: Dict[str, Optional[float]] = {}
        for entry in _split_csv(self.WATCHLIST_SEED):
            ticker, _, value = entry.partition(":")
            seed[ticker.strip().upper()] = float(value) if value.strip() else None
        return seed


class RefreshConfig:
    """Price refresh and alert configuration."""
    INTERVAL_SECONDS: int = int(os.getenv("REFRESH_INTERVAL_SECONDS", "300"))
    # "yahoo", "alphavantage" or "yfinance"
    QUOTE_PROVIDER: str = os.getenv("QUOTE_PROVIDER", "yahoo").lower()
    QUOTE_TIMEOUT_SECONDS: float = float(os.getenv("QUOTE_TIMEOUT_SECONDS", "10"))
    ALPHA_VANTAGE_API_KEY: str = os.getenv("ALPHA_VANTAGE_API_KEY", "")
    PRICE_HISTORY_DEFAULT_LIMIT: int = int(os.getenv("PRICE_HISTORY_DEFAULT_LIMIT", "50"))
    ALERT_COOLDOWN_HOURS: float = float(os.getenv("ALERT_COOLDOWN_HOURS", "24"))


class TelegramConfig:
    """Telegram Bot API configuration."""
    BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN") or os.getenv("BOT_TOKEN", "")
    API_URL: str = os.getenv("TELEGRAM_API_URL", "https://api.telegram.org")
    ALERT_CHAT_IDS: List[int] = [
        int(chat_id) for chat_id in _split_csv(os.getenv("TELEGRAM_ALERT_CHAT_IDS", ""))
    ]


# Singleton instances
clickhouse_config = ClickHouseConfig()
app_config = AppConfig()
refresh_config = RefreshConfig()
telegram_config = TelegramConfig()
