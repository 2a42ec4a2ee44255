"""
Main settings object.
"""

from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ledger_url: str = "wss://s1.ripple.com"

    # per_request opens a fresh connection for every command; persistent keeps
    # one connection open and correlates responses by request id.
    connection_mode: Literal["per_request", "persistent"] = "per_request"
    request_timeout: float | None = None

    # Minimum gap between successive lookups in a batch
    request_interval: timedelta = timedelta(milliseconds=200)

    # immediate records the scheduled time but snapshots straight away,
    # deferred waits until the scheduled time arrives.
    snapshot_mode: Literal["immediate", "deferred"] = "immediate"

    export_directory: Path = Path(".")

    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(env_prefix="NFTGATE_", env_file=".env")
