"""
Ledger configuration parameters for AucEngine.

Defines economic parameters (protocol fee, default duration), operational
limits, and filesystem locations. Values can be overridden from the
environment or a .env file.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

ENV_PREFIX = "AUCENGINE_"

DEFAULT_FEE_PERCENT = 10
DEFAULT_DURATION = 2 * 24 * 60 * 60  # 2 days in seconds


@dataclass
class LedgerConfig:
    """Ledger-wide configuration parameters"""

    # Economics
    fee_percent: int = DEFAULT_FEE_PERCENT  # Share of final price kept by the protocol
    default_duration: int = DEFAULT_DURATION  # Used when a seller passes duration=0

    # Limits
    max_item_length: int = 1024

    # Paths
    data_dir: Path = field(default_factory=lambda: Path("data"))
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    db_name: str = "auctions.db"

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = False  # Write log_dir/aucengine.log as well as the console

    def validate(self) -> None:
        """
        Check parameter ranges.

        Raises:
            ValueError: If any parameter is out of range
        """
        if isinstance(self.fee_percent, bool) or not isinstance(self.fee_percent, int):
            raise ValueError(f"fee_percent must be int, got {type(self.fee_percent).__name__}")
        if not 0 <= self.fee_percent <= 100:
            raise ValueError(f"fee_percent must be within 0..100, got {self.fee_percent}")
        if isinstance(self.default_duration, bool) or not isinstance(self.default_duration, int):
            raise ValueError("default_duration must be int")
        if self.default_duration <= 0:
            raise ValueError(f"default_duration must be > 0, got {self.default_duration}")
        if self.max_item_length <= 0:
            raise ValueError(f"max_item_length must be > 0, got {self.max_item_length}")

    def ensure_dirs(self) -> None:
        """Create the data directory, and the log directory when file logging is on"""
        self.data_dir.mkdir(exist_ok=True, parents=True)
        if self.log_to_file:
            self.log_dir.mkdir(exist_ok=True, parents=True)


TRUTHY = {"1", "true", "yes", "on"}


def _env(name: str) -> Optional[str]:
    value = os.environ.get(ENV_PREFIX + name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def load_config(env_file: Optional[str] = None) -> LedgerConfig:
    """
    Load configuration from the environment.

    A .env file (explicit path, or one found from the working directory)
    is loaded first; variables already set in the process win.

    Recognized variables:
        AUCENGINE_FEE_PERCENT, AUCENGINE_DEFAULT_DURATION,
        AUCENGINE_DATA_DIR, AUCENGINE_LOG_DIR, AUCENGINE_LOG_LEVEL,
        AUCENGINE_LOG_TO_FILE

    Args:
        env_file: Optional path to a .env file

    Returns:
        Validated LedgerConfig instance
    """
    if env_file:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(find_dotenv(usecwd=True), override=False)

    config = LedgerConfig()

    fee = _env("FEE_PERCENT")
    if fee is not None:
        config.fee_percent = int(fee)

    duration = _env("DEFAULT_DURATION")
    if duration is not None:
        config.default_duration = int(duration)

    data_dir = _env("DATA_DIR")
    if data_dir is not None:
        config.data_dir = Path(data_dir).expanduser()

    log_dir = _env("LOG_DIR")
    if log_dir is not None:
        config.log_dir = Path(log_dir).expanduser()

    level = _env("LOG_LEVEL")
    if level is not None:
        config.log_level = level.upper()

    to_file = _env("LOG_TO_FILE")
    if to_file is not None:
        config.log_to_file = to_file.lower() in TRUTHY

    config.validate()
    return config
