#!/usr/bin/env python3
from dataclasses import dataclass
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Config:
    """Application configuration"""
    headless: bool = os.getenv("FORMTASKER_HEADLESS", "true").lower() == "true"
    log_dir: Path = Path(os.getenv("FORMTASKER_LOG_DIR", "./logs"))
    run_log_enabled: bool = os.getenv("FORMTASKER_RUN_LOG", "false").lower() in ["true", "1", "yes"]

    # Run defaults (seconds)
    interval_min: float = float(os.getenv("FORMTASKER_INTERVAL_MIN", "2"))
    interval_max: float = float(os.getenv("FORMTASKER_INTERVAL_MAX", "5"))
    ack_timeout: float = float(os.getenv("FORMTASKER_ACK_TIMEOUT", "10"))
    ack_poll_interval: float = float(os.getenv("FORMTASKER_ACK_POLL_INTERVAL", "0.25"))

    # Playwright adapter timings (milliseconds)
    submit_settle_ms: int = int(os.getenv("FORMTASKER_SUBMIT_SETTLE_MS", "1000"))
    reset_settle_ms: int = int(os.getenv("FORMTASKER_RESET_SETTLE_MS", "1500"))
    navigation_timeout_ms: int = int(os.getenv("FORMTASKER_NAVIGATION_TIMEOUT_MS", "30000"))
    field_timeout_ms: int = int(os.getenv("FORMTASKER_FIELD_TIMEOUT_MS", "3000"))

    # Delimiter for literal free-text options ("Yes<and>No")
    text_option_delimiter: str = os.getenv("FORMTASKER_TEXT_DELIMITER", "<and>")

config = Config()
