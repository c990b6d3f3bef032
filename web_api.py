from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

from eventplan.api.app import create_app
from eventplan.core.config import AppConfig
from eventplan.core.logging import setup_logging

load_dotenv()
APP_CONFIG = AppConfig.from_env()
setup_logging(APP_CONFIG.logging.level)

APP_ROOT = Path(__file__).resolve().parent

app = create_app(APP_CONFIG, app_root=APP_ROOT)
