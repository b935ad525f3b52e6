from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory

from .config import get_settings

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[1]

_upgrade_lock = Lock()
_upgraded = False


def alembic_config() -> Config:
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", get_settings().database_url)
    return cfg


def head_revision(cfg: Config | None = None) -> str | None:
    """Single head of the migration graph; a branched graph is an error."""
    return ScriptDirectory.from_config(cfg or alembic_config()).get_current_head()


def run_migrations_once() -> bool:
    """Upgrade to head once per process. Returns False when already done."""
    global _upgraded
    with _upgrade_lock:
        if _upgraded:
            return False
        cfg = alembic_config()
        logger.info("Upgrading schema to %s", head_revision(cfg))
        command.upgrade(cfg, "head")
        _upgraded = True
    logger.info("Schema is up to date")
    return True
