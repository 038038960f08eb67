"""
Programmatic Alembic migration runner.

Runs migrations without an alembic.ini: the script location is the migrations
directory of this package and the URL comes from crudcore.db.config.

Usage examples:
    python -m crudcore.db.run_migrations upgrade head
    python -m crudcore.db.run_migrations downgrade -1
    python -m crudcore.db.run_migrations stamp head
    python -m crudcore.db.run_migrations history
"""

import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from alembic import command
from alembic.config import Config

from crudcore.db.config import get_settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

# command name -> (alembic function, default positional arguments)
_COMMANDS: Dict[str, tuple[Callable[..., object], List[str]]] = {
    "upgrade": (command.upgrade, ["head"]),
    "downgrade": (command.downgrade, ["-1"]),
    "stamp": (command.stamp, ["head"]),
    "history": (command.history, []),
    "current": (command.current, []),
    "heads": (command.heads, []),
    "show": (command.show, []),
}


# PUBLIC_INTERFACE
def build_config() -> Config:
    """Alembic Config pointing at the bundled migrations and the configured database."""
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    # env.py connects with the async URL; the sync one serves offline mode.
    cfg.set_main_option("sqlalchemy.url", get_settings().sync_database_url.replace("%", "%%"))
    return cfg


# PUBLIC_INTERFACE
def main(argv: Optional[List[str]] = None) -> None:
    """Run an Alembic command, e.g. main(["upgrade", "head"])."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        logger.error("No Alembic arguments provided. Example: upgrade head")
        sys.exit(1)

    name, other = args[0], args[1:]
    if name not in _COMMANDS:
        logger.error("Unsupported Alembic command: %s (expected one of %s)", name, ", ".join(_COMMANDS))
        sys.exit(2)

    func, defaults = _COMMANDS[name]
    if name == "show" and not other:
        logger.error("Usage: show <revision>")
        sys.exit(2)

    logger.info("alembic %s %s", name, " ".join(other or defaults))
    func(build_config(), *(other or defaults))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
