"""
Alembic migration environment.

The database URL comes from DATABASE_URL_SYNC unless overridden on the
command line (`alembic -x url=sqlite:///tickets.db upgrade head`). SQLite
targets run in batch mode so ALTERs are emulated by table copies.
"""

from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

from ticket_manager.db.base import Base
from ticket_manager.models import User, Game, Promotion, Seat, GameTicket, TicketRequest  # noqa: F401 - Import models for autogenerate
from ticket_manager.core.config import get_settings

config = context.config
settings = get_settings()

url = context.get_x_argument(as_dictionary=True).get("url", settings.DATABASE_URL_SYNC)
config.set_main_option("sqlalchemy.url", url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _configure_options(url: str) -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Generate SQL script without connecting to the database."""
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_options(url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
