"""Alembic environment for the screening schema.

Migrations run synchronously against ``get_sync_url()``; the async engine
is only used at runtime.  ``compare_type`` is on so autogenerate notices
column type changes as well as added or dropped columns.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from screening_db.config import get_sync_url
from screening_db.models import Base

config = context.config

# The URL in alembic.ini is a placeholder; the environment decides
config.set_main_option("sqlalchemy.url", get_sync_url())

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# screening_db.models imports every model module, so this is complete
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Connect and apply pending revisions."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
