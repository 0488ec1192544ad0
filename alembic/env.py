from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from travelify.core.config import settings
from travelify.db.session import Base

# Registers every table on Base.metadata
from travelify.models import audit_log, booking, email_log, review, tour, user  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# start_api.py sets the URL explicitly; the CLI falls back to settings
database_url = config.get_main_option("sqlalchemy.url") or settings.DATABASE_URL
target_metadata = Base.metadata


def run_offline() -> None:
    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = create_engine(database_url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
