import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Migrations run without the app's auth settings, so the URL is read directly
# rather than through playbooq.config.
database_url = os.environ.get("DATABASE_URL", "")
# asyncpg-style URLs need converting for alembic (which uses sync sqlalchemy)
for prefix in ("postgres://", "postgresql+asyncpg://"):
    if database_url.startswith(prefix):
        database_url = "postgresql://" + database_url[len(prefix) :]

if not database_url:
    raise RuntimeError("DATABASE_URL environment variable is required for migrations")

config.set_main_option("sqlalchemy.url", database_url)


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(url=url, target_metadata=None, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(config.get_main_option("sqlalchemy.url"))
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=None)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
