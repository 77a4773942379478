from logging.config import fileConfig
from alembic import context
from dotenv import load_dotenv
import os

load_dotenv()

from config import get_sync_engine
from models import Base, AUTH_SCHEMA


config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# Schemas owned by Supabase; auth.users is only mirrored in models for foreign keys
SUPABASE_SCHEMAS = {
    'auth', 'storage', 'realtime', 'vault', 'supabase_functions', 'extensions',
    'graphql', 'graphql_public', 'pgsodium', 'pgsodium_masks',
}
SUPABASE_TABLES = {'schema_migrations', 'supabase_migrations'}


def include_object(object, name, type_, reflected, compare_to):
    schema = getattr(object, 'schema', None)
    if schema in SUPABASE_SCHEMAS or (AUTH_SCHEMA and schema == AUTH_SCHEMA):
        return False

    if type_ == "table" and name in SUPABASE_TABLES:
        return False

    return True


def offline_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is required for migrations")

    for async_driver in ("postgresql+asyncpg://", "postgres://"):
        if database_url.startswith(async_driver):
            return database_url.replace(async_driver, "postgresql://", 1)
    return database_url


def run_migrations_offline() -> None:
    """Emit the migration SQL without a database connection"""
    context.configure(
        url=offline_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        include_schemas=True,
        include_object=include_object,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against the configured database"""
    connectable = get_sync_engine()

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_schemas=True,
            include_object=include_object,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
