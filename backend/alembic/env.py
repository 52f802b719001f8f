import logging
import warnings
from logging.config import fileConfig

from alembic import context
from sqlalchemy.exc import SAWarning

from app.db import Base, BuildAdminConnectionUrl, CreateEngineForUrl, IsSqliteUrl
from app.modules.auth import models as auth_models  # noqa: F401
from app.modules.notes import models as notes_models  # noqa: F401
from app.modules.notifications import models as notifications_models  # noqa: F401

config = context.config

# Leave logging alone when the API already configured it (startup migrations).
if config.config_file_name is not None and not logging.getLogger().handlers:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# Azure SQL reports version strings SQLAlchemy does not recognise.
warnings.filterwarnings("ignore", message="Unrecognized server version info", category=SAWarning)

target_metadata = Base.metadata


def _resolve_url() -> str:
    return config.get_main_option("sqlalchemy.url") or BuildAdminConnectionUrl()


def run_migrations_offline() -> None:
    url = _resolve_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        include_schemas=not IsSqliteUrl(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = _resolve_url()
    # The engine carries the schema translate map that flattens schemas on SQLite.
    engine = CreateEngineForUrl(url)
    try:
        with engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                include_schemas=not IsSqliteUrl(url),
                render_as_batch=IsSqliteUrl(url),
            )
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
