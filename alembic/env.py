# alembic/env.py

from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from sqlmodel import SQLModel
from alembic import context
import os
import sys

# ------------------------------------------------------------
# 🔧 Aseguramos que Alembic encuentre "goldmines/"
# ------------------------------------------------------------
sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from goldmines.core.settings import settings
from goldmines.db.database import to_sync_url
from goldmines.db import models  # noqa: F401  (registra las tablas para autogenerate)

# ------------------------------------------------------------
# ⚙️ Configuración base de Alembic
# ------------------------------------------------------------
config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata
SYNC_URL = to_sync_url(settings.database_url)


# ------------------------------------------------------------
# 🔄 Funciones de migración
# ------------------------------------------------------------
def run_migrations_offline() -> None:
    """Ejecuta migraciones en modo offline."""
    context.configure(
        url=SYNC_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Ejecuta migraciones en modo online (normal)."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        url=SYNC_URL,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
        )

        with context.begin_transaction():
            context.run_migrations()


# ------------------------------------------------------------
# 🚀 Ejecución
# ------------------------------------------------------------
if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
