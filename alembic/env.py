"""Alembic environment bound to the service's settings and models."""

from logging.config import fileConfig

from alembic import context

from feepay.common.config import settings
from feepay.common.db import Base, build_engine
from feepay.services.order_status import models as _order_status_models  # noqa: F401
from feepay.services.orders import models as _order_models  # noqa: F401
from feepay.services.webhooks import models as _webhook_models  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(url=settings.database_url, target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = build_engine(settings.database_url)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
