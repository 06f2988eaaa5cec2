from alembic import context

from shipwright.migrations.environment import run_migrations

run_migrations(context)
