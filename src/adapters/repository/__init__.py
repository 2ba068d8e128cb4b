"""Repository adapters - Database implementations."""

from .postgres import PostgresDeviceRegistry, run_migrations

__all__ = ["PostgresDeviceRegistry", "run_migrations"]
