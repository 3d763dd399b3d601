"""ORM model registry. Import all models so Alembic autogenerate discovers them."""

from worktrack_api.models.user import User

__all__ = [
    "User",
]
