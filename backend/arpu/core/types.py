"""Column types shared by all models"""
from sqlalchemy import TypeDecorator, String, JSON
from sqlalchemy.dialects.postgresql import JSONB
import uuid


def generate_uuid() -> str:
    """Generate a UUID string"""
    return str(uuid.uuid4())


class GUID(TypeDecorator):
    """UUID stored as VARCHAR(36) on every backend (SQLite in tests, Postgres in prod)"""
    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, uuid.UUID):
            return str(value)
        # Normalise case so lookups by path param match stored ids;
        # malformed ids pass through unchanged and simply match nothing
        try:
            return str(uuid.UUID(str(value)))
        except ValueError:
            return str(value)

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value


# JSONB on Postgres, plain JSON elsewhere
JSONDocument = JSON().with_variant(JSONB(), "postgresql")
