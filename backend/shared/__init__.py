"""
Shared module for common utilities of the ordering engine.

STRUCTURE:
- shared.infrastructure: Database, correlation and messaging
  - db.py: SQLAlchemy sessions, safe_commit()
  - correlation.py: request_id context for log tracing
  - events/: Redis pub/sub, event schema, channels, circuit breaker

- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging
  - constants.py: Item/order statuses, transition table, limits

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - validators.py: Payload validation into the domain error family
  - schemas.py: Shared Pydantic schemas

IMPORT EXAMPLES:
    from shared.infrastructure.db import get_db_context, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import OrderItemStatus, next_item_status
    from shared.utils.exceptions import NotFoundError, DatabaseError
    from shared.utils.validators import validate_payload
"""

# This module provides no re-exports.
# All imports should use the canonical paths as documented above.
