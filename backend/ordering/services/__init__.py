"""
Services module for business logic.

- domain/: Order, item and custom item services plus the rollup engine
- events/: Post-commit notifications
"""
