"""
Infrastructure module: Database, correlation IDs and Redis/events.

Provides:
- Database sessions and transactions (db.py)
- Correlation IDs for log tracing (correlation.py)
- Redis pub/sub for real-time notifications (events/)
"""
