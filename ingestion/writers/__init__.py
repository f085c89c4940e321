from ingestion.writers.transaction import RecordSink, SessionTransactionManager, TransactionManager
from ingestion.writers.user_repository import UserRepository

__all__ = ["RecordSink", "SessionTransactionManager", "TransactionManager", "UserRepository"]
