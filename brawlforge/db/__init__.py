from brawlforge.db.batch_writer import BatchWriteSummary, write_in_batches
from brawlforge.db.database import async_session_factory, get_session, init_db
from brawlforge.db.gateway import (
    BatchInsertResult,
    CardGateway,
    SqlAlchemyCardGateway,
    TermMatch,
)

__all__ = [
    "BatchInsertResult",
    "BatchWriteSummary",
    "CardGateway",
    "SqlAlchemyCardGateway",
    "TermMatch",
    "async_session_factory",
    "get_session",
    "init_db",
    "write_in_batches",
]
