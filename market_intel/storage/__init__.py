"""
Market Intelligence Storage - SQLAlchemy persistence.

- ArticleRecord / SourceStateRecord: ORM tables
- Database: engine and transaction scope for one URL
- ArticleRepository / SourceStateRepository: domain <-> row mapping
"""

from .database import Database
from .models import ArticleRecord, Base, SourceStateRecord
from .repositories import ArticleRepository, SourceStateRepository


__all__ = [
    "ArticleRecord",
    "ArticleRepository",
    "Base",
    "Database",
    "SourceStateRecord",
    "SourceStateRepository",
]
