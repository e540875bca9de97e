from lessons.storage.db import Database, DatabaseNotConfigured

__all__ = ["Database", "DatabaseNotConfigured"]
