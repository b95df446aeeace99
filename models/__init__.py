"""
Persistence package. `storage` is the process-wide DBStorage; every
request thread gets its own SQLAlchemy session from it.
"""
from models.db_storage import DBStorage

storage = DBStorage()
storage.reload()
