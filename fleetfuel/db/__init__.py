"""Request store: engine, sessions, tables and transactions."""
from .connection import create_db_engine, get_db, get_session_factory, init_db, transaction
from .models import Base
