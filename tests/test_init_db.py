from sqlalchemy import inspect

from hookstream.db import session as db_session_module
from hookstream.init_db import init_db


def test_init_db_creates_relay_tables() -> None:
    init_db()

    tables = set(inspect(db_session_module.engine).get_table_names())
    assert {"client", "webhook_config", "failed_event"} <= tables
