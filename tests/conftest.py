import io
import os

# plain text output for assertions
os.environ.setdefault("NO_COLOR", "1")

import pytest

import cafe

PASSWORD = "Secret#123"

MENU = [
    ("Coffee", "Drinks", 2.50, "drip", ""),
    ("Tea", "Drinks", 1.75, "green", ""),
    ("Soup", "Soup", 4.00, "of the day", ""),
    ("Brownie", "Sweets", 2.75, "fudge", ""),
]

USERS = [
    ("alice", "Customer"),
    ("bob", "Customer"),
    ("boss", "Manager"),
]


class ScriptedConsole(cafe.Console):
    """console fed from a fixed list of input lines"""
    def __init__(self, lines=()):
        script = "".join(f"{line}\n" for line in lines)
        super().__init__(io.StringIO(script), io.StringIO(), io.StringIO())

    @property
    def output(self) -> str:
        return self.stdout.getvalue()

    @property
    def errors(self) -> str:
        return self.stderr.getvalue()


@pytest.fixture(scope="function")
def db():
    database = cafe.DatabaseManager(":memory:", seed=False)
    database.conn.executemany(
        "INSERT INTO menu(item_name, type, price, description, image_url) VALUES(?,?,?,?,?);",
        MENU
    )
    for login, user_type in USERS:
        database.execute(
            "INSERT INTO users(login, password, phone_num, fav_items, type) VALUES(?,?,?,?,?);",
            (login, PASSWORD, "555-0100", "", user_type)
        )
    try:
        yield database
    finally:
        database.close()


@pytest.fixture
def make_app(db):
    def factory(*lines):
        return cafe.Application(db, ScriptedConsole(lines))
    return factory


def line_item_sum(db, order_id):
    row = db.query_one(
        """
        SELECT COALESCE(SUM(price), 0) AS s
        FROM item_status
        WHERE order_id=?
        """,
        (order_id,)
    )
    return round(row["s"], 2)


def count(db, table, order_id):
    return db.query_count(f"SELECT 1 FROM {table} WHERE order_id=?;", (order_id,))
