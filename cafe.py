#!/usr/bin/env python3.13

#                __
#   ___ __ _ / _| ___
#  / __/ _` | |_ / _ \
# | (_| (_| |  _|  __/
#  \___\__,_|_|  \___|  ☕
#
# customers place orders, managers run the menu
# --sql is used for syntax highlighting inline sql queries

import sqlite3
import signal
import sys
import math
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Sequence, TextIO
from enum import Enum

from termcolor import cprint, colored
from colorama import just_fix_windows_console as enable_windows_ansi_interpretation

# fix windows terminal misinterpreting ansi escape sequences
enable_windows_ansi_interpretation()

# constants
MAX_ITEM_NAME_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 400
MAX_IMAGE_URL_LENGTH = 256
MAX_COMMENT_LENGTH = 130
MIN_PASSWORD_LENGTH = 8
DEFAULT_ITEM_STATUS = "Hasn't started"
EXIT_SENTINELS = ("done", "quit", "q")
SHOW_MENU_KEYWORD = "menu"
RECENT_ORDER_LIMIT = 5
RECENT_ORDER_WINDOW = "-1 day"
ORDER_ID_SEQUENCE = "orders_order_id_seq"
BACK_CHOICE = 9
SQLITE_MAX_INTEGER = 2**63 - 1
RESERVED_ITEM_NAMES = (*EXIT_SENTINELS, SHOW_MENU_KEYWORD)

DEFAULT_MANAGER_LOGIN = "manager"
DEFAULT_MANAGER_PASSWORD = "Manager#1"

STARTER_MENU = [
    ("Coffee", "Drinks", 2.50, "fresh drip coffee", ""),
    ("Tea", "Drinks", 1.75, "black, green or herbal", ""),
    ("Hot Chocolate", "Drinks", 3.25, "with whipped cream", ""),
    ("Brownie", "Sweets", 2.75, "fudge brownie", ""),
    ("Cheesecake", "Sweets", 4.50, "new york style slice", ""),
    ("Tomato Soup", "Soup", 4.00, "roasted tomato and basil", ""),
    ("Clam Chowder", "Soup", 5.50, "new england style", ""),
]

# helpers
def safe_int(value: str, minimum: int | None = None, maximum: int | None = None):
    """return int value or none if invalid / outside [minimum, maximum]"""
    try:
        v = int(value)
        if minimum is not None and v < minimum:
            return None
        if maximum is not None and v > maximum:
            return None
        return v
    except ValueError:
        return None

def safe_price(value: str) -> float | None:
    """return a non-negative finite price or none"""
    try:
        p = float(value)
    except ValueError:
        return None
    if not math.isfinite(p) or p < 0:
        return None
    return round(p, 2)

def color_money(amount: float) -> str:
    """format amount as green money string"""
    return colored(f"${amount:.2f}", "green")

def parse_boolean_input(prompt: str) -> bool:
    """parse y/n style input; anything else counts as no"""
    return prompt.lower().strip() in ("y", "yes")

def is_exit_sentinel(value: str) -> bool:
    """true for done / quit / q in any case"""
    return value.strip().lower() in EXIT_SENTINELS

def is_reserved_item_name(value: str) -> bool:
    """names the order prompts read as keywords"""
    return value.strip().lower() in RESERVED_ITEM_NAMES

def normalize_comment(value: str) -> str:
    """'none' means no comment"""
    return "" if value.strip().lower() == "none" else value

def check_password(password: str) -> bool:
    """8+ chars, an uppercase letter and a special character"""
    has_capital = any(c.isupper() for c in password)
    has_special = any(not (c.isalnum() or c.isspace()) for c in password)
    return len(password) >= MIN_PASSWORD_LENGTH and has_capital and has_special

PASSWORD_RULES = (
    f"password must have a minimum of {MIN_PASSWORD_LENGTH} characters including a capital letter "
    "and a special character (ex: ~!@#$%^&*_-+=`|(){}[]:;'<>,.?)"
)

# terminal io
class Console:
    """line-oriented terminal io; streams are injectable so tests can script a session"""
    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None,
                 stderr: TextIO | None = None):
        self.stdin = sys.stdin if stdin is None else stdin
        self.stdout = sys.stdout if stdout is None else stdout
        self.stderr = sys.stderr if stderr is None else stderr

    def read_line(self, prompt: str = "") -> str:
        """blocking read of one stripped line; EOFError when input runs out"""
        if prompt:
            self.stdout.write(prompt)
            self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            raise EOFError
        return line.strip()

    def read_choice(self) -> int:
        """keep asking until the input parses as an integer"""
        while True:
            value = safe_int(self.read_line(colored("\nplease make your choice: ", "blue")))
            if value is not None:
                return value
            self.cprint("your input is invalid!", "red")

    def print(self, *values: object):
        print(*values, file=self.stdout)

    def cprint(self, text: str, color: str | None = None, attrs: list[str] | None = None):
        cprint(text, color, attrs=attrs, file=self.stdout)

    def error(self, text: str):
        """red message on the error stream"""
        cprint(text, "red", file=self.stderr)

# database layer
class DatabaseManager:
    """manage the sqlite connection, schema and every statement the app runs"""
    def __init__(self, path: str = "cafe.db", seed: bool = True):
        self.path = path
        self.conn = sqlite3.connect(path)
        self.conn.row_factory = sqlite3.Row
        self.conn.autocommit = True
        self.conn.execute("--sql\nPRAGMA foreign_keys=ON;")
        self._create_schema()
        if seed:
            self._seed_menu()
            self._seed_default_manager()

    def _create_schema(self):
        """create tables / sequence if missing"""
        self.conn.executescript(
            """--sql
            CREATE TABLE IF NOT EXISTS users (
                login TEXT PRIMARY KEY,
                password TEXT NOT NULL,
                phone_num TEXT NOT NULL DEFAULT '',
                fav_items TEXT NOT NULL DEFAULT '',
                type TEXT NOT NULL DEFAULT 'Customer' CHECK (type IN ('Customer', 'Manager'))
            );
            CREATE TABLE IF NOT EXISTS menu (
                item_name TEXT PRIMARY KEY COLLATE NOCASE CHECK (length(item_name) <= 50),
                type TEXT NOT NULL CHECK (type IN ('Drinks', 'Sweets', 'Soup')),
                price REAL NOT NULL CHECK (price >= 0),
                description TEXT NOT NULL DEFAULT '' CHECK (length(description) <= 400),
                image_url TEXT NOT NULL DEFAULT '' CHECK (length(image_url) <= 256)
            );
            CREATE TABLE IF NOT EXISTS orders (
                order_id INTEGER PRIMARY KEY,
                login TEXT NOT NULL,
                paid INTEGER NOT NULL DEFAULT 0,
                received_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                total REAL NOT NULL DEFAULT 0,
                FOREIGN KEY(login) REFERENCES users(login)
            );
            CREATE TABLE IF NOT EXISTS item_status (
                order_id INTEGER NOT NULL,
                item_name TEXT NOT NULL COLLATE NOCASE,
                last_updated TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                status TEXT NOT NULL DEFAULT 'Hasn''t started',
                price REAL NOT NULL CHECK (price >= 0),
                comments TEXT NOT NULL DEFAULT '' CHECK (length(comments) <= 130),
                PRIMARY KEY (order_id, item_name),
                FOREIGN KEY(order_id) REFERENCES orders(order_id),
                FOREIGN KEY(item_name) REFERENCES menu(item_name) ON UPDATE CASCADE
            );
            CREATE TABLE IF NOT EXISTS sequences (
                name TEXT PRIMARY KEY,
                value INTEGER NOT NULL DEFAULT 0
            );
            INSERT OR IGNORE INTO sequences(name, value) VALUES ('orders_order_id_seq', 0);
            """
        )

    def _seed_menu(self):
        """seed the starter menu once"""
        self.conn.executemany(
            """--sql
            INSERT OR IGNORE INTO menu(item_name, type, price, description, image_url)
            VALUES(?, ?, ?, ?, ?);
            """,
            STARTER_MENU
        )

    def _seed_default_manager(self):
        """create the default manager if missing"""
        self.conn.execute(
            """--sql
            INSERT OR IGNORE INTO users(login, password, phone_num, fav_items, type)
            VALUES (?, ?, '', '', ?)
            """,
            (DEFAULT_MANAGER_LOGIN, DEFAULT_MANAGER_PASSWORD, UserType.MANAGER.value)
        )

    def execute(self, statement: str, params: Sequence = ()) -> int:
        """run an insert / update / delete and return the affected row count"""
        return self.conn.execute(statement, params).rowcount

    def query(self, statement: str, params: Sequence = ()) -> list[sqlite3.Row]:
        """run a select and return every row"""
        return self.conn.execute(statement, params).fetchall()

    def query_one(self, statement: str, params: Sequence = ()) -> sqlite3.Row | None:
        """run a select and return the first row or none"""
        return self.conn.execute(statement, params).fetchone()

    def query_count(self, statement: str, params: Sequence = ()) -> int:
        """number of rows a select returns"""
        return len(self.query(statement, params))

    def next_sequence_value(self, name: str) -> int:
        """bump and return a named sequence; values are never handed out twice"""
        rows = self.conn.execute(
            "UPDATE sequences SET value = value + 1 WHERE name=? RETURNING value;",
            (name,)
        ).fetchall()
        if not rows:
            raise sqlite3.OperationalError(f"no such sequence: {name}")
        return rows[0]["value"]

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """group statements so they commit together or not at all"""
        self.conn.execute("BEGIN;")
        try:
            yield
            self.conn.execute("COMMIT;")
        except BaseException:
            if self.conn.in_transaction:
                self.conn.execute("ROLLBACK;")
            raise

    def close(self):
        self.conn.close()

# accounts/auth
class UserType(Enum):
    """role stored in users.type"""
    CUSTOMER = "Customer"
    MANAGER = "Manager"

class AccountManager:
    """signup, login and profile updates (plain text passwords, as stored by the schema)"""
    def __init__(self, db: DatabaseManager, console: Console):
        self.db = db
        self.console = console
        self.current_user: str | None = None

    def user_exists(self, login: str) -> bool:
        """check if login exists"""
        return self.db.query_count(
            "SELECT 1 FROM users WHERE login=? LIMIT 1;",
            (login,)
        ) > 0

    def user_type(self, login: str | None) -> UserType | None:
        """role of a login, none if unknown"""
        if login is None:
            return None
        row = self.db.query_one("SELECT type FROM users WHERE login=?;", (login,))
        return UserType(row["type"]) if row else None

    def is_manager(self, login: str | None) -> bool:
        """true if login belongs to a manager"""
        return self.user_type(login) is UserType.MANAGER

    def authenticate(self, login: str, password: str) -> str | None:
        """exact match credential check; returns the login on success"""
        found = self.db.query_count(
            "SELECT 1 FROM users WHERE login=? AND password=?;",
            (login, password)
        )
        return login if found else None

    def login(self) -> str | None:
        """interactive login; sets and returns the session user"""
        login = self.console.read_line(colored("\nenter user login: ", "magenta"))
        password = self.console.read_line(colored("enter user password: ", "magenta"))
        if self.authenticate(login, password) is None:
            self.console.cprint("\nlogin not found! please try again.", "red")
            return None
        self.current_user = login
        role = self.user_type(login)
        prefix = "manager " if role is UserType.MANAGER else ""
        self.console.cprint(f"\nlogin successful. welcome, {prefix}{colored(login, 'yellow', attrs=['bold'])}!", "green")
        return login

    def logout(self):
        """log out current user"""
        if self.current_user is None:
            self.console.cprint("no user logged in", "red")
            return
        self.console.cprint("\nsuccessfully logged out.", "green")
        self.current_user = None

    def create_user(self, login: str, password: str, phone: str,
                    user_type: UserType = UserType.CUSTOMER):
        """insert a user row with empty favorites"""
        self.db.execute(
            "INSERT INTO users(login, password, phone_num, fav_items, type) VALUES(?,?,?,?,?);",
            (login, password, phone, "", user_type.value)
        )

    def register(self) -> bool:
        """interactive signup for a new customer"""
        login = self.console.read_line(colored("\tenter user login: ", "magenta"))
        if not login:
            self.console.cprint("login cannot be empty", "red"); return False
        if self.user_exists(login):
            self.console.cprint("username already taken please try again.", "red"); return False
        password = self.console.read_line(colored("\tenter user password: ", "magenta"))
        if not check_password(password):
            self.console.cprint(PASSWORD_RULES, "red"); return False
        phone = self.console.read_line(colored("\tenter user phone: ", "magenta"))
        self.create_user(login, password, phone)
        self.console.cprint("user successfully created!", "green")
        return True

    # profile
    def set_password(self, login: str, password: str):
        if not check_password(password):
            raise ValueError(PASSWORD_RULES)
        self.db.execute("UPDATE users SET password=? WHERE login=?;", (password, login))

    def set_phone(self, login: str, phone: str):
        self.db.execute("UPDATE users SET phone_num=? WHERE login=?;", (phone, login))

    def favorite_items(self, login: str) -> str | None:
        row = self.db.query_one("SELECT fav_items FROM users WHERE login=?;", (login,))
        return row["fav_items"] if row else None

    def set_favorite_items(self, login: str, fav_items: str):
        self.db.execute("UPDATE users SET fav_items=? WHERE login=?;", (fav_items, login))

    def set_user_type(self, actor: str, login: str, user_type: UserType):
        """managers only; promote / demote another user"""
        if not self.is_manager(actor):
            raise PermissionError("manager privileges required")
        self.db.execute("UPDATE users SET type=? WHERE login=?;", (user_type.value, login))

    def _change_password(self, target: str):
        password = self.console.read_line("\nenter a new password: ")
        while not check_password(password):
            self.console.cprint(PASSWORD_RULES, "red")
            password = self.console.read_line("enter a new password: ")
        self.set_password(target, password)
        self.console.cprint(f"\npassword for {target} has been updated.", "green")

    def _change_phone(self, target: str):
        phone = self.console.read_line("\nenter a new phone number: ")
        self.set_phone(target, phone)
        self.console.cprint(f"\nphone number for {target} has been updated.", "green")

    def _change_favorites(self, target: str):
        current = self.favorite_items(target)
        if current is None:
            self.console.error("error: issue with finding favorite items. please try again later.")
            return
        self.console.cprint(f"\nfavorite items of {target}:", attrs=["bold"])
        self.console.print(f"\t{current or '(none)'}")
        fav_items = self.console.read_line("\nenter the new list of favorite items separated by commas: ")
        self.set_favorite_items(target, fav_items)
        self.console.cprint("\nlist of favorite items has been updated.", "green")

    def _change_user_type(self, actor: str, target: str):
        raw = self.console.read_line("enter the new user type ('Customer' or 'Manager'): ")
        try:
            user_type = UserType(raw.capitalize())
        except ValueError:
            self.console.cprint("user type must be 'Customer' or 'Manager'", "red"); return
        self.set_user_type(actor, target, user_type)
        self.console.cprint(f"\n{target} is now a {user_type.value.lower()}.", "green")

    def _pick_other_user(self, actor: str):
        login = self.console.read_line("\nenter the login of the user you are changing: ")
        while login != str(BACK_CHOICE) and not self.user_exists(login):
            login = self.console.read_line(f"login not found. please try again or enter '{BACK_CHOICE}' to quit: ")
        if login != str(BACK_CHOICE):
            self.update_profile(actor, login)

    def update_profile(self, actor: str, target: str | None = None):
        """profile menu for the actor, or for another user when a manager asks"""
        target = actor if target is None else target
        manager = UserType.MANAGER
        options = [
            MenuOption(1, "change password", lambda: self._change_password(target)),
            MenuOption(2, "change phone number", lambda: self._change_phone(target)),
            MenuOption(3, "change favorite items", lambda: self._change_favorites(target)),
            MenuOption(4, "update a different user", lambda: self._pick_other_user(actor), manager),
        ]
        if target != actor:
            options.append(MenuOption(5, "change user type", lambda: self._change_user_type(actor, target), manager))
        MenuScreen(f"update profile options (user: {target})", self.console, options,
                   is_manager=self.is_manager(actor), repeat=False).run()

# domain models
class ItemType(Enum):
    """menu categories, in display order"""
    DRINKS = "Drinks"
    SWEETS = "Sweets"
    SOUP = "Soup"

@dataclass
class MenuItem:
    """menu row"""
    name: str
    type: ItemType
    price: float
    description: str = ""
    image_url: str = ""

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "MenuItem":
        return cls(row["item_name"], ItemType(row["type"]), row["price"],
                   row["description"], row["image_url"])

@dataclass
class StagedItem:
    """item picked during order placement, not yet written"""
    name: str
    price: float
    comment: str = ""

@dataclass
class Order:
    """order header (db-backed)"""
    id: int
    login: str
    paid: bool
    received_at: str
    total: float

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Order":
        return cls(row["order_id"], row["login"], bool(row["paid"]),
                   row["received_at"], row["total"])

# menu catalog
class MenuManager:
    """browse / search the menu; managers add, delete and update items"""
    MENU_COLUMNS = "item_name, type, price, description, image_url"

    def __init__(self, db: DatabaseManager, console: Console, account_manager: AccountManager):
        self.db = db
        self.console = console
        self.account_manager = account_manager

    # queries
    def fetch_menu(self, item_type: ItemType | None = None) -> list[MenuItem]:
        """menu items, optionally of one type"""
        if item_type is None:
            rows = self.db.query(f"SELECT {self.MENU_COLUMNS} FROM menu ORDER BY type, item_name;")
        else:
            rows = self.db.query(
                f"SELECT {self.MENU_COLUMNS} FROM menu WHERE type=? ORDER BY item_name;",
                (item_type.value,)
            )
        return [MenuItem.from_row(r) for r in rows]

    def get_menu_item(self, name: str) -> MenuItem | None:
        """lookup a menu item by case-insensitive name"""
        row = self.db.query_one(
            f"SELECT {self.MENU_COLUMNS} FROM menu WHERE item_name=?;",
            (name,)
        )
        return MenuItem.from_row(row) if row else None

    def item_exists(self, name: str) -> bool:
        return self.db.query_count("SELECT 1 FROM menu WHERE item_name=?;", (name,)) > 0

    # manager writes
    def _require_manager(self, actor: str):
        if not self.account_manager.is_manager(actor):
            raise PermissionError("manager privileges required")

    def insert_item(self, actor: str, item: MenuItem):
        """add a menu row"""
        self._require_manager(actor)
        if is_reserved_item_name(item.name):
            raise ValueError(f"'{item.name}' is reserved and cannot name a menu item")
        self.db.execute(
            f"INSERT INTO menu({self.MENU_COLUMNS}) VALUES(?,?,?,?,?);",
            (item.name, item.type.value, item.price, item.description, item.image_url)
        )

    def delete_item(self, actor: str, name: str) -> bool:
        """remove a menu row; fails while an order still references it"""
        self._require_manager(actor)
        return self.db.execute("DELETE FROM menu WHERE item_name=?;", (name,)) > 0

    def update_item(self, actor: str, name: str, **fields) -> bool:
        """update any of name, type, price, description, image_url"""
        self._require_manager(actor)
        columns = {"name": "item_name", "type": "type", "price": "price",
                   "description": "description", "image_url": "image_url"}
        unknown = set(fields) - set(columns)
        if unknown or not fields:
            raise ValueError(f"cannot update menu fields: {sorted(unknown) or 'none given'}")
        if "name" in fields and is_reserved_item_name(fields["name"]):
            raise ValueError(f"'{fields['name']}' is reserved and cannot name a menu item")
        values = [v.value if isinstance(v, ItemType) else v for v in fields.values()]
        assignments = ", ".join(f"{columns[f]}=?" for f in fields)
        return self.db.execute(
            f"UPDATE menu SET {assignments} WHERE item_name=?;",
            (*values, name)
        ) > 0

    # printing
    def print_items(self, items: list[MenuItem]):
        for item in items:
            desc = f" - {item.description}" if item.description else ""
            self.console.print(f"\t{item.name}: {color_money(item.price)}{desc}")
        self.console.print(f"({len(items)} items)")

    def browse(self):
        """print the menu grouped by type"""
        self.console.cprint("\nthe cafe menu", None, attrs=["bold"])
        for item_type in ItemType:
            self.console.cprint(f"\n{item_type.value}:", "green", attrs=["bold"])
            self.console.print("-------------------------")
            self.print_items(self.fetch_menu(item_type))

    def search_by_name(self):
        name = self.console.read_line("\nenter item name: ")
        item = self.get_menu_item(name)
        if item is None:
            self.console.cprint("item not found, please try again.", "red"); return
        self.print_items([item])

    def search_by_category(self):
        raw = self.console.read_line(f"\nenter {self._type_choices()}: ")
        item_type = self._parse_type(raw)
        if item_type is None:
            self.console.cprint("invalid input, please try again.", "red"); return
        self.print_items(self.fetch_menu(item_type))

    # validated reads
    @staticmethod
    def _type_choices() -> str:
        names = [f"'{t.value}'" for t in ItemType]
        return ", ".join(names[:-1]) + f", or {names[-1]}"

    @staticmethod
    def _parse_type(raw: str) -> ItemType | None:
        return next((t for t in ItemType if t.value.lower() == raw.strip().lower()), None)

    def _read_new_name(self, prompt: str) -> str:
        name = self.console.read_line(prompt)
        while (not name or len(name) > MAX_ITEM_NAME_LENGTH or is_reserved_item_name(name)
               or self.item_exists(name)):
            name = self.console.read_line(
                f"name is empty, reserved, already exists, or is > {MAX_ITEM_NAME_LENGTH} characters. try again: ")
        return name

    def _read_existing_name(self, prompt: str) -> str:
        name = self.console.read_line(prompt)
        while len(name) > MAX_ITEM_NAME_LENGTH or not self.item_exists(name):
            name = self.console.read_line(
                f"name not found, or is > {MAX_ITEM_NAME_LENGTH} characters. try again: ")
        return self.get_menu_item(name).name

    def _read_type(self, prompt: str) -> ItemType:
        item_type = self._parse_type(self.console.read_line(prompt))
        while item_type is None:
            item_type = self._parse_type(self.console.read_line(
                f"type must be {self._type_choices()}. try again: "))
        return item_type

    def _read_price(self, prompt: str) -> float | None:
        """single attempt; none aborts the caller"""
        price = safe_price(self.console.read_line(prompt))
        if price is None:
            self.console.cprint("price must be a non-negative number of the form '12.34'.", "red")
        return price

    def _read_bounded(self, prompt: str, limit: int, what: str) -> str:
        value = self.console.read_line(prompt)
        while len(value) > limit:
            value = self.console.read_line(f"{what} must be at most {limit} characters. try again: ")
        return value

    # interactive manager actions
    def add_item(self, actor: str):
        name = self._read_new_name("\nenter the name of the new item: ")
        item_type = self._read_type(f"enter the item's type ({self._type_choices()}): ")
        price = self._read_price("enter the item's price (exclude '$'): ")
        if price is None:
            self.console.cprint("please re-add the item.", "yellow"); return
        description = self._read_bounded("enter the item's description: ", MAX_DESCRIPTION_LENGTH, "description")
        image_url = self._read_bounded("enter the item's image url: ", MAX_IMAGE_URL_LENGTH, "image url")
        self.insert_item(actor, MenuItem(name, item_type, price, description, image_url))
        self.console.cprint("\nitem added!", "green")

    def remove_item(self, actor: str):
        name = self._read_existing_name("\nenter the name of the item to delete: ")
        self.delete_item(actor, name)
        self.console.cprint("\nitem deleted!", "green")

    def _update_field(self, actor: str, name: str, field: str):
        if field == "name":
            value = self._read_new_name(f"enter a new name for '{name}': ")
        elif field == "type":
            value = self._read_type(f"enter a new type for '{name}' ({self._type_choices()}): ")
        elif field == "price":
            value = self._read_price(f"enter a new price for '{name}' (of the form 12.34): ")
            if value is None:
                self.console.cprint("please restart the update.", "yellow"); return
        elif field == "description":
            value = self._read_bounded(f"enter a new description for '{name}': ",
                                       MAX_DESCRIPTION_LENGTH, "description")
        else:
            value = self._read_bounded(f"enter a new image url for '{name}': ",
                                       MAX_IMAGE_URL_LENGTH, "image url")
        self.update_item(actor, name, **{field: value})
        self.console.cprint(f"\n{field.replace('_', ' ')} updated!", "green")

    def change_item(self, actor: str):
        name = self._read_existing_name("\nenter the name of the item to update: ")
        fields = ["name", "type", "price", "description", "image_url"]
        options = [
            MenuOption(i, f"update {f.replace('_', ' ')}", lambda f=f: self._update_field(actor, name, f))
            for i, f in enumerate(fields, start=1)
        ]
        MenuScreen(f"update item menu (updating '{name}')", self.console, options, repeat=False).run()

    def edit_menu(self, actor: str):
        MenuScreen("edit menu", self.console, [
            MenuOption(1, "add item", lambda: self.add_item(actor)),
            MenuOption(2, "delete item", lambda: self.remove_item(actor)),
            MenuOption(3, "update item", lambda: self.change_item(actor)),
        ], repeat=False).run()

    def show(self, actor: str):
        """menu options screen"""
        MenuScreen("menu options", self.console, [
            MenuOption(1, "browse menu", self.browse),
            MenuOption(2, "search by name", self.search_by_name),
            MenuOption(3, "search by category", self.search_by_category),
            MenuOption(4, "update menu", lambda: self.edit_menu(actor), UserType.MANAGER),
        ], is_manager=self.account_manager.is_manager(actor), repeat=False).run()

# order management
class OrderManager:
    """place orders, edit line items, keep totals equal to the sum of their items"""
    ORDER_COLUMNS = "order_id, login, paid, received_at, total"

    def __init__(self, db: DatabaseManager, console: Console,
                 account_manager: AccountManager, menu_manager: MenuManager):
        self.db = db
        self.console = console
        self.account_manager = account_manager
        self.menu_manager = menu_manager

    # queries
    def fetch_order(self, order_id: int) -> Order | None:
        row = self.db.query_one(
            f"SELECT {self.ORDER_COLUMNS} FROM orders WHERE order_id=?;",
            (order_id,)
        )
        return Order.from_row(row) if row else None

    def fetch_line_items(self, order_id: int) -> list[sqlite3.Row]:
        """line items with the price they were ordered at"""
        return self.db.query(
            """--sql
            SELECT i.item_name, i.price, i.status, i.comments, i.last_updated
            FROM item_status i
            WHERE i.order_id=?
            ORDER BY i.rowid;
            """,
            (order_id,)
        )

    def order_has_item(self, order_id: int, item_name: str) -> bool:
        return self.db.query_count(
            "SELECT 1 FROM item_status WHERE order_id=? AND item_name=?;",
            (order_id, item_name)
        ) > 0

    def recent_orders(self, login: str, limit: int = RECENT_ORDER_LIMIT) -> list[Order]:
        rows = self.db.query(
            f"SELECT {self.ORDER_COLUMNS} FROM orders WHERE login=? "
            "ORDER BY received_at DESC, order_id DESC LIMIT ?;",
            (login, limit)
        )
        return [Order.from_row(r) for r in rows]

    def orders_within_last_day(self) -> list[Order]:
        rows = self.db.query(
            f"SELECT {self.ORDER_COLUMNS} FROM orders WHERE received_at >= datetime('now', ?) "
            "ORDER BY received_at DESC, order_id DESC;",
            (RECENT_ORDER_WINDOW,)
        )
        return [Order.from_row(r) for r in rows]

    # authorization
    def can_edit(self, actor: str, order: Order) -> bool:
        """managers edit anything; customers only their own unpaid orders"""
        if self.account_manager.is_manager(actor):
            return True
        return order.login == actor and not order.paid

    def _refusal(self, actor: str, order: Order) -> str:
        if order.login != actor:
            return f"order #{order.id} belongs to another user"
        return f"order #{order.id} has already been paid and can no longer be changed"

    def _require_edit(self, actor: str, order_id: int) -> Order:
        order = self.fetch_order(order_id)
        if order is None:
            raise LookupError(f"order #{order_id} not found")
        if not self.can_edit(actor, order):
            raise PermissionError(self._refusal(actor, order))
        return order

    # order db ops
    def _recompute_total(self, order_id: int):
        """total := sum of the line item prices"""
        self.db.execute(
            """--sql
            UPDATE orders SET total = (
                SELECT ROUND(COALESCE(SUM(i.price), 0), 2)
                FROM item_status i
                WHERE i.order_id = orders.order_id
            )
            WHERE order_id=?;
            """,
            (order_id,)
        )

    def _insert_line_item(self, order_id: int, item_name: str, comment: str):
        """price is copied from the menu now; later menu edits leave it alone"""
        self.db.execute(
            """--sql
            INSERT INTO item_status(order_id, item_name, last_updated, status, comments, price)
            VALUES(?, ?, CURRENT_TIMESTAMP, ?, ?, (SELECT price FROM menu WHERE item_name=?));
            """,
            (order_id, item_name, DEFAULT_ITEM_STATUS, comment, item_name)
        )

    def create_order(self, actor: str, items: Sequence[StagedItem]) -> int:
        """write an order and its line items in one transaction"""
        if not items:
            raise ValueError("an order needs at least one item")
        if not self.account_manager.user_exists(actor):
            raise PermissionError(f"unknown user {actor!r} cannot place orders")
        order_id = self.db.next_sequence_value(ORDER_ID_SEQUENCE)
        with self.db.transaction():
            self.db.execute(
                "INSERT INTO orders(order_id, login, paid, received_at, total) "
                "VALUES(?, ?, 0, CURRENT_TIMESTAMP, 0);",
                (order_id, actor)
            )
            for item in items:
                self._insert_line_item(order_id, item.name, item.comment)
            self._recompute_total(order_id)
        return order_id

    def add_line_item(self, actor: str, order_id: int, item_name: str, comment: str = ""):
        self._require_edit(actor, order_id)
        with self.db.transaction():
            self._insert_line_item(order_id, item_name, comment)
            self._recompute_total(order_id)

    def remove_line_item(self, actor: str, order_id: int, item_name: str) -> bool:
        self._require_edit(actor, order_id)
        with self.db.transaction():
            removed = self.db.execute(
                "DELETE FROM item_status WHERE order_id=? AND item_name=?;",
                (order_id, item_name)
            )
            self._recompute_total(order_id)
        return removed > 0

    def update_comment(self, actor: str, order_id: int, item_name: str, comment: str) -> bool:
        self._require_edit(actor, order_id)
        return self.db.execute(
            "UPDATE item_status SET comments=?, last_updated=CURRENT_TIMESTAMP "
            "WHERE order_id=? AND item_name=?;",
            (comment, order_id, item_name)
        ) > 0

    def mark_paid(self, actor: str, order_id: int):
        """managers only; no way back to unpaid"""
        if not self.account_manager.is_manager(actor):
            raise PermissionError("only managers can mark orders as paid")
        self._require_edit(actor, order_id)
        self.db.execute("UPDATE orders SET paid=1 WHERE order_id=?;", (order_id,))

    def delete_order(self, actor: str, order_id: int):
        """line items first, then the order"""
        self._require_edit(actor, order_id)
        with self.db.transaction():
            self.db.execute("DELETE FROM item_status WHERE order_id=?;", (order_id,))
            self.db.execute("DELETE FROM orders WHERE order_id=?;", (order_id,))

    # printing
    def print_order(self, order: Order):
        """print single order summary"""
        paid = colored("paid", "green") if order.paid else colored("unpaid", "yellow")
        self.console.print(f"order #{order.id} ({order.login}) | {order.received_at} | {paid} | "
                           f"total {color_money(order.total)}")

    def print_orders(self, orders: list[Order], empty: str):
        if not orders:
            self.console.cprint(empty, "yellow"); return
        for order in orders:
            self.print_order(order)

    def show_order(self, order_id: int):
        """line items and stored total"""
        order = self.fetch_order(order_id)
        if order is None:
            self.console.cprint("order not found", "red"); return
        self.console.cprint(f"\norder #{order.id}:", "green", attrs=["bold"])
        items = self.fetch_line_items(order.id)
        if not items:
            self.console.print("\tno items")
        for r in items:
            comment = f" ({r['comments']})" if r["comments"] else ""
            self.console.print(f"\t{r['item_name']}: {color_money(r['price'])} | {r['status']}{comment}")
        self.console.print(f"\ttotal: {color_money(order.total)}")
        self.console.print(f"\tpaid: {'yes' if order.paid else 'no'}")

    def _print_staged(self, staged: list[StagedItem]):
        self.console.cprint("\ncurrent order:", "green", attrs=["bold"])
        for item in staged:
            comment = f" ({item.comment})" if item.comment else ""
            self.console.print(f"\t{item.name}: {color_money(item.price)}{comment}")
        self.console.print(f"\ttotal: {color_money(round(sum(i.price for i in staged), 2))}")

    # validated reads
    def _read_comment(self) -> str:
        comment = self.console.read_line("comments for this item ('none' for no comment): ")
        while len(comment) > MAX_COMMENT_LENGTH:
            comment = self.console.read_line(
                f"comments must be at most {MAX_COMMENT_LENGTH} characters. try again: ")
        return normalize_comment(comment)

    def _read_menu_item(self, prompt: str, taken: Sequence[str]) -> MenuItem | None:
        """menu item not already in `taken`; none on an exit sentinel"""
        taken = {name.lower() for name in taken}
        while True:
            name = self.console.read_line(prompt)
            if is_exit_sentinel(name):
                return None
            if name.lower() == SHOW_MENU_KEYWORD:
                self.menu_manager.browse()
                continue
            item = self.menu_manager.get_menu_item(name)
            if item is None:
                self.console.cprint("item not found, please try again.", "red")
            elif item.name.lower() in taken:
                self.console.cprint(f"{item.name} is already in this order.", "red")
            else:
                return item

    def _read_order_item(self, order_id: int, prompt: str) -> str | None:
        """name of an item on the order; none on an exit sentinel"""
        while True:
            name = self.console.read_line(prompt)
            if is_exit_sentinel(name):
                return None
            item = self.menu_manager.get_menu_item(name)
            if item is not None and self.order_has_item(order_id, item.name):
                return item.name
            self.console.cprint(f"'{name}' is not on order #{order_id}, please try again.", "red")

    # public actions
    def place_order(self, actor: str) -> int | None:
        """stage items interactively, then write the order"""
        self.menu_manager.browse()
        self.console.cprint(
            f"\nenter items one at a time ('{SHOW_MENU_KEYWORD}' shows the menu, 'done' finishes)", "cyan")
        staged: list[StagedItem] = []
        while True:
            item = self._read_menu_item("item name: ", [s.name for s in staged])
            if item is None:
                break
            staged.append(StagedItem(item.name, item.price, self._read_comment()))
            self._print_staged(staged)
        if not staged:
            self.console.cprint("no items added, order cancelled", "yellow")
            return None
        order_id = self.create_order(actor, staged)
        order = self.fetch_order(order_id)
        self.console.cprint(f"\norder #{order_id} placed! total: {color_money(order.total)}", "green")
        return order_id

    def add_item(self, actor: str, order_id: int):
        taken = [r["item_name"] for r in self.fetch_line_items(order_id)]
        item = self._read_menu_item(
            f"item to add ('{SHOW_MENU_KEYWORD}' shows the menu, 'q' cancels): ", taken)
        if item is None:
            return
        self.add_line_item(actor, order_id, item.name, self._read_comment())
        self.console.cprint(f"added {item.name}, new total {color_money(self.fetch_order(order_id).total)}", "green")

    def remove_item(self, actor: str, order_id: int):
        name = self._read_order_item(order_id, "item to delete ('q' cancels): ")
        if name is None:
            return
        self.remove_line_item(actor, order_id, name)
        self.console.cprint(f"removed {name}, new total {color_money(self.fetch_order(order_id).total)}", "green")

    def change_comment(self, actor: str, order_id: int):
        name = self._read_order_item(order_id, "item to comment on ('q' cancels): ")
        if name is None:
            return
        self.update_comment(actor, order_id, name, self._read_comment())
        self.console.cprint(f"comments for {name} updated", "green")

    def pay_order(self, actor: str, order_id: int):
        self.mark_paid(actor, order_id)
        self.console.cprint(f"order #{order_id} marked as paid", "green")

    def _select_order(self, actor: str, verb: str) -> Order | None:
        """show recent orders, read an id, check the actor may touch it"""
        self.console.cprint(f"\nyour {RECENT_ORDER_LIMIT} most recent orders:", attrs=["bold"])
        self.print_orders(self.recent_orders(actor), "no orders found")
        while True:
            raw = self.console.read_line(f"\nenter the order id to {verb} ('q' to go back): ")
            if is_exit_sentinel(raw):
                return None
            oid = safe_int(raw, minimum=1, maximum=SQLITE_MAX_INTEGER)
            order = self.fetch_order(oid) if oid is not None else None
            if order is not None:
                break
            self.console.cprint("order not found, please try again.", "red")
        if not self.can_edit(actor, order):
            self.console.cprint(self._refusal(actor, order), "red")
            return None
        return order

    def modify_order(self, actor: str):
        order = self._select_order(actor, "modify")
        if order is None:
            return
        oid = order.id
        MenuScreen(f"edit order #{oid}", self.console, [
            MenuOption(1, "view order", lambda: self.show_order(oid)),
            MenuOption(2, "add item", lambda: self.add_item(actor, oid)),
            MenuOption(3, "delete item", lambda: self.remove_item(actor, oid)),
            MenuOption(4, "update item comments", lambda: self.change_comment(actor, oid)),
            MenuOption(5, "mark as paid", lambda: self.pay_order(actor, oid), UserType.MANAGER),
        ], is_manager=self.account_manager.is_manager(actor), exit_label="done editing").run()

    def remove_order(self, actor: str):
        order = self._select_order(actor, "delete")
        if order is None:
            return
        ans = self.console.read_line(colored(f"delete order #{order.id} and all its items? (y/N): ", "red"))
        if not parse_boolean_input(ans):
            self.console.cprint("cancelled", "yellow"); return
        self.delete_order(actor, order.id)
        self.console.cprint(f"order #{order.id} deleted", "green")

    def show_last_day(self):
        self.console.cprint("\norders from the last 24 hours:", attrs=["bold"])
        self.print_orders(self.orders_within_last_day(), "no orders in the last 24 hours")

    def update_order(self, actor: str):
        """order history / edit screen"""
        MenuScreen("update an order", self.console, [
            MenuOption(1, "modify an order", lambda: self.modify_order(actor)),
            MenuOption(2, "delete an order", lambda: self.remove_order(actor)),
            MenuOption(3, "view all orders from the last 24 hours", self.show_last_day, UserType.MANAGER),
        ], is_manager=self.account_manager.is_manager(actor), repeat=False).run()

# menu infrastructure
class MenuOption:
    """bind a numbered choice to a function"""
    def __init__(self, choice: int, label: str, function: Callable[[], object],
                 user_type: UserType | None = None):
        self.choice = choice
        self.label = label
        self._fn = function
        self.user_type = user_type

    def execute(self):
        return self._fn()

class MenuScreen:
    """numbered menu: render, read a choice, dispatch; failures return to the menu"""
    def __init__(self, title: str, console: Console, options: list[MenuOption],
                 is_manager: bool = False, exit_label: str = "return to main menu",
                 repeat: bool = True):
        self.title = title
        self.console = console
        self.options = options
        self.is_manager = is_manager
        self.exit_label = exit_label
        self.repeat = repeat

    def visible_options(self) -> list[MenuOption]:
        """hide manager options from everyone else"""
        return [o for o in self.options
                if o.user_type is not UserType.MANAGER or self.is_manager]

    def render(self):
        self.console.cprint(f"\n{self.title.upper()}", "green", attrs=["bold"])
        self.console.print("---------")
        for option in self.visible_options():
            self.console.print(f"{colored(str(option.choice), 'blue')}. {option.label}")
        self.console.print(".........................")
        self.console.print(f"{colored(str(BACK_CHOICE), 'blue')}. {self.exit_label}")

    def run_once(self) -> bool:
        """one render / choice / dispatch; false once the exit choice is made"""
        self.render()
        choice = self.console.read_choice()
        if choice == BACK_CHOICE:
            return False
        option = next((o for o in self.visible_options() if o.choice == choice), None)
        if option is None:
            self.console.cprint("unrecognized choice!", "red")
            return True
        try:
            option.execute()
        except (sqlite3.Error, PermissionError, LookupError) as e:
            self.console.error(f"error: {e}")
        return True

    def run(self):
        if not self.repeat:
            self.run_once()
            return
        while self.run_once():
            pass

# application wiring
class Application:
    """bootstrap managers & run the main menu"""
    def __init__(self, db: DatabaseManager, console: Console):
        self.db = db
        self.console = console
        self.account_manager = AccountManager(db, console)
        self.menu_manager = MenuManager(db, console, self.account_manager)
        self.order_manager = OrderManager(db, console, self.account_manager, self.menu_manager)

    def _login(self):
        login = self.account_manager.login()
        if login is not None:
            self.user_menu(login)

    def user_menu(self, login: str):
        """menu for a logged in user until they log out"""
        MenuScreen("main menu", self.console, [
            MenuOption(1, "go to menu", lambda: self.menu_manager.show(login)),
            MenuOption(2, "update profile", lambda: self.account_manager.update_profile(login)),
            MenuOption(3, "place an order", lambda: self.order_manager.place_order(login)),
            MenuOption(4, "update an order", lambda: self.order_manager.update_order(login)),
        ], exit_label="log out").run()
        self.account_manager.logout()

    def run(self):
        """main loop; end of input counts as exit"""
        screen = MenuScreen("main menu", self.console, [
            MenuOption(1, "create user", self.account_manager.register),
            MenuOption(2, "log in", self._login),
        ], exit_label="< exit")
        try:
            screen.run()
        except EOFError:
            self.console.print()

def database_path(dbname: str) -> str:
    """sqlite file for a database name"""
    if dbname == ":memory:" or dbname.endswith(".db"):
        return dbname
    return f"{dbname}.db"

def greeting(console: Console):
    console.cprint("""
*******************************************************
              cafe: user interface ☕
*******************************************************
""", "green", attrs=["bold"])

# entry point
def main(argv: Sequence[str] | None = None, console: Console | None = None) -> int:
    """entrypoint: cafe <dbname> <port> <user>"""
    args = list(sys.argv[1:] if argv is None else argv)
    console = Console() if console is None else console
    if len(args) != 3:
        console.error("usage: cafe <dbname> <port> <user>")
        return 1
    dbname, port, user = args
    greeting(console)
    console.print("connecting to database...")
    if safe_int(port, minimum=1) is None:
        console.error(f"error - unable to connect to database: invalid port {port!r}")
        return 1
    path = database_path(dbname)
    try:
        db = DatabaseManager(path)
    except sqlite3.Error as e:
        console.error(f"error - unable to connect to database: {e}")
        console.print("make sure the database file location exists and is writable")
        return 1
    console.print(f"connection url: sqlite:///{path} (port {port}, user {user})")
    console.cprint("done", "green")
    try:
        Application(db, console).run()
    finally:
        console.print("\ndisconnecting from the database... ")
        db.close()
        console.cprint("done!\n\nbye!", "green")
    return 0

# signal handler
class SignalHandler:
    """ctrl+c handler to nag user politely"""
    @staticmethod
    def sigint(_, __):
        """handle ctrl+c"""
        cprint("\nnext time, use 9 to exit!", "yellow")
        sys.exit(0)

def cli():
    """console script wrapper"""
    signal.signal(signal.SIGINT, SignalHandler.sigint)
    sys.exit(main())

if __name__ == "__main__":
    cli()
