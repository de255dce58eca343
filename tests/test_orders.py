import sqlite3

import pytest

from cafe import StagedItem
from conftest import count, line_item_sum


def place(app, login="alice", items=(("Coffee", 2.50), ("Soup", 4.00))):
    return app.order_manager.create_order(login, [StagedItem(n, p) for n, p in items])


def test_total_follows_deletes_and_adds(make_app):
    app = make_app()
    om = app.order_manager
    oid = place(app)
    assert om.fetch_order(oid).total == 6.50

    om.remove_line_item("alice", oid, "Coffee")
    assert om.fetch_order(oid).total == 4.00

    om.add_line_item("alice", oid, "Tea")
    assert om.fetch_order(oid).total == 5.75


def test_total_equals_item_sum_after_every_mutation(db, make_app):
    om = make_app().order_manager
    oid = place(make_app(), items=[("Tea", 1.75)])
    steps = [
        ("add", "Coffee"), ("add", "Brownie"), ("remove", "Tea"),
        ("add", "Soup"), ("remove", "Coffee"), ("add", "Tea"), ("remove", "Brownie"),
    ]
    for action, name in steps:
        if action == "add":
            om.add_line_item("boss", oid, name)
        else:
            om.remove_line_item("boss", oid, name)
        assert om.fetch_order(oid).total == line_item_sum(db, oid)


def test_menu_price_change_keeps_order_totals(db, make_app):
    oid = place(make_app())
    paid = place(make_app(), login="bob")
    make_app().order_manager.mark_paid("boss", paid)

    app = make_app("4", "3", "Coffee", "3", "3.00")
    app.menu_manager.show("boss")
    assert app.menu_manager.get_menu_item("Coffee").price == 3.00

    om = app.order_manager
    for order_id in (oid, paid):
        assert om.fetch_order(order_id).total == 6.50
        assert om.fetch_order(order_id).total == line_item_sum(db, order_id)

    om.add_line_item("alice", oid, "Tea")
    assert om.fetch_order(oid).total == 8.25
    assert om.fetch_order(oid).total == line_item_sum(db, oid)
    assert om.fetch_order(paid).total == 6.50


def test_new_line_item_uses_current_menu_price(db, make_app):
    oid = place(make_app(), items=[("Soup", 4.00)])
    db.execute("UPDATE menu SET price=3.00 WHERE item_name='Coffee';")
    om = make_app().order_manager
    om.add_line_item("alice", oid, "Coffee")
    prices = {r["item_name"]: r["price"] for r in om.fetch_line_items(oid)}
    assert prices == {"Soup": 4.00, "Coffee": 3.00}
    assert om.fetch_order(oid).total == 7.00


def test_unknown_user_cannot_place_orders(db, make_app):
    with pytest.raises(PermissionError):
        place(make_app(), login="ghost")
    assert db.query_count("SELECT 1 FROM orders;") == 0


def test_order_ids_come_from_the_sequence(make_app):
    app = make_app()
    first = place(app)
    second = place(app, login="bob")
    assert second > first


def test_failed_order_leaves_no_rows(db, make_app):
    app = make_app()
    with pytest.raises(sqlite3.IntegrityError):
        place(app, items=[("Coffee", 2.50), ("Ghost", 1.00)])
    with pytest.raises(sqlite3.IntegrityError):
        place(app, items=[("Coffee", 2.50), ("coffee", 2.50)])
    assert db.query_count("SELECT 1 FROM orders;") == 0
    assert db.query_count("SELECT 1 FROM item_status;") == 0


def test_empty_order_is_refused(make_app):
    with pytest.raises(ValueError):
        make_app().order_manager.create_order("alice", [])


def test_place_order_interactive(db, make_app):
    app = make_app(
        "coffee", "extra hot",
        "Coffee",
        "nonexistent",
        "menu",
        "Soup", "None",
        "Q",
    )
    oid = app.order_manager.place_order("alice")

    order = app.order_manager.fetch_order(oid)
    assert order.login == "alice"
    assert order.total == 6.50
    assert not order.paid
    items = {r["item_name"]: r for r in app.order_manager.fetch_line_items(oid)}
    assert set(items) == {"Coffee", "Soup"}
    assert items["Coffee"]["comments"] == "extra hot"
    assert items["Soup"]["comments"] == ""
    assert items["Soup"]["status"] == "Hasn't started"
    out = app.console.output
    assert "already in this order" in out
    assert "item not found" in out
    assert "$6.50" in out


def test_place_order_prints_running_total(make_app):
    app = make_app("Tea", "none", "Brownie", "none", "done")
    app.order_manager.place_order("alice")
    out = app.console.output
    assert "total: $1.75" in out
    assert "total: $4.50" in out


def test_place_order_with_no_items_writes_nothing(db, make_app):
    app = make_app("DONE")
    assert app.order_manager.place_order("alice") is None
    assert db.query_count("SELECT 1 FROM orders;") == 0
    assert db.query_count("SELECT 1 FROM item_status;") == 0
    assert "order cancelled" in app.console.output


def test_long_comment_is_asked_again(make_app):
    app = make_app("Tea", "x" * 131, "ok", "quit")
    oid = app.order_manager.place_order("alice")
    assert app.order_manager.fetch_line_items(oid)[0]["comments"] == "ok"


def test_duplicate_line_item_rejected(db, make_app):
    om = make_app().order_manager
    oid = place(make_app())
    with pytest.raises(sqlite3.IntegrityError):
        om.add_line_item("alice", oid, "Coffee")
    assert count(db, "item_status", oid) == 2
    assert om.fetch_order(oid).total == 6.50

    app = make_app("coffee", "q")
    app.order_manager.add_item("alice", oid)
    assert "already in this order" in app.console.output
    assert count(db, "item_status", oid) == 2


def test_other_customer_is_refused(db, make_app):
    om = make_app().order_manager
    oid = place(make_app())
    for attempt in (
        lambda: om.add_line_item("bob", oid, "Tea"),
        lambda: om.remove_line_item("bob", oid, "Coffee"),
        lambda: om.update_comment("bob", oid, "Coffee", "mine now"),
        lambda: om.delete_order("bob", oid),
    ):
        with pytest.raises(PermissionError):
            attempt()
    assert count(db, "item_status", oid) == 2
    assert om.fetch_order(oid).total == 6.50

    app = make_app(str(oid))
    app.order_manager.modify_order("bob")
    assert "belongs to another user" in app.console.output
    assert "EDIT ORDER" not in app.console.output

    app = make_app(str(oid))
    app.order_manager.remove_order("bob")
    assert "belongs to another user" in app.console.output
    assert count(db, "orders", oid) == 1


def test_paid_order_locked_for_owner_not_manager(make_app):
    om = make_app().order_manager
    oid = place(make_app())
    om.mark_paid("boss", oid)

    order = om.fetch_order(oid)
    assert order.paid
    assert not om.can_edit("alice", order)
    assert om.can_edit("boss", order)
    with pytest.raises(PermissionError):
        om.add_line_item("alice", oid, "Tea")

    om.add_line_item("boss", oid, "Tea")
    assert om.fetch_order(oid).total == 8.25


def test_mark_paid_is_idempotent_and_manager_only(make_app):
    om = make_app().order_manager
    oid = place(make_app())
    with pytest.raises(PermissionError):
        om.mark_paid("alice", oid)
    om.mark_paid("boss", oid)
    om.mark_paid("boss", oid)
    assert om.fetch_order(oid).paid


def test_delete_order_removes_items_then_order(db, make_app):
    om = make_app().order_manager
    oid = place(make_app())
    om.delete_order("alice", oid)
    assert count(db, "item_status", oid) == 0
    assert count(db, "orders", oid) == 0


def test_delete_order_needs_confirmation(db, make_app):
    oid = place(make_app())

    app = make_app(str(oid), "n")
    app.order_manager.remove_order("alice")
    assert "cancelled" in app.console.output
    assert count(db, "orders", oid) == 1

    app = make_app(str(oid), "yes")
    app.order_manager.remove_order("alice")
    assert count(db, "orders", oid) == 0
    assert count(db, "item_status", oid) == 0


def test_recent_orders_newest_five(make_app):
    app = make_app()
    ids = [place(app, items=[("Tea", 1.75)]) for _ in range(7)]
    place(app, login="bob")
    recent = app.order_manager.recent_orders("alice")
    assert [o.id for o in recent] == list(reversed(ids))[:5]


def test_orders_within_last_day(db, make_app):
    app = make_app()
    old = place(app)
    new = place(app, login="bob")
    db.execute("UPDATE orders SET received_at=datetime('now', '-2 days') WHERE order_id=?;", (old,))
    assert [o.id for o in app.order_manager.orders_within_last_day()] == [new]


def test_last_day_view_is_manager_only(make_app):
    place(make_app())

    app = make_app("3")
    app.order_manager.update_order("alice")
    assert "unrecognized choice!" in app.console.output

    app = make_app("3")
    app.order_manager.update_order("boss")
    assert "(alice)" in app.console.output


def test_customer_edit_session(db, make_app):
    oid = place(make_app())
    app = make_app(
        str(oid),
        "2", "Tea", "none",
        "3", "Coffee",
        "4", "soup", "no onions",
        "1",
        "5",
        "9",
    )
    app.order_manager.modify_order("alice")

    om = app.order_manager
    assert om.fetch_order(oid).total == 5.75
    items = {r["item_name"]: r["comments"] for r in om.fetch_line_items(oid)}
    assert items == {"Soup": "no onions", "Tea": ""}
    out = app.console.output
    assert "unrecognized choice!" in out
    assert "mark as paid" not in out
    assert "total: $5.75" in out


def test_manager_edit_session_marks_paid(make_app):
    oid = place(make_app())
    app = make_app(str(oid), "5", "5", "9")
    app.order_manager.modify_order("boss")
    assert "mark as paid" in app.console.output
    assert app.order_manager.fetch_order(oid).paid


def test_delete_item_not_on_order_asks_again(make_app):
    oid = place(make_app())
    app = make_app("Tea", "q")
    app.order_manager.remove_item("alice", oid)
    assert "is not on order" in app.console.output
    assert app.order_manager.fetch_order(oid).total == 6.50


def test_unknown_order_id_asks_again(make_app):
    app = make_app("999", "abc", "q")
    assert app.order_manager._select_order("alice", "modify") is None
    assert app.console.output.count("order not found") == 2


def test_out_of_range_order_id_asks_again(make_app):
    oid = place(make_app())
    app = make_app("99999999999999999999999", str(2**63), "-1", str(oid))
    order = app.order_manager._select_order("alice", "modify")
    assert order.id == oid
    assert app.console.output.count("order not found") == 3


def test_out_of_range_order_id_in_session(make_app):
    app = make_app("1", "99999999999999999999999", "q", "9")
    app.order_manager.update_order("alice")
    assert "order not found" in app.console.output
