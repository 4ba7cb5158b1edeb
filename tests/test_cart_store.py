import pytest

from bookhaven.exceptions import AlreadyInCart, InvalidPricingInput
from bookhaven.schemas.catalog_schemas import CatalogItem
from bookhaven.services.cart_store import CartRegistry, CartStore


@pytest.fixture
def cart():
    return CartStore()


def test_add_defaults_to_one_week(cart, book_a):
    line = cart.add_item(book_a)

    assert line.rental_days == 7
    assert len(cart) == 1
    assert cart.last_notice["popup"]["message"] == "The Left Hand of Darkness added to cart"


def test_duplicate_add_is_a_notice_not_a_merge(cart, book_a):
    cart.add_item(book_a, 14)
    result = cart.add_item(book_a, 30)

    assert isinstance(result, AlreadyInCart)
    assert result.item_id == "vol-a"
    assert len(cart) == 1
    assert cart.snapshot().lines[0].rental_days == 14
    assert cart.last_notice["popup"]["message"] == "This book is already in your cart"


def test_remove_missing_item_is_a_noop(cart, book_a):
    cart.add_item(book_a)
    before = cart.snapshot()

    cart.remove_item("no-such-book")

    after = cart.snapshot()
    assert after.total_line_count == before.total_line_count
    assert after.total_amount == before.total_amount


def test_update_rental_days(cart, book_a):
    cart.add_item(book_a)
    cart.update_rental_days("vol-a", 21)

    assert cart.snapshot().lines[0].rental_days == 21
    assert cart.snapshot().total_amount == 63


def test_update_missing_item_is_a_noop(cart, book_a):
    cart.add_item(book_a)
    assert cart.update_rental_days("missing", 14) is None
    assert cart.snapshot().lines[0].rental_days == 7


@pytest.mark.parametrize("days", [0, -7, False, True])
def test_update_with_invalid_days_fails_and_keeps_line(cart, book_a, days):
    cart.add_item(book_a, 14)

    with pytest.raises(InvalidPricingInput):
        cart.update_rental_days("vol-a", days)

    assert cart.snapshot().lines[0].rental_days == 14


def test_days_outside_tiers_are_accepted(cart, book_a):
    cart.add_item(book_a)
    cart.update_rental_days("vol-a", 10)
    assert cart.snapshot().total_amount == 30


def test_snapshot_totals_two_lines(cart, book_a, book_b):
    cart.add_item(book_a, 7)
    cart.add_item(book_b, 14)

    snapshot = cart.snapshot()
    assert snapshot.total_line_count == 2
    assert snapshot.total_amount == 41


def test_snapshot_is_frozen_and_never_stale(cart, book_a, book_b):
    cart.add_item(book_a)
    first = cart.snapshot()

    cart.add_item(book_b, 14)

    assert first.total_line_count == 1
    assert cart.snapshot().total_line_count == 2
    with pytest.raises(AttributeError):
        first.total_amount = 0


def test_insertion_order_survives_removal(cart, book_a, book_b):
    book_c = CatalogItem(id="vol-c", title="Kindred", authors=["Octavia E. Butler"], price=12)
    cart.add_item(book_a)
    cart.add_item(book_b)
    cart.add_item(book_c)
    cart.update_rental_days("vol-a", 30)

    cart.remove_item("vol-b")

    assert [line.item.id for line in cart.snapshot().lines] == ["vol-a", "vol-c"]


def test_add_update_remove_leaves_empty_cart(cart):
    book = CatalogItem(id="A", title="A", price=15)
    cart.add_item(book)
    cart.update_rental_days("A", 30)
    cart.remove_item("A")

    snapshot = cart.snapshot()
    assert snapshot.lines == ()
    assert snapshot.total_amount == 0


def test_clear(cart, book_a, book_b):
    cart.add_item(book_a)
    cart.add_item(book_b)
    cart.clear()
    assert len(cart) == 0


def test_registry_creates_and_discards_per_session(book_a):
    registry = CartRegistry()
    registry.get("s1").add_item(book_a)

    assert len(registry.get("s1")) == 1
    assert len(registry.get("s2")) == 0

    registry.discard("s1")
    assert "s1" not in registry
    assert len(registry.get("s1")) == 0
