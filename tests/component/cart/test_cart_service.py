"""
Cart Service Component Tests

Cart mutations are checked against the catalogue (MockProductRepository)
and stock (MockInventoryRepository) through the real services.
"""
from datetime import datetime, timedelta, timezone

import pytest

from microservices.cart_service.models import CartItem, GuestCartItem
from tests.fixtures import make_product

pytestmark = [pytest.mark.component, pytest.mark.asyncio]

USER = "usr_1"


@pytest.fixture
def hoodie(product_repo, inventory_repo):
    """Active product with one M/Black variant and 10 in stock"""
    product = product_repo.set_product(make_product("prod_1", price=50.0))
    inventory_repo.set_stock_level("prod_1", product.variants[0].id, quantity=10)
    return product


def _cart_item(quantity: int, price: float = 50.0, product_id: str = "prod_1") -> CartItem:
    return CartItem(
        id=f"cart_{product_id}",
        user_id=USER,
        product_id=product_id,
        size="M",
        color="Black",
        quantity=quantity,
        price=price,
    )


class TestAddToCart:

    async def test_adds_new_item_at_current_price(self, cart_service, hoodie):
        result = await cart_service.add_to_cart(USER, "prod_1", 1, "M", "Black")

        assert result.success is True
        assert result.data.quantity == 1
        assert result.data.price == 50.0
        assert result.data.id.startswith("cart_")

    async def test_merges_with_existing_line(self, cart_service, cart_repo, hoodie):
        cart_repo.set_item(_cart_item(2))

        result = await cart_service.add_to_cart(USER, "prod_1", 3, "M", "Black")

        assert result.data.quantity == 5
        assert result.data.id == "cart_prod_1"

    async def test_rejects_more_than_99(self, cart_service, cart_repo, inventory_repo, hoodie):
        inventory_repo.set_stock_level("prod_1", hoodie.variants[0].id, quantity=500)
        cart_repo.set_item(_cart_item(98))

        result = await cart_service.add_to_cart(USER, "prod_1", 2, "M", "Black")

        assert result.error == "Cannot add more than 99 of an item"

    async def test_inactive_product_is_not_found(self, cart_service, product_repo):
        product_repo.set_product(make_product("prod_off", is_active=False))

        result = await cart_service.add_to_cart(USER, "prod_off", 1, "M", "Black")

        assert result.error == "Product not found"

    async def test_unknown_variant(self, cart_service, hoodie):
        result = await cart_service.add_to_cart(USER, "prod_1", 1, "XL", "Red")

        assert result.error == "Selected size and color are not available"

    async def test_new_line_beyond_stock(self, cart_service, hoodie):
        result = await cart_service.add_to_cart(USER, "prod_1", 11, "M", "Black")

        assert result.error == "Insufficient inventory"

    async def test_existing_line_beyond_stock(self, cart_service, cart_repo, hoodie):
        cart_repo.set_item(_cart_item(8))

        result = await cart_service.add_to_cart(USER, "prod_1", 3, "M", "Black")

        assert result.error == "Cannot add more items than available in inventory"


class TestUpdateAndRemove:

    async def test_update_sets_quantity_and_returns_cart(self, cart_service, cart_repo, hoodie):
        cart_repo.set_item(_cart_item(2))

        result = await cart_service.update_cart_item(USER, "prod_1", "M", "Black", 4)

        assert result.data.total_items == 4
        assert result.data.total_price == 200.0

    async def test_update_to_zero_removes(self, cart_service, cart_repo, hoodie):
        cart_repo.set_item(_cart_item(2))

        result = await cart_service.update_cart_item(USER, "prod_1", "M", "Black", 0)

        assert result.data.items == []
        cart_repo.assert_called("delete_item")

    async def test_update_missing_item(self, cart_service, hoodie):
        result = await cart_service.update_cart_item(USER, "prod_1", "M", "Black", 2)

        assert result.error == "Item not found in cart"

    async def test_remove_missing_item(self, cart_service):
        result = await cart_service.remove_from_cart(USER, "prod_1", "M", "Black")

        assert result.is_not_found

    async def test_clear_and_count(self, cart_service, cart_repo, hoodie):
        cart_repo.set_item(_cart_item(3))
        assert (await cart_service.get_cart_item_count(USER)).data == {"count": 3}

        result = await cart_service.clear_cart(USER)

        assert result.data.items == []
        assert (await cart_service.get_cart_item_count(USER)).data == {"count": 0}


class TestValidateCart:

    async def test_valid_cart(self, cart_service, cart_repo, hoodie):
        cart_repo.set_item(_cart_item(2))

        result = await cart_service.validate_cart(USER)

        assert result.data.valid is True
        assert result.data.issues == []

    async def test_reports_price_change(self, cart_service, cart_repo, hoodie):
        cart_repo.set_item(_cart_item(1, price=40.0))

        result = await cart_service.validate_cart(USER)

        assert result.data.valid is False
        assert result.data.issues[0].message == "Price has changed from 40.00 to 50.00"

    async def test_reports_short_stock(self, cart_service, cart_repo, inventory_repo, hoodie):
        inventory_repo.set_stock_level("prod_1", hoodie.variants[0].id, quantity=2)
        cart_repo.set_item(_cart_item(5))

        result = await cart_service.validate_cart(USER)

        assert result.data.issues[0].message == "Only 2 items available"

    async def test_reports_removed_product(self, cart_service, cart_repo):
        cart_repo.set_item(_cart_item(1, product_id="prod_gone"))

        result = await cart_service.validate_cart(USER)

        assert result.data.issues[0].message == "Product is no longer available"

    async def test_reports_inactive_product(self, cart_service, cart_repo, product_repo):
        product_repo.set_product(make_product("prod_1", is_active=False))
        cart_repo.set_item(_cart_item(1))

        result = await cart_service.validate_cart(USER)

        assert result.data.issues[0].message == "Product is no longer active"


class TestMergeGuestCart:

    async def test_merges_addable_items_and_reports_the_rest(self, cart_service, hoodie):
        result = await cart_service.merge_guest_cart(USER, [
            GuestCartItem(product_id="prod_1", size="M", color="Black", quantity=2),
            GuestCartItem(product_id="prod_missing", size="M", color="Black", quantity=1),
        ])

        assert result.data["cart"].total_items == 2
        assert result.data["skipped"] == [{"productId": "prod_missing", "reason": "Product not found"}]


class TestSyncStatus:

    async def test_latest_item_change(self, cart_service, cart_repo):
        earlier = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        later = earlier + timedelta(minutes=3)
        cart_repo.set_item(_cart_item(2).model_copy(update={"added_at": earlier}))
        cart_repo.set_item(_cart_item(1, product_id="prod_2").model_copy(
            update={"added_at": earlier, "updated_at": later}
        ))

        status = (await cart_service.get_sync_status(USER)).data

        assert status.last_modified == later
        assert status.total_items == 3

    async def test_empty_cart(self, cart_service):
        status = (await cart_service.get_sync_status(USER)).data

        assert status.last_modified is None
        assert status.total_items == 0
