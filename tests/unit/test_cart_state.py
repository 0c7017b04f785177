"""
Cart Reducer and Totals Unit Tests
"""
import pytest

from microservices.cart_service.cart_service import calculate_totals
from microservices.cart_service.cart_state import (
    CartAction,
    CartActionType,
    CartState,
    cart_reducer,
)
from microservices.cart_service.models import CartItem

pytestmark = [pytest.mark.unit]


def _item(item_id="cart_1", product_id="prod_1", size="M", color="Black", quantity=1, price=10.0):
    return CartItem(
        id=item_id, user_id="usr_1", product_id=product_id,
        size=size, color=color, quantity=quantity, price=price,
    )


class TestCalculateTotals:

    def test_sums_quantity_and_price(self):
        assert calculate_totals([_item(quantity=2), _item(quantity=1, price=5.5)]) == (3, 25.5)

    def test_empty(self):
        assert calculate_totals([]) == (0, 0.0)


class TestCartReducer:

    def test_set_cart_recomputes_totals_and_stops_loading(self):
        state = CartState(loading=True)

        state = cart_reducer(state, CartAction(CartActionType.SET_CART, [_item(quantity=3)]))

        assert (state.total_items, state.total_price, state.loading) == (3, 30.0, False)

    def test_add_merges_same_variant(self):
        state = cart_reducer(CartState(), CartAction(CartActionType.ADD_ITEM, _item(quantity=1)))

        state = cart_reducer(state, CartAction(CartActionType.ADD_ITEM, _item(item_id="cart_x", quantity=2)))

        assert len(state.items) == 1
        assert state.items[0].quantity == 3

    def test_add_keeps_other_variants_separate(self):
        state = cart_reducer(CartState(), CartAction(CartActionType.ADD_ITEM, _item()))

        state = cart_reducer(state, CartAction(CartActionType.ADD_ITEM, _item(item_id="cart_2", size="L")))

        assert len(state.items) == 2
        assert state.total_items == 2

    def test_update_and_remove(self):
        state = cart_reducer(CartState(), CartAction(CartActionType.SET_CART, [_item(), _item("cart_2", "prod_2")]))

        state = cart_reducer(state, CartAction(CartActionType.UPDATE_ITEM, {"id": "cart_1", "quantity": 5}))
        assert state.total_items == 6

        state = cart_reducer(state, CartAction(CartActionType.REMOVE_ITEM, "cart_1"))
        assert [i.id for i in state.items] == ["cart_2"]
        assert state.total_price == 10.0

    def test_clear(self):
        state = cart_reducer(CartState(), CartAction(CartActionType.SET_CART, [_item()]))

        state = cart_reducer(state, CartAction(CartActionType.CLEAR_CART))

        assert state == CartState()

    def test_input_state_is_not_modified(self):
        original = CartState()

        cart_reducer(original, CartAction(CartActionType.ADD_ITEM, _item()))

        assert original.items == []
