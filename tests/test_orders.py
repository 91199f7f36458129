"""
Unit tests for the order pipeline (base orders + stacked services).
"""
from decimal import Decimal
from itertools import permutations

import pytest

from order_system.domain.orders import (
    DEFAULT_GREETING,
    BaseOrder,
    DecoratedOrder,
    ServiceKind,
    apply_services,
    create_base_order,
    decorate,
    with_express_shipping,
    with_gift_wrap,
    with_greeting_card,
)
from order_system.domain.value_objects import Currency, Money
from order_system.exceptions import InvalidArgument, OrderSystemError


class TestBaseOrder:
    """Test suite for BaseOrder."""

    @pytest.mark.unit
    def test_total_and_description(self) -> None:
        order = create_base_order("Book", "25.50")
        assert order.compute_total() == Money.of("25.50")
        assert order.describe() == "Book"
        assert order.base is order
        assert order.services() == []

    @pytest.mark.unit
    def test_zero_price_is_allowed(self) -> None:
        assert create_base_order("Free sample", 0).compute_total() == Money.zero()

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_name_rejected(self, name) -> None:
        with pytest.raises(InvalidArgument, match="Product name cannot be null or empty"):
            create_base_order(name, "10.00")

    @pytest.mark.unit
    @pytest.mark.parametrize("price", [None, "-0.01", -5])
    def test_missing_or_negative_price_rejected(self, price) -> None:
        with pytest.raises(InvalidArgument, match="Base price cannot be null or negative"):
            create_base_order("Book", price)

    @pytest.mark.unit
    def test_unparseable_price_rejected(self) -> None:
        with pytest.raises(InvalidArgument):
            create_base_order("Book", "cheap")

    @pytest.mark.unit
    @pytest.mark.parametrize("price", ["1e27", Decimal("1e30")])
    def test_out_of_range_price_rejected(self, price) -> None:
        with pytest.raises(InvalidArgument, match="Invalid base price"):
            create_base_order("Yacht", price)

    @pytest.mark.unit
    def test_invalid_argument_is_a_value_error(self) -> None:
        with pytest.raises(ValueError) as exc_info:
            create_base_order("", "1.00")
        assert isinstance(exc_info.value, OrderSystemError)
        assert exc_info.value.error_code == "invalid_argument"

    @pytest.mark.unit
    def test_keeps_price_currency(self) -> None:
        order = create_base_order("Book", Money.of("20.00", Currency.USD))
        assert with_gift_wrap(order).compute_total() == Money.of("25.00", Currency.USD)


class TestDecoratedOrder:
    """Test suite for stacked add-on services."""

    @pytest.mark.unit
    def test_gift_wrap(self) -> None:
        order = with_gift_wrap(create_base_order("Book", "25.50"))
        assert order.compute_total() == Money.of("30.50")
        assert order.describe() == "Book + Gift Wrap"

    @pytest.mark.unit
    def test_each_service_alone(self) -> None:
        assert with_express_shipping(create_base_order("Keyboard", "79.99")).compute_total() == Money.of("89.99")
        assert with_greeting_card(create_base_order("Flowers", "45.00")).compute_total() == Money.of("47.00")

    @pytest.mark.unit
    def test_all_services(self) -> None:
        order = with_greeting_card(with_express_shipping(with_gift_wrap(create_base_order("Book", "25.50"))))
        assert order.compute_total() == Money.of("42.50")
        assert order.describe() == "Book + Gift Wrap + Express Shipping + Greeting Card"

    @pytest.mark.unit
    @pytest.mark.parametrize("kinds", list(permutations(list(ServiceKind))))
    def test_total_independent_of_application_order(self, kinds) -> None:
        """Totals commute, descriptions follow application order."""
        order = apply_services(create_base_order("Book", "25.50"), kinds)

        assert order.compute_total() == Money.of("42.50")
        assert order.describe() == " + ".join(["Book"] + [k.fragment for k in kinds])
        assert order.services() == list(kinds)

    @pytest.mark.unit
    def test_same_service_stacks(self) -> None:
        order = apply_services(create_base_order("Vase", "10.00"), ["gift_wrap", "gift_wrap"])
        assert order.compute_total() == Money.of("20.00")
        assert order.describe() == "Vase + Gift Wrap + Gift Wrap"

    @pytest.mark.unit
    def test_decorating_does_not_change_inner(self) -> None:
        base = create_base_order("Book", "25.50")
        wrapped = with_gift_wrap(base)

        assert base.compute_total() == Money.of("25.50")
        assert wrapped.inner is base
        assert wrapped.base is base
        assert wrapped.surcharge == Money.of("5.00")

    @pytest.mark.unit
    def test_deep_chain(self) -> None:
        """Long chains are walked without recursion."""
        order = create_base_order("Box", "1.00")
        for _ in range(2000):
            order = with_express_shipping(order)
        assert order.compute_total() == Money.of("20001.00")

    @pytest.mark.unit
    def test_missing_inner_rejected(self) -> None:
        with pytest.raises(InvalidArgument, match="Wrapped order cannot be null"):
            DecoratedOrder(inner=None, kind=ServiceKind.GIFT_WRAP)

    @pytest.mark.unit
    def test_non_order_inner_rejected(self) -> None:
        with pytest.raises(InvalidArgument):
            decorate("Book", ServiceKind.GIFT_WRAP)

    @pytest.mark.unit
    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(InvalidArgument, match="Unknown service kind"):
            decorate(create_base_order("Book", "1.00"), "engraving")


class TestGreetingCard:
    """Greeting card message handling."""

    @pytest.mark.unit
    def test_message_is_stripped(self) -> None:
        order = with_greeting_card(create_base_order("Flowers", "45.00"), "  Thank you!  ")
        assert order.message == "Thank you!"

    @pytest.mark.unit
    @pytest.mark.parametrize("message", [None, "", "   "])
    def test_blank_message_gets_default(self, message) -> None:
        order = with_greeting_card(create_base_order("Flowers", "45.00"), message)
        assert order.message == DEFAULT_GREETING

    @pytest.mark.unit
    def test_message_never_affects_price(self) -> None:
        base = create_base_order("Flowers", "45.00")
        short = with_greeting_card(base, "Hi")
        long = with_greeting_card(base, "Happy birthday! " * 20)
        assert short.compute_total() == long.compute_total() == Money.of("47.00")

    @pytest.mark.unit
    def test_only_cards_carry_messages(self) -> None:
        with pytest.raises(InvalidArgument):
            decorate(create_base_order("Book", "1.00"), ServiceKind.GIFT_WRAP, "hello")


class TestServiceKind:
    """Static service constants."""

    @pytest.mark.unit
    def test_surcharges(self) -> None:
        assert ServiceKind.GIFT_WRAP.surcharge == Decimal("5.00")
        assert ServiceKind.EXPRESS_SHIPPING.surcharge == Decimal("10.00")
        assert ServiceKind.GREETING_CARD.surcharge == Decimal("2.00")

    @pytest.mark.unit
    def test_orders_are_immutable(self) -> None:
        order = BaseOrder(product_name="Book", base_price=Money.of(1))
        with pytest.raises(Exception):
            order.product_name = "Pen"
