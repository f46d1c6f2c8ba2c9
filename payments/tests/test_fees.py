import pytest
from decimal import Decimal

from payments.fees import card_amount_with_fees, card_fee


class TestCardFees:
    """Tests for the 3.9% + $0.30 gross-up."""

    @pytest.mark.parametrize("net, gross", [
        ("20.00", "21.12"),
        ("25.00", "26.33"),
        ("100.00", "104.37"),
    ])
    def test_gross_up(self, net, gross):
        assert card_amount_with_fees(Decimal(net)) == Decimal(gross)

    def test_fee_is_difference(self):
        assert card_fee(Decimal("20.00")) == Decimal("1.12")

    def test_net_must_be_positive(self):
        with pytest.raises(ValueError):
            card_amount_with_fees(Decimal("0"))
