import pytest


@pytest.fixture
def pending_order(make_order):
    """A card order waiting for payment confirmation."""
    return make_order(payment_method="CARD")
