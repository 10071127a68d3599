import pytest
from gyansetu.errors import ErrorKind, PortalError
from gyansetu.services.payment_service import PaymentEngine, DummySignatureScheme


def sign(order_id, payment_id):
    return DummySignatureScheme().sign(order_id, payment_id)


@pytest.fixture
def engine():
    return PaymentEngine(default_amount=19900, default_currency="INR")


def test_create_order_applies_defaults(engine):
    order = engine.create_order()
    assert order["orderId"].startswith("order_")
    assert len(order["orderId"]) == len("order_") + 16
    assert order["amount"] == 19900
    assert order["currency"] == "INR"


@pytest.mark.parametrize("amount", [0, -5, "abc", None, "", float("nan")])
def test_create_order_replaces_bad_amounts(engine, amount):
    assert engine.create_order(amount=amount)["amount"] == 19900


def test_create_order_keeps_positive_amount(engine):
    order = engine.create_order(amount="250", currency="usd")
    assert order["amount"] == 250
    assert order["currency"] == "USD"


def test_order_ids_are_unique(engine):
    ids = {engine.create_order()["orderId"] for _ in range(200)}
    assert len(ids) == 200


def test_verify_with_correct_signature(engine):
    order = engine.create_order(amount=500)
    result = engine.verify(order["orderId"], "pay_0001ABCDEF", sign(order["orderId"], "pay_0001ABCDEF"))

    assert result["transactionId"].startswith("TXN-")
    assert result["transactionId"].endswith("ABCDEF")
    assert result["amount"] == 500
    assert result["currency"] == "INR"

    ledger = engine.get_transaction(result["transactionId"])
    assert ledger["orderId"] == order["orderId"]
    assert ledger["paymentId"] == "pay_0001ABCDEF"
    assert ledger["claimed"] is False


def test_transaction_ids_unique_across_orders(engine):
    ids = set()
    for _ in range(50):
        order = engine.create_order()
        ids.add(engine.verify(order["orderId"], "pay_same", sign(order["orderId"], "pay_same"))["transactionId"])
    assert len(ids) == 50


def test_verify_unknown_order(engine):
    with pytest.raises(PortalError) as exc:
        engine.verify("order_doesnotexist", "pay_1", sign("order_doesnotexist", "pay_1"))
    assert exc.value.kind == ErrorKind.INVALID_ORDER


def test_verify_rejects_any_single_character_change(engine):
    order = engine.create_order()
    good = sign(order["orderId"], "pay_1")

    for i in range(len(good)):
        tampered = good[:i] + ("X" if good[i] != "X" else "Y") + good[i + 1:]
        with pytest.raises(PortalError) as exc:
            engine.verify(order["orderId"], "pay_1", tampered)
        assert exc.value.kind == ErrorKind.SIGNATURE_MISMATCH

    # Still payable afterwards
    assert engine.verify(order["orderId"], "pay_1", good)["transactionId"]


def test_verify_requires_payment_id(engine):
    order = engine.create_order()
    with pytest.raises(PortalError) as exc:
        engine.verify(order["orderId"], "", sign(order["orderId"], ""))
    assert exc.value.kind == ErrorKind.SIGNATURE_MISMATCH


def test_verify_is_idempotent_per_payment(engine):
    order = engine.create_order()
    first = engine.verify(order["orderId"], "pay_1", sign(order["orderId"], "pay_1"))
    second = engine.verify(order["orderId"], "pay_1", sign(order["orderId"], "pay_1"))
    assert first == second


def test_order_cannot_be_settled_twice(engine):
    order = engine.create_order()
    engine.verify(order["orderId"], "pay_1", sign(order["orderId"], "pay_1"))

    with pytest.raises(PortalError) as exc:
        engine.verify(order["orderId"], "pay_2", sign(order["orderId"], "pay_2"))
    assert exc.value.kind == ErrorKind.INVALID_ORDER


def test_claim_requires_matching_ids(engine):
    order = engine.create_order()
    tx = engine.verify(order["orderId"], "pay_1", sign(order["orderId"], "pay_1"))["transactionId"]

    for order_id, payment_id in [(order["orderId"], "pay_2"), ("order_other", "pay_1"), (None, None)]:
        with pytest.raises(PortalError) as exc:
            engine.claim(tx, order_id, payment_id)
        assert exc.value.kind == ErrorKind.PAYMENT_NOT_VERIFIED

    with pytest.raises(PortalError):
        engine.claim("TXN-0-000000", order["orderId"], "pay_1")


def test_claim_is_single_use_until_released(engine):
    order = engine.create_order()
    tx = engine.verify(order["orderId"], "pay_1", sign(order["orderId"], "pay_1"))["transactionId"]

    assert engine.claim(tx, order["orderId"], "pay_1")["claimed"] is True
    with pytest.raises(PortalError) as exc:
        engine.claim(tx, order["orderId"], "pay_1")
    assert exc.value.kind == ErrorKind.PAYMENT_NOT_VERIFIED

    engine.release(tx)
    assert engine.claim(tx, order["orderId"], "pay_1")["claimed"] is True


def test_custom_signature_scheme():
    class ReversedScheme:
        def sign(self, order_id, payment_id):
            return f"{payment_id}:{order_id}"[::-1]

    engine = PaymentEngine(scheme=ReversedScheme())
    order = engine.create_order()
    good = f"pay_9:{order['orderId']}"[::-1]
    assert engine.verify(order["orderId"], "pay_9", good)["transactionId"]
    with pytest.raises(PortalError):
        engine.verify(order["orderId"], "pay_9", sign(order["orderId"], "pay_9"))
