import pytest
from sqlalchemy.orm import Session
from decimal import Decimal

from app.core import events
from app.core.commission_distributor import company_reference
from app.crud import crud_wallet, crud_withdrawal

pytestmark = pytest.mark.crud

BANK_DETAILS = {"account_holder_name": "Test User", "account_number": "1234567890", "ifsc_code": "TEST0001234"}


def test_transactions_by_user_and_type(db_session: Session, make_chain, fund_wallet):
    _, b, a = make_chain(3)
    fund_wallet(b, Decimal("10"))
    events.on_payment_completed(db_session, a.id, "basic")

    txs = crud_wallet.get_transactions_by_user(db_session, user_id=b.id)
    assert len(txs) == 2
    assert txs[0].transaction_type == "commission" # newest first
    commission_txs = crud_wallet.get_transactions_by_user(db_session, user_id=b.id, transaction_type="commission")
    assert [t.amount for t in commission_txs] == [Decimal("80.00")]

def test_company_transactions(db_session: Session, make_chain):
    _, a = make_chain(2)
    events.on_payment_completed(db_session, a.id, "basic")
    company_txs = crud_wallet.get_company_transactions(db_session)
    assert len(company_txs) == 1
    assert company_txs[0].reference_id == company_reference(a.id)
    assert crud_wallet.get_transactions_by_reference(db_session, reference_id=company_reference(a.id))[0].amount == Decimal("720.00")

def test_withdrawal_listings(db_session: Session, make_user, fund_wallet):
    first_user = make_user()
    second_user = make_user()
    fund_wallet(first_user, Decimal("500"))
    fund_wallet(second_user, Decimal("500"))
    w1 = events.request_withdrawal(db_session, first_user.id, Decimal("100"), "bank", BANK_DETAILS)
    w2 = events.request_withdrawal(db_session, second_user.id, Decimal("50"), "upi", {"upi_id": "second@upi"})
    w3 = events.request_withdrawal(db_session, first_user.id, Decimal("25"), "upi", {"upi_id": "first@upi"})
    events.resolve_withdrawal(db_session, w2.id, "approved")

    assert crud_withdrawal.get_withdrawal(db_session, w1.id).amount == Decimal("100.00")
    assert [w.id for w in crud_withdrawal.get_withdrawals_by_user(db_session, user_id=first_user.id)] == [w3.id, w1.id]
    assert [w.id for w in crud_withdrawal.get_withdrawals(db_session)] == [w1.id, w2.id, w3.id]
    assert [w.id for w in crud_withdrawal.get_withdrawals(db_session, status="pending")] == [w1.id, w3.id]
    assert [w.id for w in crud_withdrawal.get_withdrawals(db_session, status="approved")] == [w2.id]
    assert crud_withdrawal.get_withdrawal(db_session, 999) is None

    refs = crud_wallet.get_transactions_by_reference(db_session, reference_id=str(w1.id))
    assert [(t.transaction_type, t.amount) for t in refs] == [("withdrawal", Decimal("-100.00"))]
