"""
Tests for amount normalization.

Covers:
- Unified and legacy totals / paid sums
- Status derivation
- Final payment flag recomputation
- Legacy migration
"""

from datetime import datetime, timezone

from khata.models.debt import Debt
from khata.models.payment import Payment, PaymentStatus
from khata.utils.amounts import (
    LEGACY_OPENING_NOTE,
    derive_status,
    flag_final_payment,
    migrate_legacy,
    normalize_paid,
    normalize_total,
    sum_payments,
)

JAN_1 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_legacy_split_debt_normalizes():
    """Cash/online legacy record reads as one total and one paid sum."""
    debt = Debt(owner_id="cust-1", cash_amount=300, online_amount=200, paid_cash=100, paid_online=0)

    assert normalize_total(debt) == 500
    assert normalize_paid(debt) == 100
    assert debt.open_amount() == 400
    assert debt.payment_status == PaymentStatus.PARTIAL


def test_total_amount_wins_over_split():
    debt = Debt(owner_id="cust-1", total_amount=800, cash_amount=300, online_amount=200)
    assert normalize_total(debt) == 800


def test_missing_split_half_counts_as_zero():
    debt = Debt(owner_id="cust-1", cash_amount=300)
    assert normalize_total(debt) == 300


def test_no_amount_fields_normalizes_to_zero():
    debt = Debt(owner_id="cust-1")
    assert normalize_total(debt) == 0
    assert normalize_paid(debt) == 0


def test_paid_sums_payments_when_no_legacy_aggregate():
    debt = Debt(
        owner_id="cust-1",
        total_amount=1000,
        payments=[Payment(amount=250), Payment(amount=150)]
    )
    assert normalize_paid(debt) == 400


def test_legacy_paid_aggregate_wins_over_payments():
    debt = Debt(
        owner_id="cust-1",
        total_amount=1000,
        paid_amount=700,
        payments=[Payment(amount=200)]
    )
    assert normalize_paid(debt) == 700


def test_derive_status():
    assert derive_status(1000, 0) == PaymentStatus.PENDING
    assert derive_status(1000, 1) == PaymentStatus.PARTIAL
    assert derive_status(1000, 999) == PaymentStatus.PARTIAL
    assert derive_status(1000, 1000) == PaymentStatus.PAID


def test_stored_status_is_ignored_on_load():
    """A stale cached status in the document never overrides the payments."""
    doc = {
        "owner_id": "cust-1",
        "total_amount": 1000,
        "payments": [{"amount": 1000}],
        "payment_status": "pending"
    }
    assert Debt(**doc).payment_status == PaymentStatus.PAID


def test_flag_final_payment_marks_payment_reaching_total():
    payments = [Payment(amount=400), Payment(amount=600)]

    flagged = flag_final_payment(payments, 1000)

    assert [p.is_final_payment for p in flagged] == [False, True]


def test_flag_final_payment_clears_when_total_not_reached():
    payments = [Payment(amount=600, is_final_payment=True)]

    flagged = flag_final_payment(payments, 1000)

    assert flagged[0].is_final_payment is False


def test_migrate_legacy_carries_paid_as_opening_payment():
    debt = Debt(
        owner_id="cust-1",
        date=JAN_1,
        cash_amount=300,
        online_amount=200,
        paid_cash=100,
        paid_online=0
    )

    migrated = migrate_legacy(debt)

    assert migrated.total_amount == 500
    assert migrated.is_legacy() is False
    assert len(migrated.payments) == 1
    assert migrated.payments[0].amount == 100
    assert migrated.payments[0].date == JAN_1
    assert migrated.payments[0].notes == LEGACY_OPENING_NOTE
    assert migrated.payment_status == PaymentStatus.PARTIAL
    assert "cash_amount" not in migrated.to_document()


def test_migrate_legacy_keeps_payments_already_covering_paid():
    debt = Debt(
        owner_id="cust-1",
        total_amount=1000,
        paid_amount=300,
        payments=[Payment(amount=300)]
    )

    migrated = migrate_legacy(debt)

    assert [p.amount for p in migrated.payments] == [300]
    assert migrated.paid_amount is None


def test_migrate_legacy_trims_payments_above_cached_paid():
    debt = Debt(
        owner_id="cust-1",
        total_amount=500,
        paid_amount=100,
        payments=[Payment(amount=60), Payment(amount=240)]
    )

    migrated = migrate_legacy(debt)

    assert normalize_paid(debt) == 100
    assert [p.amount for p in migrated.payments] == [60, 40]
    assert normalize_paid(migrated) == 100
    assert migrated.open_amount() == debt.open_amount() == 400


def test_migrate_legacy_tops_up_payments_below_cached_paid():
    debt = Debt(
        owner_id="cust-1",
        date=JAN_1,
        total_amount=500,
        paid_amount=300,
        payments=[Payment(amount=100)]
    )

    migrated = migrate_legacy(debt)

    assert [p.amount for p in migrated.payments] == [200, 100]
    assert migrated.payments[0].notes == LEGACY_OPENING_NOTE
    assert normalize_paid(migrated) == 300
    assert migrated.payment_status == debt.payment_status == PaymentStatus.PARTIAL


def test_migrate_legacy_caps_cached_paid_at_total():
    debt = Debt(owner_id="cust-1", cash_amount=300, online_amount=200, paid_amount=800)

    migrated = migrate_legacy(debt)

    assert sum_payments(migrated.payments) == 500
    assert migrated.payments[0].is_final_payment is True
    assert migrated.open_amount() == debt.open_amount() == 0


def test_migrate_unified_debt_is_untouched():
    debt = Debt(owner_id="cust-1", total_amount=1000)
    assert migrate_legacy(debt) is debt
