import pytest
from datetime import datetime, timezone

from khata.core.errors import NotFoundError, ValidationError
from khata.models.debt import Debt, OwnerType
from khata.models.payment import Payment, PaymentStatus
from khata.schemas.debt import DebtUpdate
from khata.services.debt_service import DebtService
from khata.utils.amounts import normalize_paid

JAN_1 = datetime(2024, 1, 1, tzinfo=timezone.utc)
FEB_1 = datetime(2024, 2, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_create_debt_starts_pending(debt_service):
    debt = await debt_service.create_debt(
        "cust-1", 500, date=JAN_1, notes="Rice and dal", attachments=["udhar/khata-1.jpg"]
    )

    assert debt.payments == []
    assert debt.payment_status == PaymentStatus.PENDING
    assert debt.total_amount == 500
    assert debt.date == JAN_1
    assert debt.owner_type == OwnerType.CUSTOMER
    assert debt.attachments == ["udhar/khata-1.jpg"]
    assert debt.version == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("total", [0, -100])
async def test_create_debt_rejects_non_positive_total(debt_service, store, total):
    with pytest.raises(ValidationError):
        await debt_service.create_debt("cust-1", total)
    assert store.documents == {}


@pytest.mark.asyncio
async def test_create_debt_requires_owner(debt_service):
    with pytest.raises(ValidationError):
        await debt_service.create_debt("", 500)


@pytest.mark.asyncio
async def test_create_debt_rejects_bad_attachment(debt_service):
    with pytest.raises(ValidationError):
        await debt_service.create_debt("cust-1", 500, attachments=["not a key"])


@pytest.mark.asyncio
async def test_update_debt_rejects_total_below_paid(debt_service, payment_service, store):
    debt = await debt_service.create_debt("cust-1", 1000)
    await payment_service.record_payment(str(debt.id), 600)

    with pytest.raises(ValidationError, match="reduce total below"):
        await debt_service.update_debt(str(debt.id), DebtUpdate(total_amount=500))

    stored = await debt_service.get_debt(str(debt.id))
    assert stored.total_amount == 1000


@pytest.mark.asyncio
async def test_update_debt_total_up_reopens_paid_debt(debt_service, payment_service):
    debt = await debt_service.create_debt("cust-1", 1000)
    await payment_service.record_payment(str(debt.id), 1000)

    updated = await debt_service.update_debt(str(debt.id), DebtUpdate(total_amount=1500))

    assert updated.payment_status == PaymentStatus.PARTIAL
    assert updated.payments[0].is_final_payment is False
    assert updated.open_amount() == 500


@pytest.mark.asyncio
async def test_update_debt_total_down_to_paid_settles(debt_service, payment_service):
    debt = await debt_service.create_debt("cust-1", 1000)
    await payment_service.record_payment(str(debt.id), 400)
    await payment_service.record_payment(str(debt.id), 200)

    updated = await debt_service.update_debt(str(debt.id), DebtUpdate(total_amount=600))

    assert updated.payment_status == PaymentStatus.PAID
    assert [p.is_final_payment for p in updated.payments] == [False, True]


@pytest.mark.asyncio
async def test_update_debt_date_and_notes(debt_service):
    debt = await debt_service.create_debt("cust-1", 1000, date=JAN_1, notes="old")

    updated = await debt_service.update_debt(
        str(debt.id), DebtUpdate(date=datetime(2024, 2, 1), notes="new")
    )

    assert updated.date == FEB_1
    assert updated.notes == "new"
    assert updated.total_amount == 1000
    assert updated.version == 2


@pytest.mark.asyncio
async def test_delete_debt_cascades_payments(debt_service, payment_service, store):
    debt = await debt_service.create_debt("cust-1", 1000)
    await payment_service.record_payment(str(debt.id), 100)

    await debt_service.delete_debt(str(debt.id))

    assert store.documents == {}
    with pytest.raises(NotFoundError):
        await debt_service.get_debt(str(debt.id))


@pytest.mark.asyncio
async def test_delete_missing_debt_reports_not_found(debt_service):
    with pytest.raises(NotFoundError):
        await debt_service.delete_debt("65a000000000000000000000")


@pytest.mark.asyncio
async def test_delete_debts_for_owner(debt_service):
    await debt_service.create_debt("cust-1", 100)
    await debt_service.create_debt("cust-1", 200)
    await debt_service.create_debt("cust-2", 300)

    assert await debt_service.delete_debts_for_owner("cust-1") == 2
    remaining = await debt_service.list_debts()
    assert [d.owner_id for d in remaining] == ["cust-2"]


@pytest.mark.asyncio
async def test_list_debts_filters_by_derived_status(debt_service, payment_service):
    pending = await debt_service.create_debt("cust-1", 100, date=JAN_1)
    paid = await debt_service.create_debt("cust-1", 200, date=FEB_1)
    await payment_service.record_payment(str(paid.id), 200)

    result = await debt_service.list_debts(owner_id="cust-1", status=PaymentStatus.PENDING)

    assert [d.id for d in result] == [pending.id]


@pytest.mark.asyncio
async def test_list_debts_by_owner_type(debt_service):
    await debt_service.create_debt("cust-1", 100)
    supplier_debt = await debt_service.create_debt(
        "supp-1", 900, owner_type=OwnerType.SUPPLIER, item_name="Wheat 50kg"
    )

    result = await debt_service.list_debts(owner_type=OwnerType.SUPPLIER)

    assert [d.id for d in result] == [supplier_debt.id]
    assert result[0].item_name == "Wheat 50kg"


def test_derive_is_exposed_on_service():
    assert DebtService.derive(500, 0) == PaymentStatus.PENDING
    assert DebtService.derive(500, 200) == PaymentStatus.PARTIAL
    assert DebtService.derive(500, 500) == PaymentStatus.PAID


@pytest.mark.asyncio
async def test_notes_edit_keeps_legacy_paid_amount(debt_service, store):
    legacy = Debt(owner_id="cust-1", total_amount=500, paid_amount=100, payments=[Payment(amount=300)])
    await store.insert_debt(legacy)

    updated = await debt_service.update_debt(str(legacy.id), DebtUpdate(notes="Checked"))

    assert normalize_paid(updated) == 100
    assert updated.open_amount() == 400
    assert updated.payment_status == PaymentStatus.PARTIAL
