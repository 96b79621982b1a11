"""apply_delta: the single writer of Medicine.stock, and the ledger invariant."""
import pytest

from pharmacy_api.core.exceptions import InsufficientStockError, NotFoundError, ValidationError
from pharmacy_api.db.session import unit_of_work
from pharmacy_api.models.inventory_log import InventoryLog, InventoryLogImmutableError, InventoryLogType
from pharmacy_api.services.stock_service import apply_delta, ledger_balance, verify_stock


def _logs(db, medicine_id):
    return (
        db.query(InventoryLog)
        .filter(InventoryLog.medicine_id == medicine_id)
        .order_by(InventoryLog.id)
        .all()
    )


class TestApplyDelta:
    def test_positive_delta_increments_and_logs(self, db, admin, make_medicine):
        med = make_medicine(stock=5)
        with unit_of_work(db):
            log = apply_delta(db, med.id, 7, InventoryLogType.IMPORT, admin, reference="IMP-000001")

        db.refresh(med)
        assert med.stock == 12
        assert log.quantity == 7
        assert log.type == "IMPORT"
        assert log.reference == "IMP-000001"
        assert log.user_id == admin.user_id

    def test_negative_delta_within_stock(self, db, admin, make_medicine):
        med = make_medicine(stock=5)
        with unit_of_work(db):
            apply_delta(db, med.id, -5, InventoryLogType.SALE, admin)
        db.refresh(med)
        assert med.stock == 0

    def test_insufficient_stock_leaves_no_trace(self, db, admin, make_medicine):
        med = make_medicine(stock=2)
        logs_before = len(_logs(db, med.id))

        with pytest.raises(InsufficientStockError) as exc_info:
            with unit_of_work(db):
                apply_delta(db, med.id, -3, InventoryLogType.SALE, admin)

        assert exc_info.value.status_code == 400
        assert exc_info.value.kind == "INSUFFICIENT_STOCK"
        db.refresh(med)
        assert med.stock == 2
        assert len(_logs(db, med.id)) == logs_before

    def test_zero_delta_rejected(self, db, admin, make_medicine):
        med = make_medicine(stock=1)
        with pytest.raises(ValidationError):
            apply_delta(db, med.id, 0, InventoryLogType.IMPORT, admin)

    @pytest.mark.parametrize("log_type, delta", [
        (InventoryLogType.SALE, 3),
        (InventoryLogType.IMPORT, -3),
        (InventoryLogType.RETURN, -1),
        (InventoryLogType.IMPORT_CANCEL, 2),
    ])
    def test_sign_must_match_type(self, db, admin, make_medicine, log_type, delta):
        med = make_medicine(stock=10)
        with pytest.raises(ValidationError):
            apply_delta(db, med.id, delta, log_type, admin)
        db.rollback()
        db.refresh(med)
        assert med.stock == 10

    def test_unknown_medicine(self, db, admin):
        with pytest.raises(NotFoundError):
            apply_delta(db, 9999, 1, InventoryLogType.IMPORT, admin)

    def test_restoration_is_unconditional(self, db, admin, make_medicine):
        med = make_medicine(stock=0)
        with unit_of_work(db):
            apply_delta(db, med.id, 4, InventoryLogType.RETURN, admin, enforce_non_negative=False)
        db.refresh(med)
        assert med.stock == 4


class TestLedger:
    def test_opening_stock_is_logged_as_initial(self, db, make_medicine):
        med = make_medicine(stock=30)
        logs = _logs(db, med.id)
        assert [(log.type, log.quantity) for log in logs] == [("INITIAL", 30)]

    def test_zero_opening_stock_writes_no_log(self, db, make_medicine):
        med = make_medicine(stock=0)
        assert _logs(db, med.id) == []

    def test_stock_equals_sum_of_deltas(self, db, admin, make_medicine):
        med = make_medicine(stock=10)
        for delta, log_type in [
            (20, InventoryLogType.IMPORT),
            (-8, InventoryLogType.SALE),
            (3, InventoryLogType.RETURN),
            (-5, InventoryLogType.ADJUSTMENT_SUBTRACT),
        ]:
            with unit_of_work(db):
                apply_delta(db, med.id, delta, log_type, admin)

        result = verify_stock(db, med.id)
        assert result["stock"] == 20
        assert result["ledger_total"] == 20
        assert result["consistent"] is True
        assert ledger_balance(db, med.id) == 20

    def test_log_rows_cannot_be_edited(self, db, make_medicine):
        med = make_medicine(stock=3)
        log = _logs(db, med.id)[0]
        log.quantity = 99
        with pytest.raises(InventoryLogImmutableError):
            db.flush()
        db.rollback()

    def test_log_rows_cannot_be_deleted(self, db, make_medicine):
        med = make_medicine(stock=3)
        db.delete(_logs(db, med.id)[0])
        with pytest.raises(InventoryLogImmutableError):
            db.flush()
        db.rollback()
        assert len(_logs(db, med.id)) == 1

    def test_every_log_type_has_sign_and_label(self):
        for log_type in InventoryLogType:
            assert log_type.sign in (1, -1)
            assert log_type.label
