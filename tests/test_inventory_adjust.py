"""Manual adjustments, stock-level listing and the log view."""
import pytest
from pydantic import ValidationError as SchemaValidationError

from pharmacy_api.core.exceptions import ForbiddenError, InsufficientStockError, NotFoundError, ValidationError
from pharmacy_api.models.inventory_log import InventoryLog, InventoryLogType
from pharmacy_api.schemas.inventory import AdjustType, InventoryAdjust, StockLevel
from pharmacy_api.services import inventory_service


def _adjust(medicine_id, adjust_type, quantity, reason=None):
    return InventoryAdjust(medicine_id=medicine_id, adjust_type=adjust_type, quantity=quantity, reason=reason)


class TestAdjustmentDelta:
    @pytest.mark.parametrize("adjust_type, quantity, current, expected", [
        (AdjustType.ADD, 5, 10, (5, InventoryLogType.ADJUSTMENT_ADD)),
        (AdjustType.SUBTRACT, 4, 10, (-4, InventoryLogType.ADJUSTMENT_SUBTRACT)),
        (AdjustType.SET, 25, 10, (15, InventoryLogType.ADJUSTMENT_ADD)),
        (AdjustType.SET, 3, 10, (-7, InventoryLogType.ADJUSTMENT_SUBTRACT)),
        (AdjustType.SET, 10, 10, (0, None)),
    ])
    def test_translation(self, adjust_type, quantity, current, expected):
        assert inventory_service.adjustment_delta(adjust_type, quantity, current) == expected


class TestAdjustStock:
    def test_set_above_current(self, db, manager, make_medicine):
        med = make_medicine(stock=10)

        medicine, log = inventory_service.adjust_stock(db, manager, _adjust(med.id, AdjustType.SET, 25))

        assert medicine.stock == 25
        assert log.type == "ADJUSTMENT_ADD"
        assert log.quantity == 15
        assert log.user_id == manager.user_id

    def test_set_to_zero(self, db, manager, make_medicine):
        med = make_medicine(stock=6)
        medicine, log = inventory_service.adjust_stock(db, manager, _adjust(med.id, AdjustType.SET, 0))
        assert medicine.stock == 0
        assert (log.type, log.quantity) == ("ADJUSTMENT_SUBTRACT", -6)

    def test_set_to_current_writes_nothing(self, db, manager, make_medicine):
        med = make_medicine(stock=10)
        before = db.query(InventoryLog).count()

        medicine, log = inventory_service.adjust_stock(db, manager, _adjust(med.id, AdjustType.SET, 10))

        assert medicine.stock == 10
        assert log is None
        assert db.query(InventoryLog).count() == before

    def test_subtract_below_zero_rejected(self, db, manager, make_medicine):
        med = make_medicine(stock=3)
        with pytest.raises(InsufficientStockError):
            inventory_service.adjust_stock(db, manager, _adjust(med.id, AdjustType.SUBTRACT, 4))
        db.refresh(med)
        assert med.stock == 3

    def test_reason_is_recorded(self, db, admin, make_medicine):
        med = make_medicine(stock=3)
        _, log = inventory_service.adjust_stock(db, admin, _adjust(med.id, AdjustType.ADD, 2, reason="stock take"))
        assert log.note == "stock take"

    def test_pharmacist_forbidden(self, db, pharmacist, make_medicine):
        med = make_medicine(stock=3)
        with pytest.raises(ForbiddenError):
            inventory_service.adjust_stock(db, pharmacist, _adjust(med.id, AdjustType.ADD, 1))

    def test_unknown_medicine(self, db, manager):
        with pytest.raises(NotFoundError):
            inventory_service.adjust_stock(db, manager, _adjust(12345, AdjustType.ADD, 1))

    def test_add_requires_positive_quantity(self):
        with pytest.raises(SchemaValidationError):
            _adjust(1, AdjustType.ADD, 0)


class TestListing:
    def test_stock_levels(self, db, make_medicine):
        low = make_medicine(name="Low", stock=10)
        medium = make_medicine(name="Medium", stock=11)
        high = make_medicine(name="High", stock=51)

        def ids(level):
            rows, _ = inventory_service.list_inventory(db, 1, 10, level=level)
            return {m.id for m in rows}

        assert ids(StockLevel.LOW) == {low.id}
        assert ids(StockLevel.MEDIUM) == {medium.id}
        assert ids(StockLevel.HIGH) == {high.id}
        assert ids(StockLevel.ALL) == {low.id, medium.id, high.id}
        assert inventory_service.stock_level(50) == StockLevel.MEDIUM

    def test_logs_filtered_by_type(self, db, manager, make_medicine):
        med = make_medicine(stock=5)
        inventory_service.adjust_stock(db, manager, _adjust(med.id, AdjustType.ADD, 1))

        rows, total = inventory_service.list_logs(db, 1, 10, log_type="ADJUSTMENT_ADD")
        assert total == 1
        assert rows[0].medicine_id == med.id

        _, total = inventory_service.list_logs(db, 1, 10, medicine_id=med.id)
        assert total == 2

    def test_unknown_log_type(self, db):
        with pytest.raises(ValidationError):
            inventory_service.list_logs(db, 1, 10, log_type="TELEPORT")
