"""Goods receipts: stock in, lot/expiry stamping, cancellation and the end-to-end scenario."""
from datetime import date
from decimal import Decimal

import pytest

from pharmacy_api.core.exceptions import ForbiddenError, InsufficientStockError, NotFoundError
from pharmacy_api.models.inventory_log import InventoryLog
from pharmacy_api.models.stock_import import Import, ImportItem
from pharmacy_api.schemas.invoice import InvoiceCreate, InvoiceItemCreate
from pharmacy_api.schemas.stock_import import ImportCreate, ImportItemCreate
from pharmacy_api.services import import_service, invoice_service
from pharmacy_api.services.stock_service import verify_stock


def _receipt(supplier_id, *lines):
    return ImportCreate(
        supplier_id=supplier_id,
        items=[
            ImportItemCreate(
                medicine_id=medicine_id,
                lot_number=lot,
                expiry_date=expiry,
                quantity=quantity,
                price=Decimal("3.00"),
            )
            for medicine_id, quantity, lot, expiry in lines
        ],
    )


class TestCreateImport:
    def test_adds_stock_and_stamps_lot(self, db, manager, make_medicine, make_supplier):
        med = make_medicine(stock=0)
        supplier = make_supplier()

        receipt = import_service.create_import(
            db, manager, _receipt(supplier.id, (med.id, 40, "LOT-A", date(2027, 1, 31))),
        )

        db.refresh(med)
        assert med.stock == 40
        assert med.lot_number == "LOT-A"
        assert med.expiry_date == date(2027, 1, 31)
        assert receipt.code == f"IMP-{receipt.id:06d}"
        assert receipt.total == Decimal("120.00")
        assert receipt.supplier.name == supplier.name

        logs = db.query(InventoryLog).filter(InventoryLog.medicine_id == med.id).all()
        assert [(log.type, log.quantity, log.reference) for log in logs] == [("IMPORT", 40, receipt.code)]

    def test_pharmacist_cannot_import(self, db, pharmacist, make_medicine, make_supplier):
        med = make_medicine()
        supplier = make_supplier()
        with pytest.raises(ForbiddenError):
            import_service.create_import(db, pharmacist, _receipt(supplier.id, (med.id, 1, "L", date(2027, 1, 1))))

    def test_missing_medicine_aborts_whole_receipt(self, db, manager, make_medicine, make_supplier):
        med = make_medicine(stock=0)
        supplier = make_supplier()
        with pytest.raises(NotFoundError):
            import_service.create_import(db, manager, _receipt(
                supplier.id,
                (med.id, 10, "LOT-1", date(2027, 1, 1)),
                (9999, 10, "LOT-2", date(2027, 1, 1)),
            ))
        db.refresh(med)
        assert med.stock == 0
        assert db.query(Import).count() == 0

    def test_unknown_supplier(self, db, manager, make_medicine):
        med = make_medicine()
        with pytest.raises(NotFoundError):
            import_service.create_import(db, manager, _receipt(777, (med.id, 1, "L", date(2027, 1, 1))))


class TestDeleteImport:
    def test_cancel_removes_quantities(self, db, manager, make_medicine, make_supplier):
        med = make_medicine(stock=5)
        supplier = make_supplier()
        receipt = import_service.create_import(db, manager, _receipt(supplier.id, (med.id, 20, "L1", date(2027, 6, 1))))

        import_service.delete_import(db, manager, receipt.code)

        db.refresh(med)
        assert med.stock == 5
        assert db.query(Import).count() == 0
        assert db.query(ImportItem).count() == 0
        cancel = db.query(InventoryLog).filter(InventoryLog.type == "IMPORT_CANCEL").one()
        assert cancel.quantity == -20

    def test_cancel_fails_when_goods_already_sold(self, db, manager, pharmacist, make_medicine, make_supplier):
        med = make_medicine(stock=0)
        supplier = make_supplier()
        receipt = import_service.create_import(db, manager, _receipt(supplier.id, (med.id, 10, "L1", date(2027, 6, 1))))
        invoice_service.create_invoice(db, pharmacist, InvoiceCreate(
            payment_method="CASH",
            items=[InvoiceItemCreate(medicine_id=med.id, quantity=4)],
        ))

        with pytest.raises(InsufficientStockError):
            import_service.delete_import(db, manager, receipt.id)

        db.refresh(med)
        assert med.stock == 6
        assert db.query(Import).count() == 1
        assert db.query(InventoryLog).filter(InventoryLog.type == "IMPORT_CANCEL").count() == 0

    def test_multi_item_cancel_is_all_or_nothing(self, db, manager, pharmacist, make_medicine, make_supplier):
        kept = make_medicine(stock=0)
        sold = make_medicine(stock=0)
        supplier = make_supplier()
        receipt = import_service.create_import(db, manager, _receipt(
            supplier.id,
            (kept.id, 10, "K1", date(2027, 6, 1)),
            (sold.id, 10, "S1", date(2027, 6, 1)),
        ))
        invoice_service.create_invoice(db, pharmacist, InvoiceCreate(
            payment_method="CASH",
            items=[InvoiceItemCreate(medicine_id=sold.id, quantity=1)],
        ))

        with pytest.raises(InsufficientStockError):
            import_service.delete_import(db, manager, receipt.id)

        db.refresh(kept)
        db.refresh(sold)
        assert (kept.stock, sold.stock) == (10, 9)


class TestScenario:
    def test_import_sell_return_cancel(self, db, manager, pharmacist, make_medicine, make_supplier):
        med = make_medicine(stock=0)
        supplier = make_supplier()

        receipt = import_service.create_import(db, manager, _receipt(supplier.id, (med.id, 100, "LOT-X", date(2027, 3, 1))))
        invoice = invoice_service.create_invoice(db, pharmacist, InvoiceCreate(
            payment_method="CASH",
            items=[InvoiceItemCreate(medicine_id=med.id, quantity=30)],
        ))
        db.refresh(med)
        assert med.stock == 70

        invoice_service.delete_invoice(db, pharmacist, invoice.id)
        import_service.delete_import(db, manager, receipt.id)

        db.refresh(med)
        assert med.stock == 0
        logs = (
            db.query(InventoryLog)
            .filter(InventoryLog.medicine_id == med.id)
            .order_by(InventoryLog.id)
            .all()
        )
        assert [(log.type, log.quantity) for log in logs] == [
            ("IMPORT", 100),
            ("SALE", -30),
            ("RETURN", 30),
            ("IMPORT_CANCEL", -100),
        ]
        assert verify_stock(db, med.id)["consistent"] is True


class TestListImports:
    def test_search_by_supplier(self, db, manager, make_medicine, make_supplier):
        med = make_medicine()
        north = make_supplier(name="North Distribution")
        south = make_supplier(name="South Wholesale")
        import_service.create_import(db, manager, _receipt(north.id, (med.id, 1, "N", date(2027, 1, 1))))
        import_service.create_import(db, manager, _receipt(south.id, (med.id, 1, "S", date(2027, 1, 1))))

        rows, total = import_service.list_imports(db, 1, 10, search="north")
        assert total == 1
        assert rows[0].supplier_id == north.id
