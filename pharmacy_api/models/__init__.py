from pharmacy_api.models.user import User
from pharmacy_api.models.medicine import Medicine
from pharmacy_api.models.customer import Customer
from pharmacy_api.models.supplier import Supplier
from pharmacy_api.models.invoice import Invoice, InvoiceItem
from pharmacy_api.models.stock_import import Import, ImportItem
from pharmacy_api.models.inventory_log import InventoryLog, InventoryLogType
from pharmacy_api.models.interaction import Interaction

__all__ = [
    "User", "Medicine", "Customer", "Supplier", "Invoice", "InvoiceItem",
    "Import", "ImportItem", "InventoryLog", "InventoryLogType", "Interaction",
]
