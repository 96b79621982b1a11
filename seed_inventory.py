"""Seed the pharmacy with a starter catalogue, a supplier and one goods receipt.

Every stock change goes through the services, so the seeded stock is fully
backed by inventory log rows. Run against an empty database:

    python seed_inventory.py
"""
import logging
from datetime import date, timedelta
from decimal import Decimal

from pharmacy_api.core.logging_config import configure_logging
from pharmacy_api.core.permissions import ActorContext, Role
from pharmacy_api.db.init_db import init_db
from pharmacy_api.db.session import SessionLocal
from pharmacy_api.models.medicine import Medicine
from pharmacy_api.models.user import User
from pharmacy_api.schemas.interaction import InteractionCreate
from pharmacy_api.schemas.medicine import MedicineCreate
from pharmacy_api.schemas.stock_import import ImportCreate, ImportItemCreate
from pharmacy_api.schemas.supplier import SupplierCreate
from pharmacy_api.services import catalog_service, import_service, interaction_service

logger = logging.getLogger("seed_inventory")

MEDICINES = [
    {"name": "Paracetamol 500mg", "category": "Analgesic", "active_ingredient": "Paracetamol",
     "dosage": "500mg", "import_price": "1.20", "retail_price": "2.50", "stock": 200},
    {"name": "Ibuprofen 400mg", "category": "Analgesic", "active_ingredient": "Ibuprofen",
     "dosage": "400mg", "import_price": "1.80", "retail_price": "3.50", "stock": 150},
    {"name": "Aspirin 81mg", "category": "Antiplatelet", "active_ingredient": "Acetylsalicylic acid",
     "dosage": "81mg", "import_price": "0.90", "retail_price": "2.00", "stock": 120},
    {"name": "Warfarin 5mg", "category": "Anticoagulant", "active_ingredient": "Warfarin",
     "dosage": "5mg", "import_price": "4.00", "retail_price": "7.50", "stock": 40},
    {"name": "Amoxicillin 500mg", "category": "Antibiotic", "active_ingredient": "Amoxicillin",
     "dosage": "500mg", "import_price": "3.10", "retail_price": "8.00", "stock": 100},
    {"name": "Cetirizine 10mg", "category": "Antihistamine", "active_ingredient": "Cetirizine",
     "dosage": "10mg", "import_price": "0.70", "retail_price": "1.50", "stock": 8},
    {"name": "Omeprazole 20mg", "category": "Antacid", "active_ingredient": "Omeprazole",
     "dosage": "20mg", "import_price": "2.20", "retail_price": "4.80", "stock": 0},
]

INTERACTIONS = [
    ("Warfarin 5mg", "Aspirin 81mg", "major", "Increased risk of bleeding.",
     "Avoid combination unless prescribed; monitor INR."),
    ("Warfarin 5mg", "Ibuprofen 400mg", "major", "NSAIDs raise bleeding risk with anticoagulants.",
     "Prefer paracetamol for pain relief."),
    ("Ibuprofen 400mg", "Aspirin 81mg", "moderate", "Ibuprofen may reduce the antiplatelet effect of aspirin.",
     "Take aspirin at least 30 minutes before ibuprofen."),
]


def seed_inventory():
    init_db()
    db = SessionLocal()
    try:
        admin = db.query(User).filter(User.role == Role.ADMIN.value).first()
        if admin is None:
            logger.error("No ADMIN user found. Database not initialized properly.")
            return
        actor = ActorContext(user_id=admin.id, role=Role.ADMIN)

        if db.query(Medicine).count():
            logger.warning("Medicines already present, skipping seed")
            return

        for med in MEDICINES:
            created = catalog_service.create_medicine(db, actor, MedicineCreate(**med))
            logger.info("Created %s %s (stock %s)", created.code, created.name, created.stock)

        supplier = catalog_service.create_supplier(db, actor, SupplierCreate(
            name="Central Pharma Distribution",
            phone="0123456789",
            address="12 Warehouse Road",
            contact_person="Receiving desk",
        ))

        omeprazole = db.query(Medicine).filter(Medicine.name == "Omeprazole 20mg").one()
        receipt = import_service.create_import(db, actor, ImportCreate(
            supplier_id=supplier.id,
            note="Opening order",
            items=[ImportItemCreate(
                medicine_id=omeprazole.id,
                lot_number="OME-2401",
                expiry_date=date.today() + timedelta(days=540),
                quantity=60,
                price=Decimal("2.20"),
            )],
        ))
        logger.info("Received %s from %s", receipt.code, supplier.name)

        for from_name, to_name, severity, description, recommendation in INTERACTIONS:
            interaction_service.create_interaction(db, actor, InteractionCreate(
                medicine_from_name=from_name,
                medicine_to_name=to_name,
                severity=severity,
                description=description,
                recommendation=recommendation,
            ))

        logger.info(
            "Seeded %d medicines, 1 supplier, 1 import and %d interactions",
            len(MEDICINES), len(INTERACTIONS),
        )
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    seed_inventory()
