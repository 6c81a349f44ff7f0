from __future__ import annotations

from decimal import Decimal

from invdb.database import Base, WriteSessionLocal, engine
from invdb.apps.accounts import models as account_models
from invdb.apps.accounts import services as account_services
from invdb.apps.inventory import models as inventory_models
from invdb.apps.merchants import models as merchant_models

ADMIN_USERNAME = "admin"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123"

MERCHANT_COUNT = 100

CITIES = [
    "New York", "Los Angeles", "Chicago", "Houston", "Phoenix",
    "Philadelphia", "San Antonio", "San Diego", "Dallas", "San Jose",
]
COUNTRIES = [
    "USA", "Canada", "UK", "Germany", "France",
    "Spain", "Italy", "Australia", "Japan", "Brazil",
]

INVENTORY = [
    ("Widget A", "Standard widget", Decimal("100"), Decimal("9.99")),
    ("Widget B", "Large widget", Decimal("42.5"), Decimal("14.50")),
    ("Gadget", "Multi-purpose gadget", Decimal("0"), Decimal("29.00")),
    ("Bolt Pack", "Pack of 100 bolts", Decimal("1234.56"), Decimal("3.25")),
]


def _get_or_create_admin(db) -> account_models.User:
    user = account_services.get_user_by_username(db, ADMIN_USERNAME)
    if user:
        print(f"[INFO] Admin user already exists: id={user.id}")
        return user
    user = account_services.create_user(
        db,
        username=ADMIN_USERNAME,
        email=ADMIN_EMAIL,
        password=ADMIN_PASSWORD,
        role_alias=account_models.ADMIN_ROLE_ALIAS,
    )
    db.commit()
    print("[OK] Created admin user:")
    print(f"  username: {ADMIN_USERNAME}")
    print(f"  password: {ADMIN_PASSWORD}")
    return user


def _seed_merchants(db) -> int:
    existing = db.query(merchant_models.Merchant).count()
    if existing:
        print(f"[INFO] Merchants already exist ({existing} found)")
        return 0
    for i in range(1, MERCHANT_COUNT + 1):
        db.add(
            merchant_models.Merchant(
                name=f"Merchant {i}",
                email=f"merchant{i}@example.com",
                phone=f"+1-555-{1000 + i:04d}",
                address=f"{100 + i} Main Street",
                city=CITIES[(i - 1) % len(CITIES)],
                country=COUNTRIES[(i - 1) % len(COUNTRIES)],
                zip_code=str(10000 + i),
                business_license=f"BL-{i:06d}",
                # every 10th merchant is inactive
                is_active=i % 10 != 0,
                receive_reports=True,
            )
        )
    db.commit()
    return MERCHANT_COUNT


def _seed_inventory(db) -> int:
    created = 0
    for name, description, quantity, price in INVENTORY:
        exists = (
            db.query(inventory_models.InventoryItem)
            .filter(inventory_models.InventoryItem.name == name)
            .first()
        )
        if exists:
            continue
        db.add(
            inventory_models.InventoryItem(
                name=name,
                description=description,
                quantity=quantity,
                price=price,
            )
        )
        created += 1
    db.commit()
    return created


def main() -> None:
    Base.metadata.create_all(bind=engine)
    db = WriteSessionLocal()
    try:
        roles = account_services.ensure_default_roles(db)
        db.commit()
        print(f"[OK] Default roles created: {roles}")
        _get_or_create_admin(db)
        print(f"[OK] Merchants created: {_seed_merchants(db)}")
        print(f"[OK] Inventory items created: {_seed_inventory(db)}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
