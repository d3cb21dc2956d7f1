"""
Script to seed a restaurant and a few drivers for local development
Run this script after running database migrations

Usage:
    python seed_data.py
"""
from sqlalchemy.exc import OperationalError
from app.database import SessionLocal
from app.models.restaurant import Restaurant
from app.models.driver import Driver

RESTAURANTS = [
    {"name": "Al Sham Grill", "phone": "0500000001", "address": "King Fahd Rd", "delivery_time": "30-45 minutes"},
    {"name": "Bella Pizza", "phone": "0500000002", "address": "Olaya St", "delivery_time": "25-35 minutes"},
]

DRIVERS = [
    {"name": "Omar Haddad", "phone": "0550000001", "vehicle_type": "bike"},
    {"name": "Sami Khalil", "phone": "0550000002", "vehicle_type": "car"},
    {"name": "Lina Yousef", "phone": "0550000003", "vehicle_type": "scooter"},
]


def seed():
    """Insert sample restaurants and drivers, skipping rows that already exist"""
    db = SessionLocal()

    try:
        try:
            db.query(Restaurant).first()
        except OperationalError as e:
            if "no such table" in str(e).lower():
                print("[ERROR] Tables do not exist!")
                print("   Please run database migrations first:")
                print("   alembic upgrade head")
                return
            raise

        print("=" * 50)
        print("Seeding development data")
        print("=" * 50)

        for data in RESTAURANTS:
            if db.query(Restaurant).filter(Restaurant.name == data["name"]).first():
                print(f"[SKIP] Restaurant {data['name']} already exists")
                continue
            restaurant = Restaurant(**data)
            db.add(restaurant)
            db.flush()
            print(f"[OK] Restaurant {restaurant.name} ({restaurant.id})")

        for data in DRIVERS:
            if db.query(Driver).filter(Driver.phone == data["phone"]).first():
                print(f"[SKIP] Driver {data['phone']} already exists")
                continue
            driver = Driver(is_active=True, is_available=True, **data)
            db.add(driver)
            db.flush()
            print(f"[OK] Driver {driver.name} ({driver.id})")

        db.commit()
        print("Done.")
    except Exception as e:
        db.rollback()
        print(f"[ERROR] Seeding failed: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
