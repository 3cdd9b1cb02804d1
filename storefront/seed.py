# storefront/seed.py
"""Populate an empty database with the admin account, categories and demo products.

Run with ``python -m storefront.seed``. Existing rows are left untouched, so
the script is safe to run more than once.
"""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.database import SessionLocal, init_db
from storefront.models.category import Category
from storefront.models.product import ImageRef, Product
from storefront.models.users import Role, User
from storefront.utils.hashing import get_password_hash

logger = logging.getLogger(__name__)

CDN = "https://cdn.dummyjson.com/product-images"

CATEGORIES = ["Beauty", "Laptops", "Motorcycles", "Vehicles"]

# (category, name, description, price, in_stock, image url)
PRODUCTS = [
    ("Beauty", "Essence Mascara Lash Princess",
     "A popular mascara known for its volumizing and lengthening effects.",
     "9.99", 99, f"{CDN}/beauty/essence-mascara-lash-princess/1.webp"),
    ("Beauty", "Eyeshadow Palette with Mirror",
     "A versatile range of eyeshadow shades with a built-in mirror.",
     "19.99", 34, f"{CDN}/beauty/eyeshadow-palette-with-mirror/1.webp"),
    ("Beauty", "Powder Canister",
     "A finely milled setting powder designed to set makeup and control shine.",
     "14.99", 89, f"{CDN}/beauty/powder-canister/1.webp"),
    ("Laptops", "Apple MacBook Pro 14 Inch Space Grey",
     "A powerful and sleek laptop with an M1 Pro chip and a Retina display.",
     "1999.99", 24, f"{CDN}/laptops/apple-macbook-pro-14-inch-space-grey/1.webp"),
    ("Laptops", "Asus Zenbook Pro Dual Screen Laptop",
     "A high-performance laptop with dual screens for creative professionals.",
     "1799.99", 45, f"{CDN}/laptops/asus-zenbook-pro-dual-screen-laptop/1.webp"),
    ("Laptops", "Huawei Matebook X Pro",
     "A slim and stylish laptop with a high-resolution touchscreen display.",
     "1399.99", 75, f"{CDN}/laptops/huawei-matebook-x-pro/1.webp"),
    ("Motorcycles", "Generic Motorcycle",
     "A versatile and reliable bike suitable for various riding preferences.",
     "3999.99", 34, f"{CDN}/motorcycle/generic-motorcycle/1.webp"),
    ("Motorcycles", "Kawasaki Z800",
     "A powerful and agile sportbike known for its striking design.",
     "8999.99", 52, f"{CDN}/motorcycle/kawasaki-z800/1.webp"),
    ("Motorcycles", "MotoGP CI.H1",
     "A high-performance motorcycle inspired by MotoGP racing technology.",
     "14999.99", 10, f"{CDN}/motorcycle/motogp-ci.h1/1.webp"),
    ("Vehicles", "300 Touring",
     "A stylish and comfortable sedan with luxurious features.",
     "28999.99", 54, f"{CDN}/vehicle/300-touring/1.webp"),
    ("Vehicles", "Charger SXT RWD",
     "A powerful and sporty rear-wheel-drive sedan.",
     "32999.99", 57, f"{CDN}/vehicle/charger-sxt-rwd/1.webp"),
    ("Vehicles", "Dodge Hornet GT Plus",
     "A compact and agile hatchback for urban driving.",
     "24999.99", 82, f"{CDN}/vehicle/dodge-hornet-gt-plus/1.webp"),
]


def seed_admin(session: Session) -> User:
    admin = session.query(User).filter(User.email == settings.ADMIN_EMAIL.lower()).first()
    if admin:
        return admin
    admin = User(
        name=settings.ADMIN_NAME,
        email=settings.ADMIN_EMAIL.lower(),
        password_hash=get_password_hash(settings.ADMIN_PASSWORD),
        role=Role.ADMIN,
    )
    session.add(admin)
    session.commit()
    logger.info("Created admin account %s", admin.email)
    return admin


def seed_catalogue(session: Session) -> int:
    """Insert missing categories and products; returns the number of new products."""
    by_name = {c.category_name: c for c in session.query(Category).all()}
    for name in CATEGORIES:
        if name not in by_name:
            by_name[name] = Category(category_name=name)
            session.add(by_name[name])
    session.flush()

    existing = {name for (name,) in session.query(Product.product_name).all()}
    created = 0
    for category, name, description, price, in_stock, url in PRODUCTS:
        if name in existing:
            continue
        product = Product(
            product_name=name,
            description=description,
            price=Decimal(price),
            in_stock=in_stock,
            category_id=by_name[category].id,
        )
        # Seeded images are hosted elsewhere and never owned by our storage
        product.image = ImageRef.external(url)
        session.add(product)
        created += 1

    session.commit()
    return created


def main():
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    init_db()
    session = SessionLocal()
    try:
        seed_admin(session)
        created = seed_catalogue(session)
        logger.info("Seeding finished, %d new product(s)", created)
    finally:
        session.close()


if __name__ == "__main__":
    main()
