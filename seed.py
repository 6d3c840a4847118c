"""Demo catalog used to populate an empty database."""

from typing import Dict

from bson import ObjectId
from pymongo.database import Database

from database import create_document
from schemas import Brand, Category, Product

BRANDS = [
    Brand(name="Asus", slug="asus"),
    Brand(name="MSI", slug="msi"),
    Brand(name="Corsair", slug="corsair"),
]

CATEGORIES = [
    Category(name="Graphics Cards", slug="Graphics-Cards"),
    Category(name="Power Supplies", slug="power-supplies"),
]


def seed_catalog(database: Database) -> Dict[str, object]:
    """Insert brands, categories and products unless products already exist."""
    if database["product"].count_documents({}) > 0:
        return {"status": "exists"}

    brand_ids = {b.slug: ObjectId(create_document("brand", b, database=database)) for b in BRANDS}
    category_ids = {c.slug: ObjectId(create_document("category", c, database=database)) for c in CATEGORIES}
    gpus = [category_ids["Graphics-Cards"]]
    psus = [category_ids["power-supplies"]]

    # Spec keys are deliberately spelled inconsistently, as entered by hand
    products = [
        Product(
            title="Asus Dual GeForce RTX 4070",
            slug="asus-dual-rtx-4070",
            sku="ASUS-4070-DUAL",
            price=599.0,
            stock={"qty": 14},
            specs={"VRAM": "12GB", "Chipset": "RTX 4070", "Wattage": "200W"},
            brand_id=brand_ids["asus"],
            category_ids=gpus,
        ),
        Product(
            title="MSI Ventus GeForce RTX 4060",
            slug="msi-ventus-rtx-4060",
            sku="MSI-4060-VENTUS",
            price=319.0,
            stock={"qty": 0},
            availability="out_of_stock",
            specs={"Vram": "8GB", "chipset": "RTX 4060", "wattage": "115W"},
            brand_id=brand_ids["msi"],
            category_ids=gpus,
        ),
        Product(
            title="MSI Gaming X Radeon RX 7800 XT",
            slug="msi-gaming-x-rx-7800-xt",
            sku="MSI-7800XT-GX",
            price=529.0,
            stock={"qty": 3},
            availability="pre_order",
            specs={"v_ram": "16GB", "Chipset": "RX 7800 XT", "Wattage": "263W"},
            brand_id=brand_ids["msi"],
            category_ids=gpus,
        ),
        Product(
            title="Corsair RM850x",
            slug="corsair-rm850x",
            sku="CORSAIR-RM850X",
            price=139.0,
            stock={"qty": 40},
            specs={"Wattage": "850W", "Efficiency": "80+ Gold", "Modular": "Full"},
            brand_id=brand_ids["corsair"],
            category_ids=psus,
        ),
    ]
    product_ids = [create_document("product", p, database=database) for p in products]

    return {"status": "seeded", "products": product_ids}
