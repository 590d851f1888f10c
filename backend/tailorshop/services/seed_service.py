# Overview: Sample catalog shipped with the shop schema.

from __future__ import annotations

from ..extensions import db
from ..models import Fabric, Garment
from ..policies import Caller
from . import record_service

# Seeding runs as an admin so it goes through the same rules as staff edits.
SYSTEM_CALLER = Caller(user_id="system", role="admin")

SAMPLE_FABRICS = [
    {
        "name": "Premium Silk", "material": "Silk", "price_per_meter": 2500, "color": "Golden", "stock": 50,
        "images_json": ["https://images.pexels.com/photos/6069107/pexels-photo-6069107.jpeg"], "featured": True,
        "description": "Luxurious silk fabric perfect for wedding wear and special occasions",
    },
    {
        "name": "Italian Wool", "material": "Wool", "price_per_meter": 3200, "color": "Navy Blue", "stock": 30,
        "images_json": ["https://images.pexels.com/photos/7679720/pexels-photo-7679720.jpeg"], "featured": True,
        "description": "Premium Italian wool for sophisticated suits and formal wear",
    },
    {
        "name": "Egyptian Cotton", "material": "Cotton", "price_per_meter": 1800, "color": "White", "stock": 75,
        "images_json": ["https://images.pexels.com/photos/6069102/pexels-photo-6069102.jpeg"], "featured": False,
        "description": "Finest Egyptian cotton for comfortable everyday wear",
    },
    {
        "name": "Banarasi Silk", "material": "Silk", "price_per_meter": 4500, "color": "Red", "stock": 20,
        "images_json": ["https://images.pexels.com/photos/8849295/pexels-photo-8849295.jpeg"], "featured": True,
        "description": "Traditional Banarasi silk with intricate gold work",
    },
    {
        "name": "Linen Blend", "material": "Linen", "price_per_meter": 2200, "color": "Beige", "stock": 40,
        "images_json": ["https://images.pexels.com/photos/7679717/pexels-photo-7679717.jpeg"], "featured": False,
        "description": "Breathable linen blend perfect for summer wear",
    },
    {
        "name": "Velvet Royal", "material": "Velvet", "price_per_meter": 3800, "color": "Maroon", "stock": 15,
        "images_json": ["https://images.pexels.com/photos/6069108/pexels-photo-6069108.jpeg"], "featured": False,
        "description": "Rich velvet fabric for luxury garments and evening wear",
    },
]

SAMPLE_GARMENTS = [
    {
        "name": "Classic Shirt", "category": "Shirts", "base_price": 1500,
        "description": "Timeless classic shirt perfect for office and casual wear",
        "image_url": "https://images.pexels.com/photos/996329/pexels-photo-996329.jpeg",
        "customization_options": {
            "collar": ["Regular", "Button Down", "Spread", "Cutaway"],
            "sleeves": ["Full Sleeve", "Half Sleeve", "Quarter Sleeve"],
            "fit": ["Regular", "Slim", "Relaxed"],
            "cuffs": ["Regular", "French", "Convertible"],
            "pockets": ["None", "Single", "Double"],
        },
    },
    {
        "name": "Business Suit", "category": "Suits", "base_price": 8500,
        "description": "Professional business suit for formal occasions",
        "image_url": "https://images.pexels.com/photos/1043474/pexels-photo-1043474.jpeg",
        "customization_options": {
            "jacket": ["Single Breasted", "Double Breasted"],
            "lapels": ["Notch", "Peak", "Shawl"],
            "buttons": ["2 Button", "3 Button"],
            "vents": ["No Vent", "Single Vent", "Double Vent"],
            "trouser": ["Flat Front", "Pleated"],
        },
    },
    {
        "name": "Wedding Sherwani", "category": "Sherwanis", "base_price": 12000,
        "description": "Elegant sherwani for weddings and special occasions",
        "image_url": "https://images.pexels.com/photos/1043473/pexels-photo-1043473.jpeg",
        "customization_options": {
            "collar": ["Band", "High Neck", "Nehru"],
            "length": ["Knee Length", "Mid Thigh", "Full Length"],
            "buttons": ["Traditional", "Modern", "Decorative"],
            "embroidery": ["None", "Light", "Heavy", "Custom Design"],
        },
    },
    {
        "name": "Saree Blouse", "category": "Saree Blouses", "base_price": 2500,
        "description": "Custom fitted saree blouse with various neckline options",
        "image_url": "https://images.pexels.com/photos/8849295/pexels-photo-8849295.jpeg",
        "customization_options": {
            "neckline": ["Round", "V-Neck", "Square", "Boat", "Halter"],
            "sleeves": ["Sleeveless", "Cap Sleeve", "Half Sleeve", "Full Sleeve"],
            "back": ["Regular", "Deep Back", "Keyhole", "Tie-up"],
            "embellishment": ["None", "Beadwork", "Embroidery", "Sequins"],
        },
    },
    {
        "name": "Casual Kurta", "category": "Kurtas", "base_price": 1800,
        "description": "Comfortable kurta for daily wear and casual occasions",
        "image_url": "https://images.pexels.com/photos/1043474/pexels-photo-1043474.jpeg",
        "customization_options": {
            "collar": ["Band", "Nehru", "Chinese"],
            "length": ["Short", "Medium", "Long"],
            "sleeves": ["Full Sleeve", "Half Sleeve", "Quarter Sleeve"],
            "bottom": ["Straight", "A-Line", "Asymmetric"],
        },
    },
    {
        "name": "Evening Dress", "category": "Dresses", "base_price": 6500,
        "description": "Elegant evening dress for special occasions",
        "image_url": "https://images.pexels.com/photos/985635/pexels-photo-985635.jpeg",
        "customization_options": {
            "neckline": ["Strapless", "Halter", "V-Neck", "Off-Shoulder"],
            "length": ["Knee Length", "Midi", "Floor Length"],
            "fit": ["A-Line", "Mermaid", "Straight", "Ball Gown"],
            "back": ["Zipper", "Lace-up", "Open Back"],
        },
    },
]


def _missing(model, samples: list[dict]) -> list[dict]:
    existing = {name for (name,) in db.session.query(model.name).all()}
    return [sample for sample in samples if sample["name"] not in existing]


def seed_catalog() -> dict:
    """
    Insert the sample fabrics and garments that are not there yet (by name).

    Returns counts of rows created per table.
    """
    created = {"fabrics": 0, "garments": 0}
    for table, model, samples in (
        ("fabrics", Fabric, SAMPLE_FABRICS),
        ("garments", Garment, SAMPLE_GARMENTS),
    ):
        pending = _missing(model, samples)
        if pending:
            created[table] = len(record_service.insert_rows(SYSTEM_CALLER, table, pending))
    return created
