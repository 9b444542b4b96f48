"""
Demonstration data written into collections that do not exist yet.
"""

from loguru import logger

from .record_store import RecordStore
from .tables import (
    CATEGORIES,
    DELIVERY_OPTIONS,
    DIETARY_TAGS,
    ORDERS,
    PRODUCTS,
    RECIPE_STEPS,
    RECIPE_TAGS,
    RECIPES,
    SELLER_BANKING,
    SELLERS,
    SPICE_LEVELS,
    USERS,
)

SEED_RECORDS: dict[str, list[dict]] = {
    CATEGORIES: [
        {
            "id": 1,
            "name": "Sweets & Desserts",
            "description": "Traditional sweets",
            "image_url": "https://images.unsplash.com/photo-1578985545062-69928b1d9587?w=300&h=200&fit=crop",
        },
    ],
    SELLERS: [
        {
            "id": 1,
            "business_name": "Mithaiwala Sweets",
            "owner_name": "Ram Prasad Gupta",
            "email": "ram@mithaiwala.com",
            "phone": "+91 9876543210",
            "address": "Gandhi Maidan, Patna",
            "city": "Patna",
            "state": "Bihar",
            "description": "Family business serving authentic sweets since 1950",
            "profile_image": "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=200&h=200&fit=crop&crop=face",
            "banner_image": "https://images.unsplash.com/photo-1578985545062-69928b1d9587?w=800&h=300&fit=crop",
            "rating": 4.8,
            "total_reviews": 156,
            "is_verified": True,
            "established_year": 1950,
            "specialties": "Khaja, Gur Sandesh, Tilkut",
        },
    ],
    PRODUCTS: [
        {
            "id": 1,
            "name": "Authentic Silao Khaja",
            "description": "Traditional layered sweet from Silao",
            "price": 350,
            "original_price": 400,
            "seller_id": 1,
            "category_id": 1,
            "spice_level_id": 1,
            "weight": "500g",
            "ingredients": "Refined flour, Pure ghee, Sugar, Cardamom",
            "shelf_life": "15 days",
            "stock_quantity": 25,
            "rating": 4.8,
            "review_count": 45,
            "is_featured": True,
            "is_bestseller": True,
            "main_image": "https://images.unsplash.com/photo-1578985545062-69928b1d9587?w=400&h=400&fit=crop",
        },
    ],
}

EMPTY_COLLECTIONS = (
    DIETARY_TAGS,
    SPICE_LEVELS,
    DELIVERY_OPTIONS,
    RECIPES,
    RECIPE_TAGS,
    RECIPE_STEPS,
    USERS,
    ORDERS,
    SELLER_BANKING,
)


def seed_demo_data(store: RecordStore) -> list[str]:
    """
    Create missing collections, with demo records where we have them.

    Existing collections are never touched, even when empty.

    Returns:
        Names of the collections that were created.
    """
    created = []
    for collection, records in SEED_RECORDS.items():
        if not store.exists(collection):
            store.write_all(collection, [dict(r) for r in records])
            created.append(collection)

    for collection in EMPTY_COLLECTIONS:
        if not store.exists(collection):
            store.write_all(collection, [])
            created.append(collection)

    if created:
        logger.info(f"Seeded collections: {', '.join(created)}")
    return created
