"""
Table registry.

The storefront addresses the generic table API by opaque numeric ids; each
one maps to a collection name understood by every RecordStore backend.
"""

from typing import Any

from ..exceptions import NotFoundError

USERS = "users"
ORDERS = "orders"
SELLER_BANKING = "seller_banking"

CATEGORIES = "categories"
DIETARY_TAGS = "dietary_tags"
SPICE_LEVELS = "spice_levels"
DELIVERY_OPTIONS = "delivery_options"
SELLERS = "sellers"
PRODUCTS = "products"
RECIPES = "recipes"
RECIPE_TAGS = "recipe_tags"
RECIPE_STEPS = "recipe_steps"

TABLE_COLLECTIONS: dict[int, str] = {
    39097: CATEGORIES,
    39098: DIETARY_TAGS,
    39099: SPICE_LEVELS,
    39100: DELIVERY_OPTIONS,
    39101: SELLERS,
    39102: PRODUCTS,
    39103: RECIPES,
    39105: RECIPE_TAGS,
    39112: RECIPE_STEPS,
}


def resolve_table(table_id: Any) -> str:
    """
    Collection name for a table id.

    Accepts ints or numeric strings (path parameters arrive as text).

    Raises:
        NotFoundError: If the id is not numeric or not registered.
    """
    try:
        key = int(str(table_id).strip())
    except ValueError:
        key = None

    collection = TABLE_COLLECTIONS.get(key)
    if collection is None:
        raise NotFoundError("Unknown table", detail=f"No table with id '{table_id}'")
    return collection
