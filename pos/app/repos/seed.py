"""Fixed starter menu loaded into an empty store."""

from __future__ import annotations

import logging

from .storage import Storage

logger = logging.getLogger(__name__)

# (name, icon, display_order)
CATEGORIES: list[tuple[str, str, int]] = [
    ("Starters", "restaurant", 1),
    ("Main (Burgers)", "lunch_dining", 2),
    ("Grilled Chicken", "outdoor_grill", 3),
    ("Fried Chicken", "set_meal", 4),
    ("Pizza Menu", "local_pizza", 5),
    ("Rice Platters", "rice_bowl", 6),
    ("Wings Platter", "restaurant_menu", 7),
    ("Strips Platter", "restaurant_menu", 8),
    ("Burger Feast", "dinner_dining", 9),
    ("Variety Platter", "dinner_dining", 10),
    ("Emparo Special", "star", 11),
    ("Feast Platter", "celebration", 12),
]

_BURGERS = [
    ("1. Strip Burger", 250),
    ("2. Fillet Burger", 350),
    ("3. Zinger Burger", 400),
    ("4. Fish/Vegetarian Burger", 350),
    ("5. Emparo Burger", 650),
    ("6. Tower Burger", 500),
    ("7. EFC Special", 650),
    ("8. Quarter Pounder", 400),
    ("9. Half Pounder", 500),
    ("10. Peri Peri Burger", 500),
    ("11. Peri Peri Wrap", 450),
    ("12. Peri Peri Wings", 420),
    ("13. Peri Peri Strips", 470),
    ("14. Half Chicken", 550),
    ("15. Whole Chicken", 1050),
]

_PIZZAS = [
    "Margherita Pizza",
    "Double Pepperoni Pizza",
    "Mediterranean Special Pizza",
    "Emparo Pizza",
    "Veggie Hot Pizza",
    "Veggie Special Pizza",
    "American Hot Pizza",
    "Peri Peri Special Pizza",
    "Tandoori Special Pizza",
    "BBQ Special Pizza",
    "Hawaiian Special Pizza",
    "Ham & Mushroom Pizza",
    "Tuna Special Pizza",
    "Four Seasons Pizza",
    "Meat Lovers Pizza",
]


def _item(category: int, name: str, price: int, description: str = "", **flags) -> dict:
    return {
        "category_id": category,
        "name": name,
        "description": description,
        "price": price,
        "meal_price": flags.pop("meal_price", None),
        "available": True,
        "has_flavor_options": flags.pop("flavors", False),
        "has_meal_option": flags.pop("meal", False),
        "is_spicy_option": flags.pop("spicy", False),
        "has_toppings_option": flags.pop("toppings", False),
    }


def menu_items(category_ids: list[int]) -> list[dict]:
    """Return the starter menu keyed to the freshly created ``category_ids``."""

    (
        starters,
        burgers,
        grilled,
        fried,
        pizza,
        rice,
        wings,
        strips,
        feast,
        variety,
        special,
        platter,
    ) = category_ids

    items = [
        _item(starters, "Chips", 250),
        _item(starters, "Peri Peri Chips", 300),
        _item(starters, "Chips with Cheese", 400),
        _item(starters, "Potato Wedges", 350, "Spicy or Normal", spicy=True),
        _item(starters, "Potato Wedges with Cheese", 400),
        _item(starters, "Fish Fingers", 400),
        _item(starters, "Calamari", 400),
        _item(starters, "Mozzarella Sticks", 400),
        _item(starters, "Onion Rings (10 pcs)", 400),
        _item(starters, "Gamberoni (6 pcs)", 400),
        _item(starters, "Nuggets", 300),
        _item(starters, "Buffalo Wings", 450),
        _item(starters, "BBQ Wings", 450),
    ]
    items += [
        _item(burgers, name, price, meal_price=price + 200, meal=True, toppings=True)
        for name, price in _BURGERS
    ]
    items += [
        _item(grilled, "Quarter Chicken", 350),
        _item(grilled, "Half Chicken", 550),
        _item(grilled, "Whole Chicken", 1050),
        _item(fried, "Wings (3 pcs)", 150),
        _item(fried, "Wings (6 pcs)", 300),
        _item(fried, "Strips (3 pcs)", 200),
        _item(fried, "Strips (6 pcs)", 400),
    ]
    items += [_item(pizza, name, 850, flavors=True) for name in _PIZZAS]
    items += [
        _item(rice, "Strips", 750, flavors=True),
        _item(rice, "Strips with Drink", 800, flavors=True),
        _item(rice, "Half Chicken", 800, flavors=True),
        _item(rice, "Half Chicken with Drink", 850, flavors=True),
        _item(rice, "Chicken Wings", 700, flavors=True),
        _item(rice, "Chicken Wings with Drink", 750, flavors=True),
        _item(wings, "Wings Platter", 1549, "15 wings, 2 chips, 2 drinks", flavors=True),
        _item(strips, "Strips Platter", 1549, "15 strips, 2 chips, 2 drinks", flavors=True),
        _item(
            feast,
            "Burger Feast",
            2449,
            "3 Peri Peri Burgers, 8 Peri Peri Wings, 2 Chips, Bottle drink",
            flavors=True,
        ),
        _item(
            variety,
            "Variety Platter",
            2400,
            "Whole Chicken, 8 Wings, 5 Strips, 2 sides, Bottle of drink",
            flavors=True,
        ),
        _item(
            special,
            "Emparo Special",
            2250,
            "Half Chicken, 2 Peri Burgers, 5 Peri Wings, 2 sides, Bottle",
            flavors=True,
        ),
        _item(
            platter,
            "Feast Platter",
            3849,
            "2 Whole Chickens, 8 Wings, 8 Strips, 3 sides, Bottle",
            flavors=True,
        ),
    ]
    return items


async def seed_if_empty(storage: Storage) -> bool:
    """Load the starter menu when ``storage`` has no categories.

    Returns ``True`` if anything was written.
    """

    if await storage.list_categories():
        return False
    category_ids = []
    for name, icon, display_order in CATEGORIES:
        category = await storage.create_category(
            {"name": name, "icon": icon, "display_order": display_order}
        )
        category_ids.append(category["id"])
    items = menu_items(category_ids)
    for item in items:
        await storage.create_menu_item(item)
    logger.info("seeded menu: %d categories, %d items", len(category_ids), len(items))
    return True
