"""Request bodies accepted by the REST and WebSocket surfaces.

Clients send camelCase keys; models also accept the snake_case field names.
Prices and totals are integer minor currency units.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel

from .domain import OrderStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Customizations(CamelModel):
    """Free-form options chosen at the counter, stored verbatim."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    flavor: Optional[str] = None
    is_meal: Optional[bool] = None
    is_spicy: Optional[bool] = None
    toppings: Optional[List[str]] = None
    chip_type: Optional[str] = None


class OrderLineIn(CamelModel):
    menu_item_id: StrictInt
    name: str = Field(min_length=1)
    price: StrictInt = Field(ge=0)
    quantity: StrictInt = Field(ge=1)
    notes: Optional[str] = None
    customizations: Optional[Customizations] = None


class OrderCreate(CamelModel):
    items: List[OrderLineIn] = Field(min_length=1)


class StatusUpdate(BaseModel):
    status: OrderStatus


class AdminLogin(BaseModel):
    password: str


class CategoryIn(CamelModel):
    name: str = Field(min_length=1)
    icon: str = Field(min_length=1)
    display_order: int = 0


class CategoryPatch(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    icon: Optional[str] = Field(default=None, min_length=1)
    display_order: Optional[int] = None


class MenuItemIn(CamelModel):
    category_id: int
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: int = Field(ge=0)
    meal_price: Optional[int] = Field(default=None, ge=0)
    available: bool = True
    image: Optional[str] = None
    has_flavor_options: bool = False
    has_meal_option: bool = False
    is_spicy_option: bool = False
    has_toppings_option: bool = False


class MenuItemPatch(CamelModel):
    category_id: Optional[int] = None
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[int] = Field(default=None, ge=0)
    meal_price: Optional[int] = Field(default=None, ge=0)
    available: Optional[bool] = None
    image: Optional[str] = None
    has_flavor_options: Optional[bool] = None
    has_meal_option: Optional[bool] = None
    is_spicy_option: Optional[bool] = None
    has_toppings_option: Optional[bool] = None
