"""
Database Schemas

Each Pydantic model represents a collection in MongoDB.
Model name is converted to lowercase for the collection name:
- Product -> "product" collection
- Category -> "category" collection
- CategoryFeaturedSpecs -> "categoryfeaturedspecs" collection
"""

from typing import Any, Dict, List, Literal, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

Availability = Literal["coming_soon", "in_stock", "out_of_stock", "pre_order"]

FeaturedMode = Literal["default_all", "restricted", "none"]

SortOption = Literal["newest", "price_asc", "price_desc"]


class Stock(BaseModel):
    qty: int = Field(0, ge=0)


class Attribute(BaseModel):
    name: str
    value: str


class AttributeGroup(BaseModel):
    """Display-only attribute block, never used for filtering."""
    category: str = "General"
    attributes: List[Attribute] = []


class Product(BaseModel):
    """
    Products collection schema
    Collection name: "product"
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    title: str
    slug: Optional[str] = Field(None, description="URL-friendly identifier, unique when set")
    sku: Optional[str] = Field(None, description="Stock keeping unit, unique when set")
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    stock: Stock = Stock()
    availability: Availability = "in_stock"
    specs: Dict[str, str] = Field(default_factory=dict, description="Free-text spec key -> value")
    attribute_groups: List[AttributeGroup] = []
    brand_id: Optional[ObjectId] = None
    category_ids: List[ObjectId] = []
    images: List[str] = []
    badges: List[str] = []
    is_featured: bool = False
    is_active: bool = True


class Category(BaseModel):
    """
    Categories collection schema
    Collection name: "category"
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    slug: str = Field(..., description="Public category key")
    parent_id: Optional[ObjectId] = None
    is_active: bool = True


class Brand(BaseModel):
    name: str
    slug: str
    logo_url: Optional[str] = None
    is_active: bool = True


class CategoryFeaturedSpecs(BaseModel):
    """
    Per-category allow-list of normalized spec keys
    Collection name: "categoryfeaturedspecs"
    """
    category_key: str
    featured_spec_keys: List[str] = []


class AuditLog(BaseModel):
    actor: Optional[str] = None
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    before: Optional[Any] = None
    after: Optional[Any] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None


# Request / response bodies

class FeaturedSpecsUpdate(BaseModel):
    featuredSpecKeys: List[str]


class FeaturedSpecsState(BaseModel):
    categoryKey: str
    featuredSpecKeys: List[str] = []
    mode: FeaturedMode = "default_all"


class AvailableSpecKeys(BaseModel):
    categoryKey: str
    availableSpecKeys: List[str] = []
