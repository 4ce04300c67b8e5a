"""Catalog schemas - Pydantic response models"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from ...shared.money import Money


class VariantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: Money
    duration_minutes: Optional[int] = None
    description: Optional[str] = None


class ServiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    category: str
    base_price: Money
    duration_minutes: Optional[int] = None
    variants: list[VariantResponse] = []
