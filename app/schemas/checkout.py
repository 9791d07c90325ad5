from pydantic import BaseModel
from typing import Dict, List, Optional
from decimal import Decimal
from uuid import UUID

from app.schemas.base import CamelModel


class CheckoutCreate(CamelModel):
    price_id: Optional[str] = None
    lang: str = "es"


class CheckoutResponse(BaseModel):
    url: str


class PriceOption(BaseModel):
    months: int
    price_id: Optional[str] = None
    total: int
    savings: int
    monthly_equivalent: int


class PackageResponse(BaseModel):
    id: UUID
    name: str
    display_name: Dict[str, str]
    price_monthly: Decimal
    sessions_per_month: int
    prices: List[PriceOption] = []
