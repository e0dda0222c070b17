from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class TaxBucket(BaseModel):
    taxable_value: Decimal = Field(default=Decimal("0"))
    igst: Decimal = Field(default=Decimal("0"))
    cgst: Decimal = Field(default=Decimal("0"))
    sgst: Decimal = Field(default=Decimal("0"))
    cess: Decimal = Field(default=Decimal("0"))


class ItcBucket(BaseModel):
    igst: Decimal = Field(default=Decimal("0"))
    cgst: Decimal = Field(default=Decimal("0"))
    sgst: Decimal = Field(default=Decimal("0"))
    cess: Decimal = Field(default=Decimal("0"))

    @property
    def total(self) -> Decimal:
        return self.igst + self.cgst + self.sgst + self.cess


class Gstr3bSummary(BaseModel):
    # 3.1(a), 3.1(b), 3.1(d)
    outward_taxable_supplies: TaxBucket = Field(default_factory=TaxBucket)
    outward_zero_rated: TaxBucket = Field(default_factory=TaxBucket)
    inward_reverse_charge: TaxBucket = Field(default_factory=TaxBucket)
    # 4A(3) and 4A(5)
    itc_reverse_charge: ItcBucket = Field(default_factory=ItcBucket)
    itc_other: ItcBucket = Field(default_factory=ItcBucket)

    # Metadata
    gstin: Optional[str] = None
    period: Optional[str] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    total_items: int = 0
    unclassified_items: int = 0
