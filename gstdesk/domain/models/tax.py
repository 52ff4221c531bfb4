from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, Field

# Raw form value: whatever the UI has in the input box right now
RawAmount = Union[Decimal, int, float, str, None]


class LineItem(BaseModel):
    """One invoice / e-WayBill line as entered on the form.

    Values are kept raw; the tax engine parses them with ``safe_decimal`` so a
    half-typed row never blows up a recomputation.
    """

    description: Optional[str] = None
    hsn_code: Optional[str] = None
    unit: Optional[str] = None
    quantity: RawAmount = Field(default=None)
    value: RawAmount = Field(default=None, description="Taxable / assessable value")
    cgst: RawAmount = Field(default=None, description="CGST rate in percent")
    sgst: RawAmount = Field(default=None, description="SGST rate in percent")
    igst: RawAmount = Field(default=None, description="IGST rate in percent")
    cess: RawAmount = Field(default=None, description="Cess rate in percent")
