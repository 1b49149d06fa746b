"""
ERP line mapping and validation.

WHAT: Turns internal equipment lines into the ERP's document line schema
(MTRLINES) and checks that every line can be posted.

WHY: The ERP only accepts lines that reference one of its own materials
(MTRL). A line without one is either silently dropped by the ERP or fails
the whole document, so we refuse to call the ERP at all until every line
has a code, and tell the user exactly which lines are missing one.

HOW: map_equipment_lines keeps unmapped lines (flagged, mtrl=None) so
validate_lines can report them by name. Only a validated line set is ever
serialized with to_wire().
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from app.core.config import settings
from app.services.pricing import to_decimal


# ERP line type discriminators (SODTYPE)
SODTYPE_SERVICE = "51"
SODTYPE_PRODUCT = "52"

LINE_TYPE_SERVICE = "service"


@dataclass
class ErpLine:
    """
    One ERP document line.

    Attributes:
        mtrl: ERP material id; None when the equipment entry has no code
        name: Display name (used in validation messages)
        product_id: Internal product id, if known
        quantity: QTY1
        unit_price: PRICE
        vat: VAT code (not a rate)
        sodtype: "51" service / "52" product
    """

    mtrl: Optional[str]
    name: str
    product_id: Optional[Any] = None
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")
    vat: str = field(default_factory=lambda: settings.ERP_DEFAULT_VAT_CODE)
    sodtype: str = SODTYPE_PRODUCT

    @property
    def has_code(self) -> bool:
        return bool(self.mtrl)

    @property
    def display_name(self) -> str:
        """Name shown to users; falls back to the product id."""
        if self.name:
            return self.name
        return str(self.product_id) if self.product_id is not None else ""

    def to_wire(self) -> Dict[str, Any]:
        """
        Serialize for the ERP request body.

        WHY: The ERP expects numbers for QTY1/PRICE/VAT and a string SODTYPE.
        """
        return {
            "MTRL": self.mtrl,
            "QTY1": float(self.quantity),
            "PRICE": float(self.unit_price),
            "VAT": int(self.vat) if str(self.vat).isdigit() else self.vat,
            "SODTYPE": self.sodtype,
        }


@dataclass
class LineValidation:
    """Result of validate_lines."""

    valid: bool
    missing_codes: List[str]


def map_equipment_line(item: Mapping[str, Any]) -> ErpLine:
    """
    Map one equipment entry to an ERP line.

    Args:
        item: Equipment dict (erp_code or mtrl, name, id, quantity, price, type)

    Returns:
        ErpLine (mtrl None when no code is available)
    """
    mtrl = item.get("erp_code") or item.get("mtrl") or None
    quantity = to_decimal(item.get("quantity"))
    unit_price = to_decimal(item.get("price", item.get("unit_price")))
    vat = item.get("vat") or settings.ERP_DEFAULT_VAT_CODE

    return ErpLine(
        mtrl=str(mtrl) if mtrl is not None else None,
        name=item.get("name") or "",
        product_id=item.get("id", item.get("product_id")),
        quantity=quantity if quantity else Decimal("1"),
        unit_price=unit_price if unit_price is not None else Decimal("0"),
        vat=str(vat),
        sodtype=SODTYPE_SERVICE if item.get("type") == LINE_TYPE_SERVICE else SODTYPE_PRODUCT,
    )


def map_equipment_lines(equipment: Iterable[Mapping[str, Any]]) -> List[ErpLine]:
    """
    Map equipment entries to ERP lines, keeping order and unmapped lines.

    Args:
        equipment: Equipment entries

    Returns:
        One ErpLine per entry
    """
    return [map_equipment_line(item) for item in equipment or []]


def validate_lines(lines: Iterable[ErpLine]) -> LineValidation:
    """
    Check that every line carries an ERP code.

    Args:
        lines: Mapped lines

    Returns:
        LineValidation listing the display name of every line without a code
    """
    missing = [line.display_name for line in lines if not line.has_code]
    return LineValidation(valid=not missing, missing_codes=missing)


def lines_to_wire(lines: Iterable[ErpLine]) -> List[Dict[str, Any]]:
    """Serialize lines for the MTRLINES request field."""
    return [line.to_wire() for line in lines]
