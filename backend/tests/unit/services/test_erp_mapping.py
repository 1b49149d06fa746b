"""
Unit tests for ERP line mapping.

WHAT: Tests equipment-to-MTRLINES mapping and missing code detection.

HOW: Pure functions, no database.
"""

from decimal import Decimal

from app.core.config import settings
from app.services.erp_mapping import (
    SODTYPE_PRODUCT,
    SODTYPE_SERVICE,
    lines_to_wire,
    map_equipment_line,
    map_equipment_lines,
    validate_lines,
)


class TestMapEquipmentLine:
    """Tests for map_equipment_line."""

    def test_product_line(self):
        line = map_equipment_line(
            {"id": 5, "name": "Camera", "erp_code": "1001", "quantity": 3, "price": 99.5}
        )

        assert line.mtrl == "1001"
        assert line.quantity == Decimal("3")
        assert line.unit_price == Decimal("99.5")
        assert line.sodtype == SODTYPE_PRODUCT
        assert line.vat == settings.ERP_DEFAULT_VAT_CODE

    def test_service_line_and_mtrl_fallback(self):
        line = map_equipment_line({"name": "Installation", "mtrl": 77, "type": "service"})

        assert line.mtrl == "77"
        assert line.sodtype == SODTYPE_SERVICE
        assert line.quantity == Decimal("1")

    def test_to_wire(self):
        line = map_equipment_line({"name": "Cable", "erp_code": "9", "quantity": 2, "price": "1.25"})

        assert line.to_wire() == {
            "MTRL": "9",
            "QTY1": 2.0,
            "PRICE": 1.25,
            "VAT": int(settings.ERP_DEFAULT_VAT_CODE),
            "SODTYPE": SODTYPE_PRODUCT,
        }


class TestValidateLines:
    """Tests for validate_lines."""

    def test_all_coded(self):
        lines = map_equipment_lines([{"name": "A", "erp_code": "1"}, {"name": "B", "erp_code": "2"}])

        result = validate_lines(lines)

        assert result.valid
        assert result.missing_codes == []

    def test_reports_every_missing_line_by_name(self):
        lines = map_equipment_lines(
            [
                {"name": "Camera X", "erp_code": None},
                {"name": "Coded", "erp_code": "1"},
                {"id": 42},
            ]
        )

        result = validate_lines(lines)

        assert not result.valid
        assert result.missing_codes == ["Camera X", "42"]

    def test_wire_keeps_order(self):
        lines = map_equipment_lines([{"erp_code": "2"}, {"erp_code": "1"}])

        assert [entry["MTRL"] for entry in lines_to_wire(lines)] == ["2", "1"]
