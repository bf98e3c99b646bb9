"""Unit tests for legacy field reconciliation."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.normalization import (
    LegacyOrderRecord,
    StructuredOrderRecord,
    normalize_order_view,
    normalize_price_tier,
    normalize_status,
    parse_order_details,
    parse_order_record,
    resolve_unit_price,
    to_decimal,
)

pytestmark = pytest.mark.unit


class TestPriceTier:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1", "Precio 1"),
            ("Precio 1", "Precio 1"),
            ("2", "Precio 2"),
            ("Precio 2", "Precio 2"),
            (" 2 ", "Precio 2"),
            ("Mayorista", "Mayorista"),
            ("", None),
            (None, None),
        ],
    )
    def test_normalize_price_tier(self, raw, expected):
        assert normalize_price_tier(raw) == expected


class TestStatus:
    def test_missing_status_defaults_to_new(self):
        assert normalize_status(None) == "new"

    def test_legacy_pending_reads_as_new(self):
        assert normalize_status("pending") == "new"

    def test_known_status_is_kept(self):
        assert normalize_status("Shipped") == "shipped"

    def test_unknown_status_defaults_to_new(self):
        assert normalize_status("lost-in-transit") == "new"


class TestParseOrderDetails:
    def test_parses_spanish_keys_case_insensitively(self):
        details = parse_order_details(
            "Cliente: Ana Pérez | TOTAL: 50.000 | tipo: 1 | Marca: Velez | Color: Negro"
        )

        assert details == {
            "client": "Ana Pérez",
            "total": "50.000",
            "type": "Precio 1",
            "brand": "Velez",
            "color": "Negro",
        }

    def test_parses_english_keys(self):
        details = parse_order_details("client: Bob | total: 1,200 | type: Precio 2")

        assert details["client"] == "Bob"
        assert details["type"] == "Precio 2"

    def test_comment_runs_to_end_of_text(self):
        details = parse_order_details("Total: 10.000 | Comentario: dejar en portería | piso 3")

        assert details["comment"] == "dejar en portería | piso 3"

    def test_unknown_keys_and_free_text_are_ignored(self):
        assert parse_order_details("hola | Vendedor: Juan") == {}

    def test_empty_text(self):
        assert parse_order_details("") == {}
        assert parse_order_details(None) == {}


class TestRecordClassification:
    def test_items_make_a_structured_record(self):
        record = parse_order_record({"cartItems": [{"quantity": 1, "price": 10}]}, "o-1")

        assert isinstance(record, StructuredOrderRecord)
        assert record.kind == "structured"
        assert record.id == "o-1"

    def test_items_alias_is_accepted(self):
        record = parse_order_record({"items": [{"quantity": 1, "price": 10}]})

        assert isinstance(record, StructuredOrderRecord)
        assert len(record.items) == 1

    def test_empty_items_make_a_legacy_record(self):
        record = parse_order_record({"cartItems": [], "orderDetails": "Total: 5"})

        assert isinstance(record, LegacyOrderRecord)

    def test_loose_types_are_coerced(self):
        record = parse_order_record(
            {"client": None, "labels": "mayorista", "totalAmount": "45.500", "isStarred": "yes"}
        )

        assert record.client == {}
        assert record.labels == ["mayorista"]
        assert record.stored_total == Decimal("45500")
        assert record.is_starred is False


class TestMoneyCoercion:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("12.50", Decimal("12.50")),
            ("49999.99", Decimal("49999.99")),
            ("-500", Decimal("-500")),
            ("50.000", Decimal("50000")),
            ("1,250,000", Decimal("1250000")),
            ("$ 25.000", Decimal("25000")),
            (" 7 ", Decimal("7")),
        ],
    )
    def test_string_amounts(self, raw, expected):
        assert to_decimal(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", "12,50", "NaN", "Infinity", None, True])
    def test_unparseable_amounts_are_none(self, raw):
        assert to_decimal(raw) is None

    def test_string_prices_keep_their_decimals_in_totals(self):
        view = normalize_order_view({"cartItems": [{"price": "12.50", "quantity": 2}]})

        assert view.total == Decimal("25.00")

    def test_stored_total_keeps_its_decimals(self):
        view = normalize_order_view({"totalAmount": "49999.99"})

        assert view.total == Decimal("49999.99")
        assert view.total_source == "stored"


class TestUnitPrice:
    def test_tier_specific_price_on_product_wins(self):
        item = {"product": {"price1": 100, "price2": 80, "price": 120}}

        assert resolve_unit_price(item, "Precio 2") == Decimal("80")

    def test_item_selected_price_overrides_order_tier(self):
        item = {"selectedPrice": "price1", "product": {"price1": 100, "price2": 80}}

        assert resolve_unit_price(item, "Precio 2") == Decimal("100")

    def test_falls_back_to_generic_price(self):
        assert resolve_unit_price({"price": 99.5}, "Precio 1") == Decimal("99.5")

    def test_falls_back_to_unit_price_then_zero(self):
        assert resolve_unit_price({"unitPrice": 7}, None) == Decimal("7")
        assert resolve_unit_price({}, None) == Decimal("0")


class TestNormalizeOrderView:
    def test_total_from_items(self):
        view = normalize_order_view(
            {
                "priceTier": "2",
                "cartItems": [
                    {"product": {"name": "Bolso", "price1": 100, "price2": 80}, "quantity": 2},
                    {"product": {"name": "Correa", "price": 15}, "quantity": 1},
                ],
                "orderDetails": "Total: 999.999",
                "totalAmount": 1,
            },
            "ord-1",
        )

        assert view.total == Decimal("175")
        assert view.total_source == "items"
        assert view.price_tier == "Precio 2"
        assert [item.name for item in view.items] == ["Bolso", "Correa"]

    def test_total_from_details_text(self):
        view = normalize_order_view(
            {"orderDetails": "Cliente: Ana | Total: 50.000 | Tipo: 1", "totalAmount": 10},
            "ord-100",
        )

        assert view.total == Decimal("50000")
        assert view.total_source == "details"
        assert view.price_tier == "Precio 1"
        assert view.client.name == "Ana"
        assert view.record_kind == "legacy"

    def test_comentario_field_is_read_like_order_details(self):
        view = normalize_order_view({"comentario": "total: 12.000 | marca: Totto"})

        assert view.total == Decimal("12000")
        assert view.brand == "Totto"

    def test_total_from_stored_amount(self):
        view = normalize_order_view({"totalAmount": 32000})

        assert view.total == Decimal("32000")
        assert view.total_source == "stored"

    def test_total_defaults_to_zero(self):
        view = normalize_order_view({})

        assert view.total == Decimal("0")
        assert view.status == "new"

    def test_structured_fields_win_over_parsed_text(self):
        view = normalize_order_view(
            {
                "orderDetails": "Cliente: Texto | Tipo: 1 | Marca: Vieja | Color: Rojo | Comentario: viejo",
                "priceTier": "Precio 2",
                "brand": "Nueva",
                "color": "Azul",
                "comment": "nuevo",
                "client": {"name": "Estructurado"},
            }
        )

        assert view.price_tier == "Precio 2"
        assert view.brand == "Nueva"
        assert view.color == "Azul"
        assert view.comment == "nuevo"
        assert view.client.name == "Estructurado"

    def test_price_type_is_read_as_tier(self):
        view = normalize_order_view({"priceType": "1"})

        assert view.price_tier == "Precio 1"

    def test_is_deterministic(self):
        raw = {
            "orderDetails": "Total: 1.000 | Comentario: x",
            "labels": ["a", "b"],
            "status": "confirmed",
        }

        assert normalize_order_view(raw, "k") == normalize_order_view(raw, "k")

    def test_does_not_mutate_input(self):
        raw = {"cartItems": [{"price": 1, "quantity": 2}], "labels": "x"}
        before = {"cartItems": [{"price": 1, "quantity": 2}], "labels": "x"}

        normalize_order_view(raw)

        assert raw == before

    def test_invalid_quantity_counts_as_one(self):
        view = normalize_order_view({"cartItems": [{"price": 10, "quantity": "abc"}]})

        assert view.items[0].quantity == 1
        assert view.total == Decimal("10")
