"""Entity rule set tests.

Customer scenarios, per-entity rule coverage, registry lookup and the
raising ``ensure_valid`` helper.
"""

import json
from datetime import UTC, datetime, timedelta
from types import MappingProxyType

import pytest

from storefront_guard.core.errors import EntityValidationError, UnknownEntityKindError
from storefront_guard.validation import ENTITY_RULES, ensure_valid, get_rule_set, validate_entity

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture()
def customer() -> dict:
    """A fully valid customer body, camelCase as sent by the storefront."""
    return {
        "civilityId": 1,
        "firstName": "Camille",
        "lastName": "Lefèvre",
        "email": "camille.lefevre@example.be",
        "socioProfessionalCategoryId": 3,
        "phoneNumber": "+32 (0)470 12-34-56",
        "birthday": "1991-06-23",
    }


# ── Customer ────────────────────────────────────────────────────────────


class TestCustomer:
    def test_valid_customer(self, customer):
        result = validate_entity("customer", customer, now=NOW)
        assert result.is_valid is True
        assert result.errors == ()

    def test_three_violations_in_declaration_order(self, customer):
        customer.update(
            firstName="",
            email="not-an-email",
            birthday=(NOW + timedelta(days=1)).isoformat(),
        )
        result = validate_entity("customer", customer, now=NOW)
        assert result.is_valid is False
        assert result.errors == (
            "First name is required",
            "Email format is invalid",
            "Birthday cannot be in the future",
        )

    def test_missing_email_reports_required_only(self, customer):
        del customer["email"]
        assert validate_entity("customer", customer, now=NOW).errors == ("Email is required",)

    def test_missing_references(self, customer):
        del customer["civilityId"]
        customer["socioProfessionalCategoryId"] = 0
        assert validate_entity("customer", customer, now=NOW).errors == (
            "Civility ID is required",
            "Socio-professional category ID is required",
        )

    def test_phone_is_optional(self, customer):
        del customer["phoneNumber"]
        assert validate_entity("customer", customer, now=NOW).is_valid

    def test_bad_phone(self, customer):
        customer["phoneNumber"] = "call me maybe"
        assert validate_entity("customer", customer, now=NOW).errors == (
            "Phone number format is invalid",
        )

    def test_length_limits(self, customer):
        customer["lastName"] = "x" * 101
        customer["phoneNumber"] = "1" * 21
        assert validate_entity("customer", customer, now=NOW).errors == (
            "Last name must be 100 characters or less",
            "Phone number must be 20 characters or less",
        )

    def test_unreadable_birthday(self, customer):
        customer["birthday"] = "23/06/1991"
        assert validate_entity("customer", customer, now=NOW).errors == ("Birthday format is invalid",)

    def test_empty_entity_lists_every_required_field(self):
        result = validate_entity("customer", {}, now=NOW)
        assert result.errors == (
            "First name is required",
            "Last name is required",
            "Email is required",
            "Civility ID is required",
            "Socio-professional category ID is required",
        )

    @pytest.mark.parametrize("civility_id", ["3", 3.0])
    def test_ids_sent_as_strings_or_integral_floats(self, customer, civility_id):
        customer["civilityId"] = civility_id
        assert validate_entity("customer", customer, now=NOW).is_valid

    def test_snake_case_object_accepted(self):
        class Row:
            civility_id = 1
            first_name = "Camille"
            last_name = "Lefèvre"
            email = "c@example.be"
            socio_professional_category_id = 2
            phone_number = None
            birthday = None

        assert validate_entity("customer", Row(), now=NOW).is_valid


# ── Customer address / company ──────────────────────────────────────────


class TestCustomerAddress:
    @pytest.fixture()
    def address(self) -> dict:
        return {
            "customerId": 7,
            "addressType": "shipping",
            "address": "Rue Neuve 12",
            "postalCode": "1000",
            "city": "Bruxelles",
            "countryId": 1,
        }

    def test_valid(self, address):
        assert validate_entity("customer_address", address).is_valid

    def test_bad_type(self, address):
        address["addressType"] = "pickup"
        assert validate_entity("customer_address", address).errors == (
            'Address type must be either "shipping" or "billing"',
        )

    def test_missing_type_reported(self, address):
        del address["addressType"]
        assert not validate_entity("customer_address", address).is_valid

    def test_postal_code(self, address):
        address["postalCode"] = "10;00"
        assert validate_entity("customer_address", address).errors == ("Postal code format is invalid",)

    def test_postal_code_too_long(self, address):
        address["postalCode"] = "12345678901"
        assert validate_entity("customer_address", address).errors == (
            "Postal code must be 10 characters or less",
        )


class TestCustomerCompany:
    def test_registration_numbers_with_spaces(self):
        company = {
            "customerId": 1,
            "companyName": "Atelier Lumière",
            "siretNumber": "732 829 320 00074",
            "vatNumber": "FR 40 303265045",
        }
        assert validate_entity("customer_company", company).is_valid

    def test_bad_registration_numbers(self):
        company = {"customerId": 1, "companyName": "X", "siretNumber": "123", "vatNumber": "fr123"}
        assert validate_entity("customer_company", company).errors == (
            "SIRET number must be 14 digits",
            "VAT number format is invalid (e.g., FR12345678901)",
        )


# ── Reference data ──────────────────────────────────────────────────────


class TestReferenceData:
    @pytest.mark.parametrize(
        ("kind", "field", "label", "limit"),
        [
            ("country", "countryName", "Country name", 100),
            ("civility", "abbreviation", "Abbreviation", 10),
            ("socio_professional_category", "categoryName", "Category name", 100),
        ],
    )
    def test_required_and_length(self, kind, field, label, limit):
        assert validate_entity(kind, {field: " "}).errors == (f"{label} is required",)
        assert validate_entity(kind, {field: "x" * (limit + 1)}).errors == (
            f"{label} must be {limit} characters or less",
        )
        assert validate_entity(kind, {field: "x" * limit}).is_valid


# ── Product / content / orders ──────────────────────────────────────────


class TestProductImageVariant:
    def test_valid(self):
        variant = {
            "imageId": 4,
            "variantType": "thumbnail",
            "filePath": "/img/4/thumb.webp",
            "width": 150,
            "height": 150,
            "fileSize": 5120,
            "quality": 80,
        }
        assert validate_entity("product_image_variant", variant).is_valid

    def test_every_violation(self):
        variant = {
            "imageId": 4,
            "variantType": "huge",
            "filePath": "x",
            "width": -1,
            "height": -1,
            "fileSize": -1,
            "quality": 0,
        }
        assert validate_entity("product_image_variant", variant).errors == (
            "Width must be positive",
            "Height must be positive",
            "File size must be positive",
            "Quality must be between 1 and 100",
            "Variant type must be one of: thumbnail, small, medium, large, original",
        )


class TestWebsitePage:
    def test_slug_format(self):
        page = {"pageSlug": "About Us", "pageTitle": "About", "markdownContent": "# Hi"}
        assert validate_entity("website_page", page).errors == (
            "Page slug must contain only lowercase letters, numbers, and hyphens",
        )

    def test_valid(self):
        page = {"pageSlug": "about-us", "pageTitle": "About", "markdownContent": "# Hi"}
        assert validate_entity("website_page", page).is_valid


class TestOrders:
    def test_order_item_prices(self):
        item = {
            "orderId": 1,
            "productId": 2,
            "productName": "Lampe",
            "quantity": 0,
            "unitPriceHt": 10,
            "unitPriceTtc": 8,
        }
        assert validate_entity("order_item", item).errors == (
            "Quantity must be positive",
            "Unit price TTC must be greater than or equal to unit price HT",
        )

    def test_nan_quantity_reported_not_raised(self):
        item = json.loads(
            '{"orderId": 1, "productId": 2, "productName": "Lampe", "quantity": NaN,'
            ' "unitPriceHt": 10, "unitPriceTtc": Infinity}'
        )
        assert validate_entity("order_item", item).errors == (
            "Quantity must be positive",
            "Unit price TTC must be non-negative",
        )

    def test_nan_string_reported_not_raised(self):
        item = {"orderId": 1, "productId": 2, "productName": "Lampe", "quantity": "NaN"}
        assert validate_entity("order_item", item).errors == ("Quantity must be positive",)

    def test_credit_note(self):
        note = {
            "customer_id": 0,
            "order_id": 5,
            "total_amount_ht": "100.00",
            "total_amount_ttc": "121.00",
            "reason": "",
            "payment_method": "transfer",
        }
        assert validate_entity("credit_note", note).errors == (
            "Customer ID is required and must be positive",
            "Reason is required",
        )

    def test_credit_note_item_vat(self):
        item = {
            "credit_note_id": 1,
            "product_id": 1,
            "quantity": 1,
            "unit_price_ht": 10,
            "unit_price_ttc": 12.1,
            "vat_rate": 121,
        }
        assert validate_entity("credit_note_item", item).errors == ("VAT rate must be between 0 and 100",)


# ── Registry ────────────────────────────────────────────────────────────


class TestRegistry:
    def test_all_kinds_registered(self):
        assert set(ENTITY_RULES) == {
            "customer",
            "customer_address",
            "customer_company",
            "country",
            "civility",
            "socio_professional_category",
            "product_image_variant",
            "website_page",
            "order_item",
            "credit_note",
            "credit_note_item",
        }

    def test_registry_read_only(self):
        assert isinstance(ENTITY_RULES, MappingProxyType)
        with pytest.raises(TypeError):
            ENTITY_RULES["customer"] = None  # type: ignore[index]

    def test_unknown_kind(self):
        with pytest.raises(UnknownEntityKindError):
            get_rule_set("spaceship")
        with pytest.raises(UnknownEntityKindError):
            validate_entity("spaceship", {})


class TestEnsureValid:
    def test_passes_silently(self, customer):
        assert ensure_valid("customer", customer, now=NOW) is None

    def test_raises_with_every_message(self, customer):
        customer["firstName"] = ""
        customer["email"] = "nope"
        with pytest.raises(EntityValidationError) as info:
            ensure_valid("customer", customer, now=NOW)
        assert info.value.entity_kind == "customer"
        assert info.value.errors == ("First name is required", "Email format is invalid")
