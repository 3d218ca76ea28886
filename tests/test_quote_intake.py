"""Quote intake — server-side re-validation and re-pricing of submissions."""

import logging

import pytest

from conftest import BEAM_POSITION, SWING_POSITION, make_design
from playset.core.exceptions import QuoteRejected
from playset.core.quote_intake import QuoteIntake, parse_submission, validate_customer
from playset.core.serializers import design_to_dict
from playset.models.config import PricingRates
from playset.models.quote import CustomerInfo

CUSTOMER = {
    "name": "Thandi Mokoena",
    "email": "thandi@example.co.za",
    "phone": "+27 21 555 0101",
    "city": "Cape Town",
    "state": "Western Cape",
    "postal_code": "8001",
}


@pytest.fixture
def intake(catalog):
    return QuoteIntake(catalog)


@pytest.fixture
def scenario_c(catalog):
    return design_to_dict(make_design(
        catalog,
        ("d", "deck-4x4", (0, 0, 0)),
        ("s", "swing-single", SWING_POSITION),
        ("b", "swing-beam", BEAM_POSITION),
        name="Backyard Fort",
    ))


def _payload(design, **extra):
    payload = {"design": design, "customer": dict(CUSTOMER)}
    payload.update(extra)
    return payload


# ===================================================================
# Customer fields
# ===================================================================

class TestCustomer:
    def test_valid(self):
        assert validate_customer(CustomerInfo(**CUSTOMER)) == []

    def test_everything_missing(self):
        assert validate_customer(CustomerInfo()) == [
            "Valid name is required",
            "Email is required",
            "Phone number is required",
            "City is required",
            "State/Province is required",
            "Postal code is required",
        ]

    @pytest.mark.parametrize("email", ["no-at-sign", "a@b", "two words@x.com"])
    def test_bad_email(self, email):
        info = CustomerInfo(**{**CUSTOMER, "email": email})
        assert validate_customer(info) == ["Invalid email format"]


class TestParseSubmission:
    def test_parse(self, scenario_c):
        submission = parse_submission(_payload(
            scenario_c, include_installation=True, client_total="12690",
        ))
        assert submission.customer.city == "Cape Town"
        assert submission.include_installation
        assert submission.client_total == 12690.0

    def test_unknown_customer_keys_ignored(self, scenario_c):
        payload = _payload(scenario_c)
        payload["customer"]["fax"] = "021 555 0000"
        assert parse_submission(payload).customer == CustomerInfo(**CUSTOMER)

    def test_missing_sections(self):
        with pytest.raises(QuoteRejected) as exc_info:
            parse_submission({})
        assert exc_info.value.reasons == [
            "Design data is required", "Customer information is required",
        ]
        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_bad_client_total(self, scenario_c):
        with pytest.raises(QuoteRejected):
            parse_submission(_payload(scenario_c, client_total="lots"))


# ===================================================================
# Acceptance
# ===================================================================

class TestAccept:
    def test_scenario_c_accepted(self, intake, scenario_c):
        quote = intake.accept(_payload(scenario_c, client_total=9790.0))
        assert quote.design_name == "Backyard Fort"
        assert quote.pricing.total == 9790.0
        assert quote.client_total_matched

    def test_installation_priced(self, intake, scenario_c):
        quote = intake.accept(_payload(scenario_c, include_installation=True))
        assert quote.pricing.installation.total == 2900.0
        assert quote.pricing.total == 12690.0

    def test_client_total_ignored(self, intake, scenario_c, caplog):
        with caplog.at_level(logging.WARNING, logger="playset.core.quote_intake"):
            quote = intake.accept(_payload(scenario_c, client_total=1.0))
        assert quote.pricing.total == 9790.0
        assert not quote.client_total_matched
        assert "differs from server total" in caplog.text

    def test_client_metadata_not_trusted(self, intake, scenario_c):
        scenario_c["metadata"]["total_price"] = 1.0
        scenario_c["metadata"]["estimated_weight"] = 0.0
        quote = intake.accept(_payload(scenario_c))
        assert quote.pricing.subtotal == 8700.0
        assert quote.pricing.shipping.weight_rate == 390.0

    def test_rates_injected(self, catalog, scenario_c):
        intake = QuoteIntake(catalog, rates=PricingRates(shipping_base=0.0))
        assert intake.accept(_payload(scenario_c)).pricing.total == 9290.0

    def test_warnings_returned(self, intake, catalog):
        design = design_to_dict(make_design(
            catalog,
            ("d", "deck-4x4", (0, 0, 0)),
            ("l", "slide-wave", (10, 10, 0)),
        ))
        quote = intake.accept(_payload(design))
        assert any("product tiers" in w for w in quote.warnings)

    def test_invalid_design_rejected(self, intake, catalog):
        design = design_to_dict(make_design(
            catalog,
            ("d", "deck-4x4", (0, 0, 0)),
            ("s", "swing-single", SWING_POSITION),
        ))
        with pytest.raises(QuoteRejected) as exc_info:
            intake.accept(_payload(design))
        assert exc_info.value.code == "INVALID_DESIGN"
        assert "Swing requires a swing beam" in exc_info.value.reasons

    def test_empty_design_rejected(self, intake, catalog):
        with pytest.raises(QuoteRejected) as exc_info:
            intake.accept(_payload(design_to_dict(make_design(catalog))))
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert exc_info.value.reasons == ["Design must have at least one component"]

    def test_customer_and_design_problems_together(self, intake, catalog):
        payload = _payload(design_to_dict(make_design(catalog)))
        payload["customer"]["email"] = "broken"
        with pytest.raises(QuoteRejected) as exc_info:
            intake.accept(payload)
        assert exc_info.value.reasons == [
            "Invalid email format", "Design must have at least one component",
        ]

    def test_malformed_design(self, intake):
        with pytest.raises(QuoteRejected) as exc_info:
            intake.accept(_payload({"instances": [{"position": {}}]}))
        assert exc_info.value.code == "INVALID_DESIGN"

    @pytest.mark.parametrize("field, value", [
        ("position", [0, 0, 0]),
        ("rotation", "90"),
        ("customizations", ["red"]),
    ])
    def test_wrongly_shaped_instance_field(self, intake, scenario_c, field, value):
        scenario_c["instances"][0][field] = value
        with pytest.raises(QuoteRejected) as exc_info:
            intake.accept(_payload(scenario_c))
        assert exc_info.value.code == "INVALID_DESIGN"

    @pytest.mark.parametrize("instances", [{"d": {}}, ["deck-4x4"]])
    def test_wrongly_shaped_instance_list(self, intake, scenario_c, instances):
        scenario_c["instances"] = instances
        with pytest.raises(QuoteRejected) as exc_info:
            intake.accept(_payload(scenario_c))
        assert exc_info.value.code == "INVALID_DESIGN"

    def test_unpublished_part_rejected(self, intake, catalog):
        design = design_to_dict(make_design(
            catalog,
            ("d", "deck-4x4", (0, 0, 0)),
            ("x", "retired-tower", (10, 10, 0)),
        ))
        with pytest.raises(QuoteRejected) as exc_info:
            intake.accept(_payload(design))
        assert exc_info.value.code == "INVALID_DESIGN"
