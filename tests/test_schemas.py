# =============================================================================
# tests/test_schemas.py - Form validation
# =============================================================================

import pytest
from pydantic import ValidationError

from dashboard.schemas import (
    CustomerForm,
    FormState,
    ImageFile,
    InvoiceForm,
    PageQuery,
    parse_invoice_form,
    validate_customer_form,
    validate_invoice_form,
)

AMOUNT_ERROR = "Please enter an amount greater than $0."
STATUS_ERROR = "Please select an invoice status."
IMAGE_ERROR = "File must be a PNG or JPG image."


def invoice_form(**overrides):
    form = {"customerId": "cust_1", "amount": "49.99", "status": "pending"}
    form.update(overrides)
    return form


def customer_form(**overrides):
    form = {"name": "Jane Doe", "email": "jane@acmecorp.com", "image_url": None}
    form.update(overrides)
    return form


# =============================================================================
# Invoice schema
# =============================================================================

class TestInvoiceForm:

    def test_valid_input(self):
        result = validate_invoice_form(invoice_form())

        assert isinstance(result, InvoiceForm)
        assert result.customerId == "cust_1"
        assert result.amount == pytest.approx(49.99)
        assert result.status == "pending"

    @pytest.mark.parametrize(
        "amount, cents",
        [("49.99", 4999), ("1", 100), ("0.1", 10), ("1234.56", 123456), ("0.29", 29)],
    )
    def test_amount_in_cents(self, amount, cents):
        assert validate_invoice_form(invoice_form(amount=amount)).amount_in_cents == cents

    @pytest.mark.parametrize("amount", ["0", "-5", "-0.01", "0.001", "0.004", "", None, "abc", "nan", "inf"])
    def test_non_positive_or_non_numeric_amount(self, amount):
        result = validate_invoice_form(invoice_form(amount=amount))

        assert isinstance(result, FormState)
        assert result.errors == {"amount": [AMOUNT_ERROR]}
        assert result.message == "Missing Fields. Failed to Create Invoice."

    @pytest.mark.parametrize("amount", ["21474836.48", "1e17", "99999999999"])
    def test_amount_above_column_limit(self, amount):
        result = validate_invoice_form(invoice_form(amount=amount))

        assert result.errors == {"amount": ["Please enter an amount no greater than $21,474,836.47."]}

    def test_largest_amount_fits_the_column(self):
        assert validate_invoice_form(invoice_form(amount="21474836.47")).amount_in_cents == 2**31 - 1

    def test_one_cent_is_the_smallest_amount(self):
        assert validate_invoice_form(invoice_form(amount="0.01")).amount_in_cents == 1

    @pytest.mark.parametrize("status", ["overdue", "PAID", "", None])
    def test_unknown_status(self, status):
        result = validate_invoice_form(invoice_form(status=status))

        assert result.errors == {"status": [STATUS_ERROR]}

    @pytest.mark.parametrize("customer_id", ["", "   ", None])
    def test_customer_required(self, customer_id):
        result = validate_invoice_form(invoice_form(customerId=customer_id))

        assert result.errors == {"customerId": ["Please select a customer."]}

    def test_reports_every_failing_field(self):
        result = validate_invoice_form({})

        assert set(result.errors) == {"customerId", "amount", "status"}

    def test_ignores_fields_outside_the_schema(self):
        result = validate_invoice_form(invoice_form(date="1999-01-01", id="inv_9"))

        assert isinstance(result, InvoiceForm)
        assert not hasattr(result, "date")

    def test_strict_parse_raises(self):
        with pytest.raises(ValidationError):
            parse_invoice_form(invoice_form(amount="0"))

    def test_strict_parse_accepts_valid_input(self):
        assert parse_invoice_form(invoice_form(status="paid")).status == "paid"


# =============================================================================
# Customer schema
# =============================================================================

class TestCustomerForm:

    def test_valid_without_image(self):
        result = validate_customer_form(customer_form())

        assert isinstance(result, CustomerForm)
        assert result.image_url is None

    @pytest.mark.parametrize("content_type", ["image/png", "image/jpeg"])
    def test_accepts_png_and_jpeg(self, content_type):
        image = ImageFile(filename="jane.png", content_type=content_type, content=b"\x89PNG")

        result = validate_customer_form(customer_form(image_url=image))

        assert result.image_url.filename == "jane.png"

    @pytest.mark.parametrize("content_type", ["image/gif", "application/pdf", ""])
    def test_rejects_other_content_types(self, content_type):
        image = ImageFile(filename="jane.gif", content_type=content_type, content=b"GIF89a")

        result = validate_customer_form(customer_form(image_url=image))

        assert result.errors == {"image_url": [IMAGE_ERROR]}
        assert result.message == "Missing Fields. Failed to Create Customer."

    def test_empty_upload_counts_as_no_image(self):
        image = ImageFile(filename="", content_type="application/octet-stream", content=b"")

        result = validate_customer_form(customer_form(image_url=image))

        assert isinstance(result, CustomerForm)
        assert result.image_url is None

    @pytest.mark.parametrize("email", ["not-an-email", "jane@", "@acmecorp.com", "jane acmecorp.com"])
    def test_invalid_email(self, email):
        result = validate_customer_form(customer_form(email=email))

        assert isinstance(result, FormState)
        assert list(result.errors) == ["email"]

    def test_missing_name_and_email(self):
        result = validate_customer_form({})

        assert result.errors["name"] == ["Please enter a customer name."]
        assert result.errors["email"] == ["Please enter an email address."]


# =============================================================================
# Page query state
# =============================================================================

class TestPageQuery:

    @pytest.mark.parametrize(
        "page, expected",
        [(None, 1), ("", 1), ("3", 3), ("abc", 1), ("0", 1), ("-2", 1)],
    )
    def test_page_number(self, page, expected):
        assert PageQuery.from_params(None, page).page == expected

    def test_query_defaults_to_empty(self):
        assert PageQuery.from_params(None, None).query == ""
        assert PageQuery.from_params("  lee ", None).query == "lee"
