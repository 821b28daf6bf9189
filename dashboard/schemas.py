# dashboard/schemas.py
import math
from typing import Any, Dict, List, Literal, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

ALLOWED_IMAGE_TYPES = ("image/png", "image/jpeg")

# invoices.amount is a 32-bit INTEGER column
MAX_AMOUNT_CENTS = 2**31 - 1

INVOICE_FIELDS = ("customerId", "amount", "status")
CUSTOMER_FIELDS = ("name", "email", "image_url")

M = TypeVar("M", bound=BaseModel)


class FormState(BaseModel):
    """What a form re-renders with: per-field errors plus one top-level message."""
    errors: Dict[str, List[str]] = Field(default_factory=dict)
    message: Optional[str] = None


class ActionResult(BaseModel):
    """
    Outcome of a mutation handler. The route performs the effects:
    evicts every path in `revalidate`, then redirects if `redirect` is set,
    otherwise renders `state` in place.
    """
    state: Optional[FormState] = None
    redirect: Optional[str] = None
    revalidate: List[str] = Field(default_factory=list)
    session_token: Optional[str] = None


# ----------------------------
# Form input
# ----------------------------
class ImageFile(BaseModel):
    filename: str = ""
    content_type: str = ""
    content: bytes = b""

    @property
    def is_empty(self) -> bool:
        # browsers send an unnamed empty part when no file was picked
        return not self.filename and not self.content


class InvoiceForm(BaseModel):
    customerId: str
    amount: float
    status: Literal["pending", "paid"]

    @field_validator("customerId", mode="before")
    @classmethod
    def _customer_selected(cls, value: Any) -> Any:
        if not isinstance(value, str) or not value.strip():
            raise PydanticCustomError("customer_required", "Please select a customer.")
        return value

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            raise PydanticCustomError("amount_invalid", "Please enter an amount greater than $0.")

    @field_validator("amount")
    @classmethod
    def _amount_positive(cls, value: float) -> float:
        if not math.isfinite(value) or value <= 0 or round(value * 100) < 1:
            raise PydanticCustomError("amount_invalid", "Please enter an amount greater than $0.")
        if round(value * 100) > MAX_AMOUNT_CENTS:
            raise PydanticCustomError("amount_too_large", "Please enter an amount no greater than $21,474,836.47.")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _status_known(cls, value: Any) -> Any:
        if value not in ("pending", "paid"):
            raise PydanticCustomError("status_invalid", "Please select an invoice status.")
        return value

    @property
    def amount_in_cents(self) -> int:
        return int(round(self.amount * 100))


class CustomerForm(BaseModel):
    name: str
    email: EmailStr
    image_url: Optional[ImageFile] = None

    @field_validator("name", mode="before")
    @classmethod
    def _name_present(cls, value: Any) -> Any:
        if not isinstance(value, str) or not value.strip():
            raise PydanticCustomError("name_required", "Please enter a customer name.")
        return value.strip()

    @field_validator("email", mode="before")
    @classmethod
    def _email_present(cls, value: Any) -> Any:
        if not isinstance(value, str) or not value.strip():
            raise PydanticCustomError("email_required", "Please enter an email address.")
        return value.strip()

    @field_validator("image_url", mode="before")
    @classmethod
    def _drop_empty_upload(cls, value: Any) -> Any:
        if value is None or (isinstance(value, ImageFile) and value.is_empty):
            return None
        return value

    @field_validator("image_url")
    @classmethod
    def _image_type(cls, value: Optional[ImageFile]) -> Optional[ImageFile]:
        if value is not None and value.content_type not in ALLOWED_IMAGE_TYPES:
            raise PydanticCustomError("image_type", "File must be a PNG or JPG image.")
        return value


class Credentials(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


def field_errors(exc: ValidationError) -> Dict[str, List[str]]:
    """Flatten a ValidationError into {field: [messages...]}, keeping order."""
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "form"
        errors.setdefault(field, []).append(error["msg"])
    return errors


def _pick(form: Mapping[str, Any], fields) -> Dict[str, Any]:
    # absent fields become None, like a missing form entry
    return {name: form.get(name) for name in fields}


def safe_parse(model: Type[M], form: Mapping[str, Any], fields, entity: str) -> Union[M, FormState]:
    """
    Validate `fields` of `form` against `model`.
    Returns the typed record, or a FormState listing every field error found.
    """
    try:
        return model.model_validate(_pick(form, fields))
    except ValidationError as exc:
        return FormState(
            errors=field_errors(exc),
            message=f"Missing Fields. Failed to Create {entity}.",
        )


def validate_invoice_form(form: Mapping[str, Any]) -> Union[InvoiceForm, FormState]:
    return safe_parse(InvoiceForm, form, INVOICE_FIELDS, "Invoice")


def parse_invoice_form(form: Mapping[str, Any]) -> InvoiceForm:
    """Strict variant: raises pydantic.ValidationError on invalid input."""
    return InvoiceForm.model_validate(_pick(form, INVOICE_FIELDS))


def validate_customer_form(form: Mapping[str, Any]) -> Union[CustomerForm, FormState]:
    return safe_parse(CustomerForm, form, CUSTOMER_FIELDS, "Customer")


# ----------------------------
# Page query state
# ----------------------------
class PageQuery(BaseModel):
    query: str = ""
    page: int = 1

    @classmethod
    def from_params(cls, query: Optional[str], page: Optional[str]) -> "PageQuery":
        try:
            number = int(page) if page else 1
        except ValueError:
            number = 1
        return cls(query=(query or "").strip(), page=max(number, 1))


# ----------------------------
# Read models (cached page data)
# ----------------------------
class InvoiceRow(BaseModel):
    id: str
    customer_id: str
    name: str
    email: str
    image_url: Optional[str] = None
    amount: int
    status: str
    date: str


class InvoiceFormValues(BaseModel):
    id: str
    customer_id: str
    amount: float  # major units, as typed into the form
    status: str


class CustomerOption(BaseModel):
    id: str
    name: str


class CustomerRow(BaseModel):
    id: str
    name: str
    email: str
    image_url: Optional[str] = None
    total_invoices: int = 0
    total_pending: int = 0
    total_paid: int = 0


class CardData(BaseModel):
    number_of_invoices: int = 0
    number_of_customers: int = 0
    total_paid_invoices: int = 0
    total_pending_invoices: int = 0
