# dashboard/actions.py
"""
Form mutation handlers.

Each handler takes the previous form state and the submitted fields and
returns an ActionResult: either a FormState to render in place, or the
cache paths to revalidate plus where to redirect. Handlers never touch the
HTTP response themselves.
"""
import logging
from typing import Any, Mapping, Optional

from sqlalchemy.exc import NoResultFound, SQLAlchemyError
from sqlalchemy.orm import Session

from . import auth, models, utils
from .schemas import (
    ActionResult,
    FormState,
    parse_invoice_form,
    validate_customer_form,
    validate_invoice_form,
)
from .storage import ImageStorage

logger = logging.getLogger(__name__)

INVOICES_PATH = "/dashboard/invoices"
CUSTOMERS_PATH = "/dashboard/customers"
OVERVIEW_PATH = "/dashboard"


def _failed(message: str) -> ActionResult:
    return ActionResult(state=FormState(message=message))


# ----------------------------
# Invoices
# ----------------------------
def create_invoice(db_session: Session, prev_state: Optional[FormState], form: Mapping[str, Any]) -> ActionResult:
    validated = validate_invoice_form(form)
    if isinstance(validated, FormState):
        return ActionResult(state=validated)

    invoice = models.Invoice(
        customer_id=validated.customerId,
        amount=validated.amount_in_cents,
        status=models.InvoiceStatus(validated.status),
        date=utils.today(),
    )
    try:
        db_session.add(invoice)
        db_session.commit()
    except SQLAlchemyError:
        db_session.rollback()
        logger.exception("Failed to create invoice for customer %s", validated.customerId)
        return _failed("Database Error: Failed to Create Invoice.")

    logger.info("Created invoice %s", invoice.id)
    return ActionResult(revalidate=[INVOICES_PATH, CUSTOMERS_PATH, OVERVIEW_PATH], redirect=INVOICES_PATH)


def update_invoice(db_session: Session, invoice_id: str, form: Mapping[str, Any]) -> ActionResult:
    """
    Unlike create_invoice, invalid input is not turned into a form state:
    pydantic.ValidationError propagates to the caller.
    """
    validated = parse_invoice_form(form)

    try:
        updated = (
            db_session.query(models.Invoice)
            .filter(models.Invoice.id == invoice_id)
            .update(
                {
                    models.Invoice.customer_id: validated.customerId,
                    models.Invoice.amount: validated.amount_in_cents,
                    models.Invoice.status: models.InvoiceStatus(validated.status),
                },
                synchronize_session=False,
            )
        )
        if not updated:
            raise NoResultFound(f"invoice {invoice_id} does not exist")
        db_session.commit()
    except SQLAlchemyError:
        db_session.rollback()
        logger.exception("Failed to update invoice %s", invoice_id)
        return _failed("Database Error: Failed to Update Invoice.")

    logger.info("Updated invoice %s", invoice_id)
    return ActionResult(revalidate=[INVOICES_PATH, CUSTOMERS_PATH, OVERVIEW_PATH], redirect=INVOICES_PATH)


def delete_invoice(db_session: Session, invoice_id: str) -> ActionResult:
    try:
        deleted = (
            db_session.query(models.Invoice)
            .filter(models.Invoice.id == invoice_id)
            .delete(synchronize_session=False)
        )
        if not deleted:
            raise NoResultFound(f"invoice {invoice_id} does not exist")
        db_session.commit()
    except SQLAlchemyError:
        db_session.rollback()
        logger.exception("Failed to delete invoice %s", invoice_id)
        return _failed("Database Error: Failed to Delete Invoice.")

    logger.info("Deleted invoice %s", invoice_id)
    # deleted from the list view itself, nothing to navigate to
    return ActionResult(revalidate=[INVOICES_PATH, CUSTOMERS_PATH, OVERVIEW_PATH])


# ----------------------------
# Customers
# ----------------------------
def create_customer(
    db_session: Session,
    prev_state: Optional[FormState],
    form: Mapping[str, Any],
    storage: ImageStorage,
) -> ActionResult:
    validated = validate_customer_form(form)
    if isinstance(validated, FormState):
        return ActionResult(state=validated)

    image_url = None
    if validated.image_url:
        try:
            image_url = storage.upload(validated.image_url)
        except OSError:
            logger.exception("Image upload failed for %s", validated.image_url.filename)
            return _failed("Image upload failed. Please try again.")

    customer = models.Customer(name=validated.name, email=validated.email, image_url=image_url)
    try:
        db_session.add(customer)
        db_session.commit()
    except SQLAlchemyError:
        db_session.rollback()
        logger.exception("Database insert error for customer %s", validated.email)
        return _failed("Database Error: Failed to Create Customer.")

    logger.info("Created customer %s", customer.id)
    return ActionResult(revalidate=[CUSTOMERS_PATH, OVERVIEW_PATH], redirect=CUSTOMERS_PATH)


# ----------------------------
# Sign in
# ----------------------------
def authenticate(db_session: Session, prev_state: Optional[FormState], form: Mapping[str, Any]) -> ActionResult:
    """
    Known AuthError kinds become a one-line message; anything else is
    re-raised to the caller.
    """
    try:
        user = auth.sign_in(db_session, form)
    except auth.AuthError as error:
        if error.type == "CredentialsSignin":
            return _failed("Invalid credentials.")
        return _failed("Something went wrong.")

    return ActionResult(
        redirect=auth.safe_redirect_target(form.get("redirectTo")),
        session_token=auth.create_session_token(user),
    )
