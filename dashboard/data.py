# dashboard/data.py
"""
Read-only queries behind the dashboard pages. Results are plain pydantic
models so the page cache can store them.
"""
import math
import os
from typing import List, Optional

from sqlalchemy import String, case, cast, func, or_
from sqlalchemy.orm import Session

from . import models
from .schemas import CardData, CustomerOption, CustomerRow, InvoiceFormValues, InvoiceRow

ITEMS_PER_PAGE = int(os.getenv("ITEMS_PER_PAGE", "6"))
LATEST_INVOICES = 5


def _like(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _invoice_filter(query: str):
    pattern = _like(query)
    return or_(
        models.Customer.name.ilike(pattern, escape="\\"),
        models.Customer.email.ilike(pattern, escape="\\"),
        cast(models.Invoice.amount, String).ilike(pattern, escape="\\"),
        models.Invoice.date.ilike(pattern, escape="\\"),
        cast(models.Invoice.status, String).ilike(pattern, escape="\\"),
    )


def _customer_filter(query: str):
    pattern = _like(query)
    return or_(
        models.Customer.name.ilike(pattern, escape="\\"),
        models.Customer.email.ilike(pattern, escape="\\"),
    )


def _pages(count: int) -> int:
    return math.ceil(count / ITEMS_PER_PAGE)


def _offset(page: int) -> int:
    return (max(page, 1) - 1) * ITEMS_PER_PAGE


def _invoice_row(invoice: models.Invoice, customer: models.Customer) -> InvoiceRow:
    return InvoiceRow(
        id=invoice.id,
        customer_id=customer.id,
        name=customer.name,
        email=customer.email,
        image_url=customer.image_url,
        amount=invoice.amount,
        status=models.InvoiceStatus(invoice.status).value,
        date=invoice.date,
    )


def _invoices_with_customers(db_session: Session):
    return db_session.query(models.Invoice, models.Customer).join(
        models.Customer, models.Invoice.customer_id == models.Customer.id
    )


# ----------------------------
# Invoices
# ----------------------------
def fetch_filtered_invoices(db_session: Session, query: str, page: int) -> List[InvoiceRow]:
    rows = (
        _invoices_with_customers(db_session)
        .filter(_invoice_filter(query))
        .order_by(models.Invoice.date.desc(), models.Invoice.id)
        .offset(_offset(page))
        .limit(ITEMS_PER_PAGE)
        .all()
    )
    return [_invoice_row(inv, cust) for inv, cust in rows]


def fetch_invoices_pages(db_session: Session, query: str) -> int:
    count = (
        db_session.query(func.count(models.Invoice.id))
        .select_from(models.Invoice)
        .join(models.Customer, models.Invoice.customer_id == models.Customer.id)
        .filter(_invoice_filter(query))
        .scalar()
    )
    return _pages(count or 0)


def fetch_latest_invoices(db_session: Session) -> List[InvoiceRow]:
    rows = (
        _invoices_with_customers(db_session)
        .order_by(models.Invoice.date.desc(), models.Invoice.id)
        .limit(LATEST_INVOICES)
        .all()
    )
    return [_invoice_row(inv, cust) for inv, cust in rows]


def fetch_invoice_by_id(db_session: Session, invoice_id: str) -> Optional[InvoiceFormValues]:
    invoice = db_session.get(models.Invoice, invoice_id)
    if not invoice:
        return None
    return InvoiceFormValues(
        id=invoice.id,
        customer_id=invoice.customer_id,
        amount=invoice.amount / 100,
        status=models.InvoiceStatus(invoice.status).value,
    )


# ----------------------------
# Customers
# ----------------------------
def fetch_customers(db_session: Session) -> List[CustomerOption]:
    rows = (
        db_session.query(models.Customer.id, models.Customer.name)
        .order_by(models.Customer.name, models.Customer.id)
        .all()
    )
    return [CustomerOption(id=row.id, name=row.name) for row in rows]


def fetch_filtered_customers(db_session: Session, query: str, page: int) -> List[CustomerRow]:
    def total_for(status):
        return func.coalesce(
            func.sum(case((models.Invoice.status == status, models.Invoice.amount), else_=0)), 0
        )

    rows = (
        db_session.query(
            models.Customer,
            func.count(models.Invoice.id),
            total_for(models.InvoiceStatus.PENDING),
            total_for(models.InvoiceStatus.PAID),
        )
        .outerjoin(models.Invoice, models.Invoice.customer_id == models.Customer.id)
        .filter(_customer_filter(query))
        .group_by(models.Customer.id)
        .order_by(models.Customer.name, models.Customer.id)
        .offset(_offset(page))
        .limit(ITEMS_PER_PAGE)
        .all()
    )
    return [
        CustomerRow(
            id=customer.id,
            name=customer.name,
            email=customer.email,
            image_url=customer.image_url,
            total_invoices=total_invoices,
            total_pending=int(pending),
            total_paid=int(paid),
        )
        for customer, total_invoices, pending, paid in rows
    ]


def fetch_customers_pages(db_session: Session, query: str) -> int:
    count = (
        db_session.query(func.count(models.Customer.id))
        .filter(_customer_filter(query))
        .scalar()
    )
    return _pages(count or 0)


# ----------------------------
# Overview
# ----------------------------
def fetch_card_data(db_session: Session) -> CardData:
    invoice_count = db_session.query(func.count(models.Invoice.id)).scalar() or 0
    customer_count = db_session.query(func.count(models.Customer.id)).scalar() or 0
    totals = dict(
        db_session.query(models.Invoice.status, func.coalesce(func.sum(models.Invoice.amount), 0))
        .group_by(models.Invoice.status)
        .all()
    )
    return CardData(
        number_of_invoices=invoice_count,
        number_of_customers=customer_count,
        total_paid_invoices=int(totals.get(models.InvoiceStatus.PAID, 0)),
        total_pending_invoices=int(totals.get(models.InvoiceStatus.PENDING, 0)),
    )
