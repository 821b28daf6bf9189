# dashboard/models.py
from sqlalchemy import Column, Integer, String, Enum, ForeignKey
from sqlalchemy.orm import relationship
from .db import Base
import enum
import uuid


def _new_id() -> str:
    return str(uuid.uuid4())


class InvoiceStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


class Customer(Base):
    __tablename__ = "customers"
    id = Column(String, primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    image_url = Column(String, nullable=True)  # public path, e.g. /customers/jane.png
    invoices = relationship("Invoice", back_populates="customer")


class Invoice(Base):
    __tablename__ = "invoices"
    id = Column(String, primary_key=True, default=_new_id)
    customer_id = Column(String, ForeignKey("customers.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # minor currency units (cents)
    status = Column(
        Enum(InvoiceStatus, values_callable=lambda e: [m.value for m in e], native_enum=False),
        nullable=False,
        default=InvoiceStatus.PENDING,
    )
    date = Column(String, nullable=False)  # ISO date, YYYY-MM-DD
    customer = relationship("Customer", back_populates="invoices")


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    password = Column(String, nullable=False)  # pbkdf2_sha256$iterations$salt$hash
