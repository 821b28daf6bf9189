# dashboard/seed.py
"""
Create the tables, a login user and a few demo rows.

    python -m dashboard.seed
"""
import os
import logging

from sqlalchemy.orm import Session

from . import db, models, utils

logger = logging.getLogger(__name__)

DEMO_CUSTOMERS = [
    ("Delba de Oliveira", "delba@oliveira.com"),
    ("Lee Robinson", "lee@robinson.com"),
    ("Hector Simpson", "hector@simpson.com"),
]

DEMO_INVOICES = [
    # (customer index, amount in cents, status, date)
    (0, 15795, "pending", "2022-12-06"),
    (1, 20348, "pending", "2022-11-14"),
    (2, 3040, "paid", "2022-10-29"),
    (0, 44800, "paid", "2023-09-10"),
]


def seed(db_session: Session, email: str, password: str, name: str = "User") -> models.User:
    user = db_session.query(models.User).filter(models.User.email == email).first()
    if user:
        logger.info("User %s already exists, skipping seed", email)
        return user

    user = models.User(name=name, email=email, password=utils.hash_password(password))
    db_session.add(user)
    customers = [models.Customer(name=n, email=e) for n, e in DEMO_CUSTOMERS]
    db_session.add_all(customers)
    db_session.flush()
    db_session.add_all(
        models.Invoice(customer_id=customers[i].id, amount=amount, status=models.InvoiceStatus(status), date=day)
        for i, amount, status, day in DEMO_INVOICES
    )
    db_session.commit()
    logger.info("Seeded user %s with %d customers", email, len(customers))
    return user


if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    db.init_db()
    session = db.SessionLocal()
    try:
        seed(
            session,
            email=os.getenv("SEED_USER_EMAIL", "user@nextmail.com"),
            password=os.getenv("SEED_USER_PASSWORD", "123456"),
        )
    finally:
        session.close()
