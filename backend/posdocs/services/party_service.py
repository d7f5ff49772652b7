# Overview: Lookups for the customers and sales reps named on documents.

from __future__ import annotations

from ..extensions import db
from ..models import Customer, User
from ..validation import ForbiddenError, NotFoundError, require_id


def require_customer(customer_id) -> Customer:
    customer_id = require_id(customer_id, "customerId")
    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError("Customer not found")
    return customer


def require_sales_rep(sales_rep_id) -> User:
    """
    Resolve the sales rep named on a document.

    This is a business rule rather than authorization: whoever is calling,
    the named user must hold the Sales Representative role.
    """
    sales_rep_id = require_id(sales_rep_id, "salesRepId")
    user = db.session.get(User, sales_rep_id)
    if not user or not user.is_active:
        raise NotFoundError("Sales representative not found")
    if not user.is_sales_rep:
        raise ForbiddenError("User is not a Sales Representative")
    return user
