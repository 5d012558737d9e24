"""
FinancesPro Suisse – Domain Models

Tenancy:
- User is the tenancy root. Client, Service and Facture rows carry user_id and
  every registry query filters on it.

Invoices:
- articles are stored as JSON text and parsed back on read (see invoicing.py).
- subtotal / tva / total are always computed server-side.
- numero_facture is allocated from invoice_sequences (one row per tenant).

IMPORTANT:
- Primary keys are opaque strings ("client_<ms>_<rand>"), generated in utils.generate_id().
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from werkzeug.security import check_password_hash, generate_password_hash

from .extensions import db

ACCOUNT_ENTREPRISE = "entreprise"
ACCOUNT_ADMINISTRATEUR = "administrateur"

USER_STATUSES = ("active", "inactive", "suspended")


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def _iso(value) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def _amount(value) -> float:
    """Numeric column -> JSON number."""
    if value is None:
        return 0.0
    return float(Decimal(str(value)))


# ---------------------------------------------------------------------
# Users (tenants)
# ---------------------------------------------------------------------
class User(db.Model):
    """Registered account. Tenancy root for clients, services and invoices."""

    __tablename__ = "users"

    id = db.Column(db.String(64), primary_key=True)

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    full_name = db.Column(db.String(255), nullable=False)
    company = db.Column(db.String(255), nullable=False)

    account_type = db.Column(db.String(20), nullable=False, default=ACCOUNT_ENTREPRISE, index=True)
    status = db.Column(db.String(20), nullable=False, default="active", index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self) -> bool:
        return self.account_type == ACCOUNT_ADMINISTRATEUR

    @property
    def is_enabled(self) -> bool:
        return self.status == "active"

    def to_dict(self) -> dict:
        """Public representation (never includes the password hash)."""
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "company_name": self.company,
            "account_type": self.account_type,
            "role": self.account_type,
            "status": self.status,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<User {self.email}>"


# ---------------------------------------------------------------------
# Tenant registries
# ---------------------------------------------------------------------
class Client(db.Model):
    __tablename__ = "clients"

    id = db.Column(db.String(64), primary_key=True)

    user_id = db.Column(
        db.String(64),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    company = db.Column(db.String(255), nullable=False)
    contact_person = db.Column(db.String(255))
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(50))
    address = db.Column(db.String(255))
    city = db.Column(db.String(100))
    postal_code = db.Column(db.String(20))
    country = db.Column(db.String(100), nullable=False, default="Suisse")
    category = db.Column(db.String(50), nullable=False, default="facture")

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company": self.company,
            "contact_person": self.contact_person,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "postal_code": self.postal_code,
            "country": self.country,
            "category": self.category,
            "user_id": self.user_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Client {self.company}>"


class Service(db.Model):
    """Billable catalog entry."""

    __tablename__ = "services"

    id = db.Column(db.String(64), primary_key=True)

    user_id = db.Column(
        db.String(64),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    category = db.Column(db.String(50), nullable=False, default="service")

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": _amount(self.price),
            "category": self.category,
            "user_id": self.user_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Service {self.name}>"


# ---------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------
class Facture(db.Model):
    __tablename__ = "factures"

    id = db.Column(db.String(64), primary_key=True)
    numero_facture = db.Column(db.String(32), nullable=False, index=True)

    user_id = db.Column(
        db.String(64),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # No FK: invoices keep their denormalized client_name when the client is deleted.
    client_id = db.Column(db.String(64), nullable=False, index=True)
    client_name = db.Column(db.String(255), nullable=False)

    date = db.Column(db.Date, nullable=False)
    echeance = db.Column(db.Date, nullable=False, index=True)

    # JSON list of {description, qty, price}
    articles = db.Column(db.Text, nullable=False, default="[]")

    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    tva = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    status = db.Column(db.String(20), nullable=False, default="pending", index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("user_id", "numero_facture", name="uq_facture_user_numero"),
    )

    def __repr__(self):
        return f"<Facture {self.numero_facture}>"


class InvoiceSequence(db.Model):
    """Per-tenant invoice counter. Incremented atomically with UPDATE ... RETURNING."""

    __tablename__ = "invoice_sequences"

    user_id = db.Column(
        db.String(64),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    last_value = db.Column(db.Integer, nullable=False, default=0)


# ---------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------
class AuditLog(db.Model):
    """Mutation history for clients, services and invoices."""

    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.String(64), nullable=True, index=True)
    user_email = db.Column(db.String(255), nullable=True)

    entity_type = db.Column(db.String(50), nullable=False, index=True)
    entity_id = db.Column(db.String(64), nullable=False, index=True)

    action = db.Column(db.String(20), nullable=False, index=True)

    before_data = db.Column(db.Text, nullable=True)
    after_data = db.Column(db.Text, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
