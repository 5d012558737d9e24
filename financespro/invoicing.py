"""
financespro/invoicing.py

Invoice ("facture") engine.

Responsibilities:
- Articles codec: [{description, qty, price}] <-> JSON text, lossless round trip.
- Totals: subtotal = Σ qty × price, tva = subtotal × TVA_RATE, total = subtotal
  (VAT is disclosed on the invoice, not added). Caller-supplied amounts are ignored.
- Numbering: "FAC-0001", one atomic counter per tenant (invoice_sequences).
- Status vocabulary: draft / pending / paid / overdue. The French UI labels are
  accepted as input aliases and exposed as status_label.

IMPORTANT:
- Numbers are allocated in their own committed transaction, so they are unique under
  concurrent creation and never reused after a delete. Gaps are allowed.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError

from .database import Database
from .errors import ValidationError, field_error
from .models import Client, Facture
from .registries import OwnedRegistry
from .utils import clean_str, is_number, parse_iso_date

logger = logging.getLogger(__name__)

STATUS_DRAFT = "draft"
STATUS_PENDING = "pending"
STATUS_PAID = "paid"
STATUS_OVERDUE = "overdue"
STATUSES = (STATUS_DRAFT, STATUS_PENDING, STATUS_PAID, STATUS_OVERDUE)

# Presentation labels (French UI). Not a second source of truth.
STATUS_LABELS = {
    STATUS_DRAFT: "brouillon",
    STATUS_PENDING: "envoyée",
    STATUS_PAID: "payée",
    STATUS_OVERDUE: "en retard",
}

_STATUS_ALIASES = {label: status for status, label in STATUS_LABELS.items()}
_STATUS_ALIASES.update({
    "envoyee": STATUS_PENDING,
    "en attente": STATUS_PENDING,
    "payee": STATUS_PAID,
})

_NEXT_NUMBER_SQL = (
    "UPDATE invoice_sequences SET last_value = last_value + 1 "
    "WHERE user_id = :user_id RETURNING last_value"
)

# First allocation for a tenant: continue after any invoices created before the counter existed.
_SEED_NUMBER_SQL = (
    "INSERT INTO invoice_sequences (user_id, last_value) "
    "SELECT :user_id, COUNT(*) + 1 FROM factures WHERE user_id = :user_id "
    "RETURNING last_value"
)

# Largest value of the Numeric(12, 2) amount columns.
MAX_AMOUNT = Decimal("9999999999.99")


# ---------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------
def _money(x: Decimal) -> Decimal:
    return x.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def normalize_status(value) -> Optional[str]:
    """Map a status or one of its French labels to the canonical value. None if unknown."""
    if value is None:
        return None
    key = str(value).strip().lower()
    if key in STATUSES:
        return key
    return _STATUS_ALIASES.get(key)


def _finite_decimal(value) -> Optional[Decimal]:
    """JSON number as an exact Decimal. None for non-numbers, NaN and infinities."""
    if not is_number(value):
        return None
    parsed = Decimal(str(value))
    return parsed if parsed.is_finite() else None


def validate_articles(raw) -> tuple[list, list]:
    """
    Return (articles, errors). Articles keep the caller's description text and numeric types.

    Quantities, prices, line amounts and the invoice subtotal are bounded by MAX_AMOUNT
    so that the computed totals fit the stored amount columns.
    """
    if not isinstance(raw, list) or not raw:
        return [], [field_error("articles", "Les articles doivent être une liste non vide")]

    articles, errors = [], []
    subtotal = Decimal("0")
    for index, item in enumerate(raw):
        prefix = f"articles[{index}]"
        if not isinstance(item, dict):
            errors.append(field_error(prefix, "Article invalide"))
            continue

        description = item.get("description")
        if not isinstance(description, str) or not description.strip():
            errors.append(field_error(f"{prefix}.description", "La description est obligatoire"))

        qty = item.get("qty")
        qty_value = _finite_decimal(qty)
        if qty_value is None or qty_value <= 0:
            errors.append(field_error(f"{prefix}.qty", "La quantité doit être un nombre positif"))
            qty_value = None
        elif qty_value > MAX_AMOUNT:
            errors.append(field_error(f"{prefix}.qty", "La quantité est trop élevée"))
            qty_value = None

        price = item.get("price")
        price_value = _finite_decimal(price)
        if price_value is None or price_value < 0:
            errors.append(field_error(f"{prefix}.price", "Le prix doit être un nombre positif ou nul"))
            price_value = None
        elif price_value > MAX_AMOUNT:
            errors.append(field_error(f"{prefix}.price", "Le prix est trop élevé"))
            price_value = None

        if qty_value is not None and price_value is not None:
            line = qty_value * price_value
            if line > MAX_AMOUNT:
                errors.append(field_error(f"{prefix}.price", "Le montant de la ligne est trop élevé"))
            else:
                subtotal += line

        articles.append({"description": description, "qty": qty, "price": price})

    if not errors and _money(subtotal) > MAX_AMOUNT:
        errors.append(field_error("articles", "Le total de la facture est trop élevé"))

    return articles, errors


def serialize_articles(articles: list) -> str:
    return json.dumps(articles, ensure_ascii=False)


def deserialize_articles(raw) -> list:
    if raw is None or raw == "":
        return []
    if isinstance(raw, list):
        return raw
    return json.loads(raw)


def compute_totals(articles: list, tva_rate: Decimal) -> dict:
    """Server-side amounts for a list of validated articles."""
    subtotal = Decimal("0.00")
    for article in articles:
        subtotal += Decimal(str(article["qty"])) * Decimal(str(article["price"]))

    subtotal = _money(subtotal)
    return {
        "subtotal": subtotal,
        "tva": _money(subtotal * tva_rate),
        "total": subtotal,
    }


def format_invoice_number(value: int, prefix: str = "FAC", width: int = 4) -> str:
    return f"{prefix}-{str(value).zfill(width)}"


def is_overdue(facture: Facture, today: Optional[date] = None) -> bool:
    """Pending invoice whose due date has passed."""
    today = today or date.today()
    return facture.status == STATUS_PENDING and facture.echeance is not None and facture.echeance < today


def serialize_facture(facture: Facture, today: Optional[date] = None) -> dict:
    return {
        "id": facture.id,
        "numero_facture": facture.numero_facture,
        "client_id": facture.client_id,
        "client_name": facture.client_name,
        "date": facture.date.isoformat() if facture.date else None,
        "echeance": facture.echeance.isoformat() if facture.echeance else None,
        "articles": deserialize_articles(facture.articles),
        "subtotal": float(Decimal(str(facture.subtotal or 0))),
        "tva": float(Decimal(str(facture.tva or 0))),
        "total": float(Decimal(str(facture.total or 0))),
        "status": facture.status,
        "status_label": STATUS_LABELS.get(facture.status, facture.status),
        "is_overdue": is_overdue(facture, today),
        "user_id": facture.user_id,
        "created_at": facture.created_at.isoformat() if facture.created_at else None,
        "updated_at": facture.updated_at.isoformat() if facture.updated_at else None,
    }


# ---------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------
class FactureEngine(OwnedRegistry):
    model = Facture
    id_prefix = "facture"
    not_found_message = "Facture introuvable"

    def __init__(
        self,
        session,
        database: Database,
        tva_rate: Decimal,
        number_prefix: str = "FAC",
        number_width: int = 4,
    ):
        super().__init__(session)
        self.database = database
        self.tva_rate = Decimal(str(tva_rate))
        self.number_prefix = number_prefix
        self.number_width = number_width

    def next_invoice_number(self, owner_id: str) -> str:
        """Allocate the tenant's next number (atomic increment, committed immediately)."""
        params = {"user_id": owner_id}
        row = self.database.run(_NEXT_NUMBER_SQL, params)
        if row is None:
            try:
                row = self.database.run(_SEED_NUMBER_SQL, params)
            except IntegrityError:
                # Another request created the counter first.
                row = self.database.run(_NEXT_NUMBER_SQL, params)

        return format_invoice_number(int(row["last_value"]), self.number_prefix, self.number_width)

    def validate(self, payload: dict, owner_id: str, record=None) -> dict:
        errors = []

        # An invoice keeps its client_id after the client is deleted.
        client_id = clean_str(payload.get("client_id"))
        keeps_client = record is not None and client_id == record.client_id
        if not client_id:
            errors.append(field_error("client_id", "L'identifiant du client est obligatoire"))
        elif not keeps_client and self._find_client(client_id, owner_id) is None:
            errors.append(field_error("client_id", "Client introuvable"))

        client_name = clean_str(payload.get("client_name"))
        if not client_name:
            errors.append(field_error("client_name", "Le nom du client est obligatoire"))

        issue_date = parse_iso_date(payload.get("date"))
        if issue_date is None:
            errors.append(field_error("date", "La date est obligatoire (AAAA-MM-JJ)"))

        due_date = parse_iso_date(payload.get("echeance"))
        if due_date is None:
            errors.append(field_error("echeance", "L'échéance est obligatoire (AAAA-MM-JJ)"))
        elif issue_date is not None and due_date < issue_date:
            errors.append(field_error("echeance", "L'échéance ne peut pas précéder la date de la facture"))

        articles, article_errors = validate_articles(payload.get("articles"))
        errors.extend(article_errors)

        status = None
        if payload.get("status") not in (None, ""):
            status = normalize_status(payload.get("status"))
            if status is None:
                errors.append(field_error("status", f"Statut invalide (valeurs: {', '.join(STATUSES)})"))

        if errors:
            raise ValidationError(errors=errors)

        return {
            "client_id": client_id,
            "client_name": client_name,
            "date": issue_date,
            "echeance": due_date,
            "articles": articles,
            "status": status,
            "supplied_total": payload.get("total"),
        }

    def apply(self, record: Facture, fields: dict, *, creating: bool) -> None:
        articles = fields["articles"]
        totals = compute_totals(articles, self.tva_rate)

        supplied_total = fields.get("supplied_total")
        if is_number(supplied_total) and Decimal(str(supplied_total)) != totals["total"]:
            logger.debug(
                "facture_total_ignored supplied=%s computed=%s", supplied_total, totals["total"]
            )

        if creating:
            record.numero_facture = self.next_invoice_number(record.user_id)
            record.status = fields["status"] or STATUS_PENDING
        elif fields["status"]:
            record.status = fields["status"]

        record.client_id = fields["client_id"]
        record.client_name = fields["client_name"]
        record.date = fields["date"]
        record.echeance = fields["echeance"]
        record.articles = serialize_articles(articles)
        record.subtotal = totals["subtotal"]
        record.tva = totals["tva"]
        record.total = totals["total"]

    def _find_client(self, client_id: str, owner_id: str) -> Optional[Client]:
        return (
            self.session.query(Client)
            .filter(Client.id == client_id, Client.user_id == owner_id)
            .first()
        )

    def mark_overdue(self, today: Optional[date] = None, owner_id: Optional[str] = None) -> int:
        """Persist the overdue derivation: pending invoices past their due date become overdue."""
        today = today or date.today()
        q = self.session.query(Facture).filter(
            Facture.status == STATUS_PENDING,
            Facture.echeance < today,
        )
        if owner_id:
            q = q.filter(Facture.user_id == owner_id)

        count = q.update(
            {Facture.status: STATUS_OVERDUE, Facture.updated_at: datetime.utcnow()},
            synchronize_session=False,
        )
        self.session.commit()

        logger.info("factures_marked_overdue count=%s today=%s", count, today.isoformat())
        return count
