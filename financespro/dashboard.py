"""
financespro/dashboard.py

Read-only aggregations through the persistence gateway.

- tenant_dashboard(): the summary figures of one tenant's invoices.
- platform_*(): platform-wide figures for administrators.

No caching: every call is recomputed from the database.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from .database import Database
from .errors import NotFoundError
from .invoicing import STATUS_OVERDUE, STATUS_PAID, STATUS_PENDING
from .models import ACCOUNT_ENTREPRISE


def _int(value) -> int:
    return int(value or 0)


def _amount(value) -> float:
    return round(float(Decimal(str(value or 0))), 2)


def _timestamp(value) -> Optional[str]:
    """Raw-SQL timestamps are datetime (PostgreSQL) or text (SQLite); return ISO text either way."""
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value).replace(" ", "T", 1)


class DashboardAggregator:
    def __init__(self, database: Database):
        self.database = database

    # -----------------------------------------------------------------
    # Tenant
    # -----------------------------------------------------------------
    def tenant_dashboard(self, owner_id: str) -> dict:
        row = self.database.get(
            "SELECT COUNT(*) AS total_factures, "
            "COALESCE(SUM(CASE WHEN status = :paid THEN total ELSE 0 END), 0) AS total_paid, "
            "COALESCE(SUM(CASE WHEN status = :pending THEN total ELSE 0 END), 0) AS total_pending, "
            "COALESCE(SUM(CASE WHEN status = :overdue THEN 1 ELSE 0 END), 0) AS overdue_count "
            "FROM factures WHERE user_id = :user_id",
            {
                "user_id": owner_id,
                "paid": STATUS_PAID,
                "pending": STATUS_PENDING,
                "overdue": STATUS_OVERDUE,
            },
        ) or {}
        clients = self.database.get(
            "SELECT COUNT(*) AS total FROM clients WHERE user_id = :user_id",
            {"user_id": owner_id},
        ) or {}

        return {
            "totalFactures": _int(row.get("total_factures")),
            "totalPaid": _amount(row.get("total_paid")),
            "totalPending": _amount(row.get("total_pending")),
            "overdueCount": _int(row.get("overdue_count")),
            "totalClients": _int(clients.get("total")),
        }

    # -----------------------------------------------------------------
    # Platform (administrators)
    # -----------------------------------------------------------------
    def platform_stats(self) -> dict:
        row = self.database.get(
            "SELECT "
            "(SELECT COUNT(*) FROM users) AS total_users, "
            "(SELECT COUNT(*) FROM users WHERE status = :active) AS active_users, "
            "(SELECT COUNT(DISTINCT company) FROM users WHERE account_type = :entreprise) AS total_companies, "
            "(SELECT COUNT(*) FROM factures) AS total_invoices, "
            "(SELECT COUNT(*) FROM factures WHERE status = :pending) AS pending_invoices, "
            "(SELECT COALESCE(SUM(total), 0) FROM factures WHERE status = :paid) AS total_revenue",
            {
                "active": "active",
                "entreprise": ACCOUNT_ENTREPRISE,
                "pending": STATUS_PENDING,
                "paid": STATUS_PAID,
            },
        ) or {}

        return {
            "totalUsers": _int(row.get("total_users")),
            "totalCompanies": _int(row.get("total_companies")),
            "totalInvoices": _int(row.get("total_invoices")),
            "totalRevenue": _amount(row.get("total_revenue")),
            "activeUsers": _int(row.get("active_users")),
            "pendingInvoices": _int(row.get("pending_invoices")),
        }

    def list_users(self) -> list[dict]:
        rows = self.database.all(
            "SELECT id, email, full_name, company, account_type, status, created_at "
            "FROM users ORDER BY created_at DESC"
        )
        for row in rows:
            row["created_at"] = _timestamp(row["created_at"])
        return rows

    def user_detail(self, user_id: str) -> dict:
        user = self.database.get(
            "SELECT id, email, full_name, company, account_type, status, created_at "
            "FROM users WHERE id = :user_id",
            {"user_id": user_id},
        )
        if user is None:
            raise NotFoundError("Utilisateur introuvable")

        stats = self.database.get(
            "SELECT "
            "(SELECT COUNT(*) FROM clients WHERE user_id = :user_id) AS clients, "
            "(SELECT COUNT(*) FROM services WHERE user_id = :user_id) AS services, "
            "(SELECT COUNT(*) FROM factures WHERE user_id = :user_id) AS invoices, "
            "(SELECT COALESCE(SUM(total), 0) FROM factures WHERE user_id = :user_id AND status = :paid) AS revenue",
            {"user_id": user_id, "paid": STATUS_PAID},
        ) or {}

        user["created_at"] = _timestamp(user["created_at"])
        user["stats"] = {
            "clients": _int(stats.get("clients")),
            "services": _int(stats.get("services")),
            "invoices": _int(stats.get("invoices")),
            "revenue": _amount(stats.get("revenue")),
        }
        return user

    def list_companies(self) -> list[dict]:
        rows = self.database.all(
            "SELECT u.id, u.company, u.full_name AS contact_name, u.email, u.created_at, "
            "(SELECT COUNT(*) FROM clients c WHERE c.user_id = u.id) AS total_clients, "
            "(SELECT COUNT(*) FROM services s WHERE s.user_id = u.id) AS total_services, "
            "(SELECT COUNT(*) FROM factures f WHERE f.user_id = u.id) AS total_invoices, "
            "(SELECT COALESCE(SUM(f.total), 0) FROM factures f "
            " WHERE f.user_id = u.id AND f.status = :paid) AS total_revenue "
            "FROM users u WHERE u.account_type = :entreprise "
            "ORDER BY u.created_at DESC",
            {"paid": STATUS_PAID, "entreprise": ACCOUNT_ENTREPRISE},
        )
        for row in rows:
            row["created_at"] = _timestamp(row["created_at"])
            row["total_clients"] = _int(row["total_clients"])
            row["total_services"] = _int(row["total_services"])
            row["total_invoices"] = _int(row["total_invoices"])
            row["total_revenue"] = _amount(row["total_revenue"])
        return rows

    def recent_activity(self, limit: int = 10) -> list[dict]:
        users = self.database.all(
            "SELECT full_name, email, created_at FROM users ORDER BY created_at DESC LIMIT 5"
        )
        invoices = self.database.all(
            "SELECT f.numero_facture, f.total, f.created_at, u.company "
            "FROM factures f JOIN users u ON f.user_id = u.id "
            "ORDER BY f.created_at DESC LIMIT 5"
        )

        activities = [
            {
                "type": "user_registered",
                "description": row["full_name"],
                "details": row["email"],
                "timestamp": _timestamp(row["created_at"]),
            }
            for row in users
        ]
        activities.extend(
            {
                "type": "invoice_created",
                "description": f"Facture {row['numero_facture']}",
                "details": f"{_amount(row['total']):.2f} CHF",
                "company": row["company"],
                "timestamp": _timestamp(row["created_at"]),
            }
            for row in invoices
        )

        activities.sort(key=lambda item: item["timestamp"] or "", reverse=True)
        return activities[:limit]
