"""
financespro/accounts.py

User accounts: registration, credential checks, administrator bootstrap and status changes.

Rules:
- Email is globally unique (case-insensitive; stored lower-cased).
- Self-registration only creates "entreprise" accounts. Administrators are created
  with the `flask create-admin` command.
- Only "active" accounts may log in.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from .errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationError, field_error
from .extensions import db
from .models import ACCOUNT_ADMINISTRATEUR, ACCOUNT_ENTREPRISE, USER_STATUSES, User
from .utils import clean_str, generate_id, is_valid_email

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

EMAIL_TAKEN_MESSAGE = "Cet email est déjà utilisé"


def _normalize_email(value) -> Optional[str]:
    email = clean_str(value)
    return email.lower() if email else None


def create_account(
    email: str,
    password: str,
    full_name: str,
    company: str,
    account_type: str = ACCOUNT_ENTREPRISE,
) -> User:
    """Insert a user. Raises ValidationError when the email is already in use."""
    email = _normalize_email(email)
    if User.query.filter_by(email=email).first():
        raise ValidationError(EMAIL_TAKEN_MESSAGE, errors=[field_error("email", EMAIL_TAKEN_MESSAGE)])

    user = User(
        id=generate_id("user"),
        email=email,
        full_name=full_name,
        company=company,
        account_type=account_type,
        status="active",
    )
    user.set_password(password)

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError(EMAIL_TAKEN_MESSAGE, errors=[field_error("email", EMAIL_TAKEN_MESSAGE)])

    logger.info("user_registered id=%s account_type=%s", user.id, account_type)
    return user


def register(payload: dict) -> User:
    """Validate a registration body and create the account."""
    errors = []

    email = _normalize_email(payload.get("email"))
    if not is_valid_email(email):
        errors.append(field_error("email", "Un email valide est obligatoire"))

    password = payload.get("password")
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        errors.append(field_error("password", f"Le mot de passe doit contenir au moins {MIN_PASSWORD_LENGTH} caractères"))

    full_name = clean_str(payload.get("full_name"))
    if not full_name:
        errors.append(field_error("full_name", "Le nom complet est obligatoire"))

    company = clean_str(payload.get("company"))
    if not company:
        errors.append(field_error("company", "Le nom de l'entreprise est obligatoire"))

    account_type = clean_str(payload.get("account_type")) or ACCOUNT_ENTREPRISE
    if account_type != ACCOUNT_ENTREPRISE:
        errors.append(field_error("account_type", "Seuls les comptes entreprise peuvent s'inscrire"))

    if errors:
        raise ValidationError(errors=errors)

    return create_account(email, password, full_name, company, ACCOUNT_ENTREPRISE)


def authenticate(payload: dict) -> User:
    """Check credentials. Unknown email and wrong password give the same 401."""
    errors = []
    email = _normalize_email(payload.get("email"))
    if not is_valid_email(email):
        errors.append(field_error("email", "Un email valide est obligatoire"))
    password = payload.get("password")
    if not isinstance(password, str) or not password:
        errors.append(field_error("password", "Le mot de passe est obligatoire"))
    if errors:
        raise ValidationError(errors=errors)

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        logger.info("login_failed email=%s", email)
        raise AuthenticationError("Email ou mot de passe incorrect")

    if not user.is_enabled:
        logger.info("login_refused user_id=%s status=%s", user.id, user.status)
        raise AuthorizationError("Ce compte est désactivé")

    return user


def create_administrator(email: str, password: str, full_name: str, company: str) -> User:
    """Bootstrap an administrator account (CLI)."""
    if not is_valid_email(email) or len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Email valide et mot de passe d'au moins {MIN_PASSWORD_LENGTH} caractères requis"
        )
    return create_account(email, password, full_name, company, ACCOUNT_ADMINISTRATEUR)


def set_status(user_id: str, status) -> User:
    status = clean_str(status)
    if status not in USER_STATUSES:
        raise ValidationError(
            "Statut invalide",
            errors=[field_error("status", f"Valeurs possibles: {', '.join(USER_STATUSES)}")],
        )

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("Utilisateur introuvable")

    user.status = status
    db.session.commit()

    logger.info("user_status_changed id=%s status=%s", user_id, status)
    return user
