import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..models import Address, Role, User, db

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("name", "street_address", "city", "state", "zip")


class AccountError(Exception):
    """Validierungsfehler beim Anlegen oder Aendern eines Kontos."""

    def __init__(self, messages):
        super().__init__("; ".join(messages))
        self.messages = messages


# --------------------------------
# Helper
# --------------------------------
def _email_taken(email, exclude_id=None):
    stmt = select(User.id).where(User.email == email)
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    return db.session.scalar(stmt) is not None


def _validate(name, email, exclude_id=None):
    errors = []
    if not name:
        errors.append("Name can't be blank")
    if not email:
        errors.append("Email can't be blank")
    elif _email_taken(email, exclude_id):
        errors.append("Email has already been taken")
    return errors


def _validate_address(data):
    return [f"Address {field.replace('_', ' ')} can't be blank"
            for field in ADDRESS_FIELDS if not data.get(field)]


def _commit(action):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning(f"{action}: E-Mail bereits vergeben")
        raise AccountError(["Email has already been taken"])
    except Exception:
        db.session.rollback()
        logger.exception(f"{action} fehlgeschlagen")
        raise


# --------------------------------
# Konto anlegen
# --------------------------------
def register_user(name, email, password, address=None, role=Role.USER):
    errors = _validate(name, email)
    if not password:
        errors.append("Password can't be blank")
    if address:
        errors.extend(_validate_address(address))
    if errors:
        raise AccountError(errors)

    user = User(name=name, email=email, role=role)
    user.set_password(password)
    db.session.add(user)

    if address:
        db.session.flush()
        add_address(user, address, make_default=True, commit=False)

    _commit("Registrierung")
    logger.info(f"Neues Konto angelegt: {user.email}")
    return user


def add_address(user, data, make_default=False, commit=True):
    errors = _validate_address(data)
    if errors:
        raise AccountError(errors)

    address = Address(user=user, **{field: data[field] for field in ADDRESS_FIELDS})
    db.session.add(address)
    if make_default:
        db.session.flush()
        user.default_address_id = address.id

    if commit:
        _commit("Adresse speichern")
    return address


# --------------------------------
# Konto aendern
# --------------------------------
def update_user(user, name, email, password=None):
    errors = _validate(name, email, exclude_id=user.id)
    if errors:
        raise AccountError(errors)

    user.name = name
    user.email = email
    if password:
        user.set_password(password)

    _commit("Profil speichern")
    logger.info(f"Profil aktualisiert: {user.email}")
    return user


# --------------------------------
# Login
# --------------------------------
def authenticate(email, password):
    user = db.session.scalars(select(User).where(User.email == email)).first()
    if user and user.active and user.check_password(password):
        return user
    logger.warning(f"Fehlgeschlagener Login fuer {email}")
    return None


def get_user(user_id):
    if user_id is None:
        return None
    return db.session.get(User, user_id)
