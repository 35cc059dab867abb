"""
Zugriffspruefung fuer Profil- und Haendlerseiten.

Alle Funktionen liefern nur True/False. Die Routen antworten bei False immer
mit 404, egal ob der Besucher nicht eingeloggt ist, die falsche Rolle hat oder
der Datensatz gar nicht existiert.
"""
import logging

from .models import Role

logger = logging.getLogger(__name__)


def can_view_profile(viewer, user_id):
    if viewer is None or not viewer.active:
        allowed = False
    elif viewer.role == Role.ADMIN:
        allowed = True
    elif viewer.role in (Role.USER, Role.MERCHANT):
        allowed = viewer.id == user_id
    else:
        allowed = False

    if not allowed:
        logger.info(f"Profil {user_id} fuer {viewer!r} gesperrt")
    return allowed


def can_view_dashboard(viewer):
    allowed = viewer is not None and viewer.active and viewer.role == Role.MERCHANT
    if not allowed:
        logger.info(f"Dashboard fuer {viewer!r} gesperrt")
    return allowed


def can_view_merchant_order(viewer, order_id):
    if not can_view_dashboard(viewer):
        return False
    return viewer.merchant_for_order_id(order_id)
