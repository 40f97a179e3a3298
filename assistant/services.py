"""
ASSISTANT App - Rule-based Help Assistant for KwiiGo

Answers short questions from the dashboards with live figures:
- Drivers: earnings (GAINS), assignments (LIVRAISONS, MISSIONS), COMMISSION
- Clients: order tracking (SUIVI, COMMANDE), price grid (TARIF, PRIX)
- Admins: platform summary (STATS)

Anything else gets the role's help message.
"""

import logging
from typing import Optional, Tuple

from django.conf import settings

from core.models import City, UserRole
from logistics.models import ACTIVE_STATUSES
from logistics.services import lifecycle
from logistics.services.pricing import pricing_engine

logger = logging.getLogger(__name__)

LATEST_ORDERS_LIMIT = 5


def _xaf(amount) -> str:
    return f"{amount:,.0f} FCFA".replace(',', ' ')


class AssistantService:
    """
    Keyword-driven replies per role.

    Matching is case insensitive and looks for the keyword anywhere
    in the message. The first matching intent wins.
    """

    # Command keywords
    DRIVER_EARNINGS = ['gains', 'revenus']
    DRIVER_DELIVERIES = ['livraisons', 'missions']
    DRIVER_COMMISSION = ['commission', 'dette']
    CLIENT_TRACKING = ['suivi', 'commande']
    CLIENT_PRICING = ['tarif', 'prix']
    ADMIN_STATS = ['stats', 'statistiques']

    @staticmethod
    def _matches(text: str, keywords) -> bool:
        return any(keyword in text for keyword in keywords)

    @classmethod
    def reply(cls, user, message: str) -> Tuple[str, str]:
        """
        Build the assistant's answer.

        Returns:
            (intent, reply_text) tuple

        Raises:
            ValueError: If the message is empty
        """
        text = (message or '').lower().strip()
        if not text:
            raise ValueError("Le message est obligatoire")

        if user.role == UserRole.DRIVER:
            handled = cls._driver_intent(user, text)
        elif user.role == UserRole.CLIENT:
            handled = cls._client_intent(user, text)
        else:
            handled = cls._admin_intent(text)

        if handled is None:
            handled = ('help', cls.help_message(user.role))

        logger.info(f"[ASSISTANT] {user.role} {user.email} -> {handled[0]}")
        return handled

    # ============================================
    # DRIVER
    # ============================================

    @classmethod
    def _driver_intent(cls, driver, text: str) -> Optional[Tuple[str, str]]:
        if cls._matches(text, cls.DRIVER_EARNINGS):
            return 'earnings', cls.handle_earnings(driver)
        if cls._matches(text, cls.DRIVER_DELIVERIES):
            return 'deliveries', cls.handle_deliveries(driver)
        if cls._matches(text, cls.DRIVER_COMMISSION):
            return 'commission', cls.handle_commission(driver)
        return None

    @classmethod
    def handle_earnings(cls, driver) -> str:
        from finance.services import wallet_summary

        wallet = wallet_summary(driver)
        return (
            f"Vos gains totaux sont de {_xaf(wallet['total_earned'])} "
            f"sur {wallet['completed_orders']} livraison(s) terminée(s). Continuez comme ça !"
        )

    @classmethod
    def handle_deliveries(cls, driver) -> str:
        active = lifecycle.orders_for_driver(driver).filter(status__in=ACTIVE_STATUSES)
        if not active:
            return "Vous n'avez pas de livraisons en cours pour le moment."

        lines = ["Voici vos livraisons en cours :"]
        for order in active:
            lines.append(
                f"- Commande {str(order.id)[-6:]} : {order.description} à "
                f"{order.delivery_address} pour {order.recipient_name}. "
                f"Statut : {order.get_status_display()}."
            )
        return "\n".join(lines)

    @classmethod
    def handle_commission(cls, driver) -> str:
        owed = driver.commission_owed
        if owed > 0:
            return (
                f"Vous devez {_xaf(owed)} de commission à la plateforme "
                f"({settings.PLATFORM_COMMISSION_PERCENT}% de chaque course)."
            )
        return "Vous n'avez aucune commission en attente. Merci !"

    # ============================================
    # CLIENT
    # ============================================

    @classmethod
    def _client_intent(cls, client, text: str) -> Optional[Tuple[str, str]]:
        if cls._matches(text, cls.CLIENT_TRACKING):
            return 'tracking', cls.handle_tracking(client)
        if cls._matches(text, cls.CLIENT_PRICING):
            return 'pricing', cls.handle_pricing()
        return None

    @classmethod
    def handle_tracking(cls, client) -> str:
        orders = lifecycle.orders_for_client(client)[:LATEST_ORDERS_LIMIT]
        if not orders:
            return "Vous n'avez encore passé aucune commande."

        lines = ["Vos dernières commandes :"]
        for order in orders:
            line = (
                f"- Commande {str(order.id)[-6:]} "
                f"({order.get_from_city_display()} → {order.get_to_city_display()}) : "
                f"{order.get_status_display()}"
            )
            if order.driver and order.status in ACTIVE_STATUSES:
                line += f", chauffeur {order.driver.full_name}"
            lines.append(line + ".")
        return "\n".join(lines)

    @classmethod
    def handle_pricing(cls) -> str:
        lines = [
            "Nos tarifs :",
            f"- Base : {_xaf(pricing_engine.price_per_kg)} par kg "
            f"(minimum {_xaf(pricing_engine.minimum_base)})",
        ]
        seen = set()
        for (origin, destination), fee in pricing_engine.route_fees.items():
            pair = frozenset((origin, destination))
            if pair in seen:
                continue
            seen.add(pair)
            lines.append(
                f"- {City(origin).label} ↔ {City(destination).label} : {_xaf(fee)}"
            )
        lines += [
            f"- Autres trajets : {_xaf(pricing_engine.default_route_fee)}",
            f"- Option urgente : +{_xaf(pricing_engine.urgent_fee)}",
            f"- Option fragile : +{_xaf(pricing_engine.fragile_fee)}",
        ]
        return "\n".join(lines)

    # ============================================
    # ADMIN
    # ============================================

    @classmethod
    def _admin_intent(cls, text: str) -> Optional[Tuple[str, str]]:
        if cls._matches(text, cls.ADMIN_STATS):
            return 'stats', cls.handle_stats()
        return None

    @classmethod
    def handle_stats(cls) -> str:
        from reports.services import DashboardService

        stats = DashboardService.admin_stats()
        users, orders = stats['users'], stats['orders']
        return (
            f"Plateforme : {users['total']} utilisateurs "
            f"({users['clients']} clients, {users['drivers']} chauffeurs).\n"
            f"Commandes : {orders['total']} au total, {orders['pending']} en attente, "
            f"{orders['in_progress']} en cours, {orders['completed']} livrées.\n"
            f"Chiffre d'affaires : {_xaf(stats['total_revenue'])}, "
            f"commissions : {_xaf(stats['total_commission'])}."
        )

    # ============================================
    # HELP
    # ============================================

    @staticmethod
    def help_message(role: str) -> str:
        if role == UserRole.DRIVER:
            return (
                "Je suis l'assistant KwiiGo. Demandez-moi :\n"
                "- « mes gains » pour vos revenus\n"
                "- « mes livraisons » ou « missions » pour vos courses en cours\n"
                "- « commission » pour ce que vous devez à la plateforme"
            )
        if role == UserRole.CLIENT:
            return (
                "Je suis l'assistant KwiiGo. Demandez-moi :\n"
                "- « suivi » ou « commande » pour l'état de vos commandes\n"
                "- « tarif » ou « prix » pour notre grille tarifaire"
            )
        return (
            "Je suis l'assistant KwiiGo. Demandez-moi « stats » "
            "pour un résumé de l'activité de la plateforme."
        )
