# Overview: Enumerations shared by models, validation, import and export.

BAG_STATUSES = (
    "en_commande",
    "en_transit",
    "recu",
    "en_remise_en_etat",
    "pret_a_vendre",
    "en_vente",
    "vendu",
)

SOLD_STATUS = "vendu"
RELISTED_STATUS = "en_vente"

CONDITIONS = {
    "neuf_etiquette": "Neuf avec etiquette",
    "neuf_sans_etiquette": "Neuf sans etiquette",
    "tres_bon": "Tres bon etat",
    "bon": "Bon etat",
    "correct": "Etat correct",
}

PLATFORMS = {
    "vinted": "Vinted",
    "vestiaire_collectif": "Vestiaire Collectif",
    "leboncoin": "Le Bon Coin",
    "autre": "Autre",
}

USER_ROLES = {
    "admin": "Administrateur",
    "seller": "Vendeur",
}

ROLE_ADMIN = "admin"
ROLE_SELLER = "seller"

MONTH_NAMES = ("Jan", "Fev", "Mar", "Avr", "Mai", "Juin", "Juil", "Aout", "Sep", "Oct", "Nov", "Dec")
