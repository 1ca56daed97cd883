"""Calcul des lignes et des totaux de devis/commandes en arithmétique décimale exacte."""
