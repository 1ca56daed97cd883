"""Expéditions partielles de commandes et suivi des quantités restant à expédier."""
