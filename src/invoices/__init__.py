"""Facturation des commandes et suivi des encaissements."""
