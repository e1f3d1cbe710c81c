"""Stages enriching records with looked up values."""
