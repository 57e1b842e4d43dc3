"""Concrete adapters behind the interfaces in :mod:`rfa_archive.interfaces`."""
