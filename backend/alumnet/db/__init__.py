"""
Database module for AlumNet

Contains seed data and database utilities.
"""
from alumnet.db.seed_data import seed_all, clear_all

__all__ = ["seed_all", "clear_all"]
