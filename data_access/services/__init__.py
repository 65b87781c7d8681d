"""Services Package - Zentrale Logger-Verwaltung"""

from .logger import create_module_logger, db_logger

__all__ = ['create_module_logger', 'db_logger']
