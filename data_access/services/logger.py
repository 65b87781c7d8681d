"""
Base Logger Factory - Generische Logger-Erstellung
Wird vom Datenbank-Zugriff (SQLite, SQL Server) verwendet.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union

from config.settings import LOG_DIR, LOG_CONSOLE_LEVEL, LOG_FILE_LEVEL


class LazyFileHandler(logging.FileHandler):
    """FileHandler, der Verzeichnis und Datei erst beim ersten Log-Eintrag anlegt"""

    def __init__(self, filename: Path, encoding: Optional[str] = None):
        super().__init__(filename, encoding=encoding, delay=True)

    def _open(self):
        Path(self.baseFilename).parent.mkdir(parents=True, exist_ok=True)
        return super()._open()


def create_module_logger(
    module_name: str,
    log_subdir: str,
    console_level: Union[int, str] = logging.ERROR,
    file_level: Union[int, str] = logging.INFO,
    file_name: Optional[str] = None,
    log_dir: Optional[Path] = None
) -> logging.Logger:
    """
    Generische Logger Factory

    Args:
        module_name: Name des Loggers (z.B. 'DB_ACCESS')
        log_subdir: Unterverzeichnis in logs/ (z.B. 'db_access')
        console_level: Log Level für Console (default: ERROR)
        file_level: Log Level für File (default: INFO)
        file_name: Optional - Name der Log-Datei (default: {log_subdir}.log)
        log_dir: Optional - Basisverzeichnis (default: LOG_DIR aus settings)

    Returns:
        Konfigurierter Logger mit Console + File Handler
    """
    logger = logging.getLogger(module_name)
    logger.setLevel(logging.DEBUG)  # Niedrigster Level, Handler filtern dann

    # Verhindere doppelte Handler (nur eigene, nicht die des Root-Loggers)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        datefmt='%d.%m.%Y %H:%M:%S'
    )

    # 1. Console Handler (stderr, default nur ERROR+)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # 2. File Handler (logs/{log_subdir}/{file_name}), Datei erst beim ersten Eintrag
    target_dir = Path(log_dir or LOG_DIR) / log_subdir
    log_file = file_name or f"{log_subdir}.log"
    file_handler = LazyFileHandler(target_dir / log_file, encoding='utf-8')
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger


# DB Logger: INFO+ → logs/db_access/db_access.log, ERROR+ → Console
db_logger = create_module_logger('DB_ACCESS', 'db_access',
                                 console_level=LOG_CONSOLE_LEVEL,
                                 file_level=LOG_FILE_LEVEL)
