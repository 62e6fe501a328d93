from .runner import REQUIRED_TABLES, VERSIONS_DIR, MigrationError, MigrationRunner

__all__ = ["MigrationError", "MigrationRunner", "REQUIRED_TABLES", "VERSIONS_DIR"]
