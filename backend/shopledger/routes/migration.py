# Overview: Flask API route that runs the legacy ledger migration.

from flask import Blueprint

from .. import get_names, get_store
from ..services.migration_service import MigrationError, migrate

migration_bp = Blueprint("migration", __name__, url_prefix="/api/migration")


@migration_bp.post("/run")
def run_migration():
    """
    Move rows of the flat Sales/Transactions tables into monthly partitions.

    Safe to repeat: ids already present in a partition are not appended again.
    """
    try:
        result = migrate(get_store(), get_names())
    except MigrationError as e:
        return {"error": str(e)}, 400
    return result.to_dict()
