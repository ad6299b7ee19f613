"""
services - Business-logic layer sitting between API/UI and the import engine.
"""

from services.import_resources import (                  # noqa: F401
    ImportResource,
    register_resource,
    get_resource,
    all_resources,
    clear_resources,
)
