"""
ui.routes_import - CSV import upload pages, one per registered resource.
"""

import logging

from flask import request, render_template, flash, redirect, url_for, abort

from ui import ui_bp
from import_engine import (
    ConfigurationError, EmptyInputError, ParseError, PersistenceConstraintError,
)
from services.import_resources import get_resource, all_resources

logger = logging.getLogger(__name__)


@ui_bp.route("/admin/")
def admin_index():
    return render_template("admin_index.html", resources=all_resources())


@ui_bp.route("/admin/<name>/import", methods=["GET"])
def import_page(name):
    resource = get_resource(name) or abort(404)
    return render_template("import.html", resource=resource)


@ui_bp.route("/admin/<name>/do_import", methods=["POST"])
def do_import(name):
    resource = get_resource(name) or abort(404)
    back = url_for("ui.import_page", name=name)

    f = request.files.get("file")
    if not f or not f.filename:
        flash("Please, select file to import", "danger")
        return redirect(back)

    encoding = request.form.get("encoding", "").strip() or None
    try:
        result = resource.run(f.stream, encoding=encoding)
    except EmptyInputError:
        flash("You can't import empty file", "warning")
        return redirect(back)
    except ParseError as exc:
        flash(f"Please, upload a valid CSV file ({exc})", "danger")
        return redirect(back)
    except ConfigurationError as exc:
        flash(f"Error: {exc}", "danger")
        return redirect(back)
    except PersistenceConstraintError as exc:
        logger.warning(f"Import into {name} failed: {exc}")
        flash(f"Error: {exc}", "danger")
        return redirect(back)

    for category, message in resource.flash_messages(result):
        flash(message, category)
    return redirect(back)
