"""
api.routes_import - /api/v1/<resource>/import endpoint.

Accepts CSV via multipart file upload or raw request body.
"""

from flask import request, jsonify

from api import api_bp
from import_engine import (
    ConfigurationError, EmptyInputError, ParseError, PersistenceConstraintError,
)
from services.import_resources import get_resource, all_resources


@api_bp.route("/resources", methods=["GET"])
def api_resources():
    return jsonify([
        {"name": r.name, "singular": r.singular, "plural": r.plural,
         "batch_size": r.options.batch_size}
        for r in all_resources()
    ])


@api_bp.route("/<name>/import", methods=["POST"])
def api_import_csv(name):
    """
    POST /api/v1/<name>/import?encoding=utf-8

    Multipart: field name 'file'
    Or: raw CSV as request body (Content-Type: text/csv).
    """
    resource = get_resource(name)
    if resource is None:
        return jsonify({"error": f"unknown resource {name!r}"}), 404

    encoding = request.args.get("encoding") or None

    if request.content_type and "multipart" in request.content_type:
        f = request.files.get("file")
        if not f:
            return jsonify({"error": "no file in upload"}), 400
        content = f.read()
    else:
        content = request.get_data()

    try:
        result = resource.run(content, encoding=encoding)
    except EmptyInputError as exc:
        return jsonify({"error": "empty file", "message": str(exc)}), 400
    except (ParseError, ConfigurationError) as exc:
        return jsonify({"error": "file format error", "message": str(exc)}), 400
    except PersistenceConstraintError as exc:
        body = {"error": "import failed", "message": str(exc)}
        if exc.result is not None:
            body["result"] = exc.result.to_dict()
        return jsonify(body), 422

    payload = result.to_dict()
    payload["messages"] = [m for _c, m in resource.flash_messages(result)]
    return jsonify(payload)
