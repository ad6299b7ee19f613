#!/usr/bin/env python3
"""
CSVIMPORT - Batch CSV import admin
==================================

Single-command run:  python main.py

See config.py for all environment-variable tunables.
"""

import logging

from flask import Flask, render_template

import config
from db import init_db, session_scope, Author, Post
from api import api_bp
from ui import ui_bp
from services.import_resources import register_resource


def create_app(db_url: str | None = None) -> Flask:
    """Flask application factory."""

    app = Flask(
        __name__,
        template_folder=str(config.BASE_DIR / "templates"),
    )
    app.secret_key = config.SECRET

    # ── Initialise database ─────────────────────────────────────────
    init_db(db_url or config.DB_URL)

    # ── Importable resources ────────────────────────────────────────
    register_default_resources()

    # ── Register blueprints ─────────────────────────────────────────
    app.register_blueprint(api_bp)
    app.register_blueprint(ui_bp)

    # ── Error handlers ──────────────────────────────────────────────
    @app.errorhandler(404)
    def _404(e):
        return render_template("error.html", code=404,
                               message="Page not found"), 404

    @app.errorhandler(500)
    def _500(e):
        return render_template("error.html", code=500,
                               message="Internal server error"), 500

    return app


def register_default_resources() -> None:
    """Demo resources: plain authors, and posts attached to one author."""
    register_resource("authors", Author, validate=True)
    register_resource(
        "posts", Post,
        validate=True,
        hint="Every imported post is attached to the first author.",
        context=_first_author_context,
        before_batch_import=_assign_author,
    )


def _first_author_context() -> dict:
    with session_scope() as session:
        author = session.query(Author).order_by(Author.id).first()
        return {"author_id": author.id if author else None}


def _assign_author(run):
    author_id = run.context.get("author_id")
    for row in run.rows:
        row["author_id"] = author_id


def main():
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("=" * 56)
    print("  CSVIMPORT - Batch CSV import admin")
    print("=" * 56)

    app = create_app()
    print(f"  Database: {config.DB_URL}")
    print(f"  Batch size: {config.IMPORT_BATCH_SIZE}")

    print(f"\n  http://{config.HOST}:{config.PORT}/admin/")
    print("=" * 56)

    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)


if __name__ == "__main__":
    main()
