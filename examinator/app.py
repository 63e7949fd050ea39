# examinator/app.py
import logging

import click
from flask import Flask, jsonify, request
from flask_cors import CORS

from examinator.blob_store import BlobStore
from examinator.config import Config
from examinator.database import RecordStore
from examinator.errors import register_error_handlers
from examinator.routes.exam_routes import exam
from examinator.routes.result_routes import result
from examinator.scheduler import TaskScheduler
from examinator.services import ExamServices
from examinator.services.finisher import finish_exam
from examinator.utils.helpers import now_ts

logger = logging.getLogger(__name__)


def create_app(overrides=None, store=None, blobs=None, scheduler=None, clock=now_ts):
    config = Config.as_dict(**(overrides or {}))

    logging.basicConfig(
        level=config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.config.update(config)
    CORS(app, expose_headers="*")

    # =====================================================
    # LONG-LIVED CLIENTS
    # =====================================================
    if store is None:
        store = RecordStore.from_uri(config["MONGO_URI"], config["MONGO_DB"])
        store.ensure_indexes()
    if blobs is None:
        blobs = BlobStore(config["BLOB_ROOT"])
    if scheduler is None:
        scheduler = TaskScheduler(
            store.tasks,
            clock=clock,
            max_attempts=config["SCHEDULER_MAX_ATTEMPTS"],
            retry_delay=config["SCHEDULER_RETRY_DELAY"],
            lease=config["SCHEDULER_LEASE"],
        )

    app.extensions["examinator"] = ExamServices(store, blobs, scheduler, config, clock=clock)

    # =====================================================
    # BLUEPRINTS
    # =====================================================
    app.register_blueprint(exam, url_prefix="/exam")
    app.register_blueprint(result, url_prefix="/result")
    register_error_handlers(app)

    @app.before_request
    def preflight():
        if request.method == "OPTIONS":
            return jsonify({"success": True}), 200

    # =====================================================
    # HEALTH CHECK
    # =====================================================
    @app.route("/health")
    def health():
        return jsonify({"success": True, "status": "ok"})

    register_commands(app)
    return app


def run_finisher(app):
    services = app.extensions["examinator"]
    return lambda payload: finish_exam(services, payload)


def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Create the record store indexes."""
        app.extensions["examinator"].store.ensure_indexes()
        click.echo("Indexes ready")

    @app.cli.command("run-due")
    def run_due():
        """Fire every scheduled task that is due, then exit."""
        count = app.extensions["examinator"].scheduler.run_due(run_finisher(app))
        click.echo(f"{count} task(s) run")

    @app.cli.command("run-scheduler")
    @click.option("--interval", type=int, default=None, help="Seconds between polls")
    def run_scheduler(interval):
        """Poll for due finisher callbacks forever."""
        services = app.extensions["examinator"]
        services.scheduler.run_forever(
            run_finisher(app), interval or services.config["SCHEDULER_POLL_INTERVAL"]
        )


# =====================================================
# LOCAL RUN ONLY (production: gunicorn "examinator.app:create_app()")
# =====================================================
if __name__ == "__main__":
    application = create_app()
    application.run(host=application.config["HOST"], port=application.config["PORT"])
