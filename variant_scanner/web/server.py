"""Flask job server for running family scans over HTTP."""

from __future__ import annotations

import logging
import socket
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from flask import Flask, jsonify, request, send_file

from variant_scanner.core.asin_list import is_valid_asin
from variant_scanner.core.config import Settings, get_settings
from variant_scanner.core.scanner import FamilyScanner
from variant_scanner.db.repository import Repository

logger = logging.getLogger(__name__)

STATUS_PROCESSING = "processing"
STATUS_COMPLETE = "complete"
STATUS_ERROR = "error"


@dataclass
class Job:
    """One scrape request and its outcome."""

    id: str
    key: str
    status: str = STATUS_PROCESSING
    file_path: str | None = None
    error: str | None = None
    families: int = 0
    finished_at: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status}
        if self.status == STATUS_COMPLETE:
            data["filePath"] = self.file_path
            data["families"] = self.families
        elif self.status == STATUS_ERROR:
            data["error"] = self.error
        return data


@dataclass
class JobStore:
    """Thread-safe job table. Finished jobs expire after the TTL."""

    ttl_seconds: int = 3600
    clock: Callable[[], float] = time.monotonic
    _jobs: dict[str, Job] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def create(self, key: str) -> Job:
        job = Job(id=uuid.uuid4().hex, key=key)
        with self._lock:
            self._purge_locked()
            self._jobs[job.id] = job
        return job

    def get(self, job_id: str) -> Job | None:
        with self._lock:
            self._purge_locked()
            return self._jobs.get(job_id)

    def complete(self, job_id: str, file_path: str, families: int) -> None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is not None:
                job.status = STATUS_COMPLETE
                job.file_path = file_path
                job.families = families
                job.finished_at = self.clock()

    def fail(self, job_id: str, error: str) -> None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is not None:
                job.status = STATUS_ERROR
                job.error = error
                job.finished_at = self.clock()

    def _purge_locked(self) -> None:
        now = self.clock()
        expired = [
            job_id for job_id, job in self._jobs.items()
            if job.finished_at is not None and now - job.finished_at >= self.ttl_seconds
        ]
        for job_id in expired:
            del self._jobs[job_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)


def create_app(
    settings: Settings | None = None,
    scanner_factory: Callable[[], FamilyScanner] | None = None,
    background: bool = True,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        settings: Application settings; defaults to the global settings.
        scanner_factory: Builds a scanner per job. Defaults to one backed by
            the Rainforest client and the database repository.
        background: Run jobs in a worker thread. When False the job runs
            before the POST returns.
    """
    settings = settings or get_settings()
    if scanner_factory is None:
        def scanner_factory() -> FamilyScanner:
            return FamilyScanner(settings, repo=Repository())

    app = Flask(__name__)
    app.config["JSON_SORT_KEYS"] = False
    jobs = JobStore(ttl_seconds=settings.web.job_ttl_seconds)
    app.extensions["variant_scanner.jobs"] = jobs

    def process_job(job: Job, store_id: str | None, asin: str | None, fmt: str | None) -> None:
        try:
            scanner = scanner_factory()
            if store_id:
                outcome = scanner.scan_store(store_id)
            else:
                outcome = scanner.scan_asin(asin)
            files = scanner.export(outcome, fmt)
            jobs.complete(job.id, str(files[0]), len(outcome.results))
            logger.info(f"Job {job.id} complete: {files[0]}")
        except Exception as e:
            logger.exception(f"Job {job.id} failed")
            jobs.fail(job.id, str(e))

    @app.route("/api/scrape", methods=["POST"])
    def api_scrape():
        """Start a scan for a store or a single ASIN."""
        body = request.get_json(silent=True) or {}
        store_id = str(body.get("storeId") or "").strip()
        asin = str(body.get("asin") or "").strip().upper()
        fmt = body.get("format")

        if not store_id and not asin:
            return jsonify({"error": "storeId or asin is required"}), 400
        if asin and not store_id and not is_valid_asin(asin):
            return jsonify({"error": f"Invalid ASIN: {asin}"}), 400
        if fmt is not None and fmt not in ("csv", "xlsx"):
            return jsonify({"error": f"Unsupported format: {fmt}"}), 400

        job = jobs.create(store_id or asin)
        logger.info(f"Job {job.id} started for {job.key}")

        if background:
            thread = threading.Thread(
                target=process_job, args=(job, store_id, asin, fmt), daemon=True
            )
            thread.start()
        else:
            process_job(job, store_id, asin, fmt)

        return jsonify({"jobId": job.id})

    @app.route("/api/status/<job_id>")
    def api_status(job_id: str):
        """Current state of a job. Unknown ids report processing."""
        job = jobs.get(job_id)
        if job is None:
            return jsonify({"status": STATUS_PROCESSING})
        return jsonify(job.to_dict())

    @app.route("/api/download/<job_id>")
    def api_download(job_id: str):
        """Send the exported file of a completed job."""
        job = jobs.get(job_id)
        if job is None or not job.file_path:
            return "File not found", 404
        return send_file(job.file_path, as_attachment=True)

    return app


class WebServer:
    """Manages the Flask web server in a background thread."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.host = self.settings.web.host
        self.port = self.settings.web.port
        self._app: Flask | None = None
        self._thread: threading.Thread | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def url(self) -> str:
        """URL the server is reachable at."""
        try:
            s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            s.connect(("8.8.8.8", 80))
            local_ip = s.getsockname()[0]
            s.close()
        except OSError:
            local_ip = "localhost"

        return f"http://{local_ip}:{self.port}"

    def start(self) -> str:
        """Start the web server. Returns the URL."""
        if self._running:
            return self.url

        self._app = create_app(self.settings)
        self._running = True

        def run_server():
            logging.getLogger("werkzeug").setLevel(logging.ERROR)
            try:
                self._app.run(
                    host=self.host,
                    port=self.port,
                    debug=False,
                    use_reloader=False,
                    threaded=True,
                )
            except OSError as e:
                logger.error(f"Web server error: {e}")
            finally:
                self._running = False

        self._thread = threading.Thread(target=run_server, daemon=True)
        self._thread.start()

        logger.info(f"Job server started at {self.url}")
        return self.url

    def join(self) -> None:
        """Block until the server thread exits."""
        if self._thread is not None:
            self._thread.join()

    def stop(self) -> None:
        """Stop the web server."""
        self._running = False
        # The daemon thread ends with the process
        logger.info("Job server stopped")
