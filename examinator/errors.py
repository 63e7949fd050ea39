# examinator/errors.py
import enum
import logging

from flask import jsonify
from pydantic import ValidationError
from pymongo.errors import PyMongoError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ErrorKind(enum.Enum):
    VALIDATION = "validation"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UPSTREAM = "upstream"


STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTH: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 400,
    ErrorKind.UPSTREAM: 400,
}


class ExaminatorError(Exception):
    """An expected failure of an exam operation, rendered as a JSON error body."""

    def __init__(self, kind, message, **addons):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.addons = addons

    @property
    def status_code(self):
        return STATUS_CODES[self.kind]

    def to_body(self):
        body = {"message": self.message, **self.addons}
        body["success"] = False
        return body


def validation_error(message, **addons):
    return ExaminatorError(ErrorKind.VALIDATION, message, **addons)


def auth_error(message, **addons):
    return ExaminatorError(ErrorKind.AUTH, message, **addons)


def not_found(message, **addons):
    return ExaminatorError(ErrorKind.NOT_FOUND, message, **addons)


def conflict(message, **addons):
    return ExaminatorError(ErrorKind.CONFLICT, message, **addons)


def upstream_error(message="Storage error, please contact admin", **addons):
    return ExaminatorError(ErrorKind.UPSTREAM, message, **addons)


def from_validation_error(exc):
    issues = [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]
    return validation_error("Invalid Input", issues=issues)


def to_examinator_error(exc):
    """Map any exception raised inside a handler onto the error taxonomy."""
    if isinstance(exc, ExaminatorError):
        return exc
    if isinstance(exc, ValidationError):
        return from_validation_error(exc)
    if isinstance(exc, (PyMongoError, OSError)):
        logger.exception("Upstream failure")
        return upstream_error()
    logger.exception("Unhandled error")
    return upstream_error("Generic Examinator Error", error=str(exc))


def register_error_handlers(app):
    @app.errorhandler(ExaminatorError)
    def handle_examinator_error(exc):
        if exc.kind is ErrorKind.UPSTREAM:
            logger.error("Upstream error: %s", exc.message)
        return jsonify(exc.to_body()), exc.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc):
        err = from_validation_error(exc)
        return jsonify(err.to_body()), err.status_code

    @app.errorhandler(PyMongoError)
    def handle_store_error(exc):
        err = to_examinator_error(exc)
        return jsonify(err.to_body()), err.status_code

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        if isinstance(exc, HTTPException):
            return jsonify({"success": False, "message": exc.description}), exc.code
        err = to_examinator_error(exc)
        return jsonify(err.to_body()), err.status_code
