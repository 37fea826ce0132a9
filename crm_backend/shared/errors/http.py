# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from crm_backend.shared.config import load_config
from crm_backend.shared.logging import logger

from .base import AppError, InfrastructureError


def handle_app_error(error: AppError) -> tuple[Response, HTTPStatus]:
    response = jsonify(error.to_dict())
    return response, error.status


def register_error_handler(
    app: Flask, *, default_status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
) -> None:
    debug_mode = load_config().debug_logging

    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        if isinstance(exc, InfrastructureError):
            logger.opt(exception=exc.__cause__ or exc).error(
                f"Infrastructure error {exc.code} on {request.method} {request.path}"
            )
        else:
            logger.info(f"Handled application error {exc.code} on {request.method} {request.path}")
        return handle_app_error(exc)

    @app.errorhandler(HTTPException)
    def _handle_http(exc: HTTPException):
        response = jsonify({"error": (exc.name or "http_error").lower().replace(" ", "_")})
        return response, exc.code or default_status

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        ip_address = (
            request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
            or request.remote_addr
            or "unknown"
        )

        if debug_mode:
            logger.exception(
                f"Unhandled exception: {request.method} {request.path} "
                f"from {ip_address}, body_size={len(request.data)}"
            )
        else:
            logger.opt(exception=exc).error(
                f"Error: {type(exc).__name__} on {request.method} {request.path}"
            )

        response = jsonify({"error": "internal_error"})
        return response, default_status
