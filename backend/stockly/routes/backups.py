# Overview: Flask API routes for backups; parses input and returns JSON responses.

"""
Backup Routes

Export, list, probe, delete and import .stocklybackup files, plus backup
password and reminder status.

Imports accept either a multipart upload (field "file") or a JSON body
naming a file already in the backups directory.
"""

from flask import Blueprint, current_app, jsonify, request

from ..services.backup_errors import (
    AccessDenied,
    BackupError,
    BackupInProgress,
    DecryptionFailed,
    FileNotFound,
    IncompatibleVersion,
    InvalidData,
)
from ..services.backup_service import BackupPasswordError, BackupService
from ..services.restore_service import ConflictPolicy


backups_bp = Blueprint("backups", __name__, url_prefix="/api/backups")

# Most specific first; InvalidData covers MissingData, DecodingFailed, CorruptedBackup
_STATUS_BY_ERROR = (
    (InvalidData, 400),
    (IncompatibleVersion, 400),
    (DecryptionFailed, 401),
    (AccessDenied, 403),
    (FileNotFound, 404),
    (BackupInProgress, 409),
)


def _error_response(exc: BackupError):
    for error_cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return jsonify(exc.to_dict()), status
    current_app.logger.exception("Backup operation failed")
    return jsonify({"error": exc.message, "code": type(exc).__name__}), 500


@backups_bp.get("")
def list_backups_route():
    service = BackupService()
    try:
        files = [service.describe(path) for path in service.list_backup_files()]
    except BackupError as e:
        return _error_response(e)
    return jsonify({"backups": files, "count": len(files)})


@backups_bp.post("")
def export_backup_route():
    data = request.get_json(silent=True) or {}
    password = data.get("password") or None
    if password is not None and not isinstance(password, str):
        return jsonify({"error": "password must be a string"}), 400

    service = BackupService()
    try:
        path = service.export_all_data(password=password)
    except BackupError as e:
        return _error_response(e)
    return jsonify({"backup": service.describe(path), "encrypted": password is not None}), 201


@backups_bp.post("/import")
def import_backup_route():
    if request.files:
        form = request.form
        password = form.get("password") or None
        mode = form.get("mode", "replace")
    else:
        data = request.get_json(silent=True) or {}
        password = data.get("password") or None
        mode = data.get("mode", "replace")

    service = BackupService()
    try:
        policy = ConflictPolicy.parse(mode)
        if "file" in request.files:
            upload = request.files["file"]
            report = service.import_from_stream(upload.stream, password=password, policy=policy)
        elif request.files:
            return jsonify({"error": "file is required"}), 400
        else:
            name = (request.get_json(silent=True) or {}).get("name")
            if not name:
                return jsonify({"error": "file or name is required"}), 400
            path = service.resolve_backup_path(name)
            report = service.import_all_data(path, password=password, policy=policy)
    except BackupError as e:
        return _error_response(e)
    return jsonify({"report": report.to_dict()})


@backups_bp.get("/status")
def backup_status_route():
    service = BackupService()
    status = service.status()
    # First read persists the default reminder interval
    service.store.save()
    return jsonify(status)


@backups_bp.put("/password")
def set_backup_password_route():
    data = request.get_json(silent=True) or {}
    password = data.get("password")
    if password is not None and not isinstance(password, str):
        return jsonify({"error": "password must be a string or null"}), 400

    service = BackupService()
    try:
        service.set_backup_password(password)
    except BackupPasswordError as e:
        return jsonify({"error": str(e)}), 400
    except BackupError as e:
        return _error_response(e)
    return jsonify({"password_enabled": service.is_backup_password_enabled})


@backups_bp.post("/password/verify")
def verify_backup_password_route():
    data = request.get_json(silent=True) or {}
    password = data.get("password")
    if not isinstance(password, str):
        return jsonify({"error": "password is required"}), 400
    return jsonify({"valid": BackupService().verify_backup_password(password)})


@backups_bp.get("/<name>/encrypted")
def backup_encrypted_route(name: str):
    service = BackupService()
    try:
        encrypted = service.is_backup_encrypted(service.resolve_backup_path(name))
    except BackupError as e:
        return _error_response(e)
    return jsonify({"name": name, "encrypted": encrypted})


@backups_bp.delete("/<name>")
def delete_backup_route(name: str):
    service = BackupService()
    try:
        service.delete_backup_file(name)
    except BackupError as e:
        return _error_response(e)
    return jsonify({"deleted": name})
