# edushare/api/errors.py
from flask import jsonify

from edushare.core.result import ServiceResult


def error_response(result: ServiceResult):
    """실패한 ServiceResult를 {"error_code", "message"} JSON 응답으로 변환합니다."""
    body = {"error_code": result.error_kind.value, "message": result.message}
    return jsonify(body), result.http_status
