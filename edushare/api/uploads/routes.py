# edushare/api/uploads/routes.py

from dataclasses import asdict
from flask import request, jsonify, Blueprint, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import Schema, fields

from edushare.api.errors import error_response

# 게시글 첨부 파일(이미지/PDF) 업로드를 위한 블루프린트
uploads_bp = Blueprint('uploads', __name__)


class FileInfoSchema(Schema):
    """첨부 파일 정보 응답 스키마"""
    file_id = fields.Str(required=True)
    name = fields.Str(required=True)
    mime_type = fields.Str(allow_none=True)
    size = fields.Int(allow_none=True)
    view_url = fields.Str(required=True)
    owner_id = fields.Str(allow_none=True)
    created_at = fields.DateTime(allow_none=True)
    is_pdf = fields.Bool()
    pdf_viewer_url = fields.Str(allow_none=True)


@uploads_bp.route('/', methods=['POST'])
@jwt_required()
def upload_file():
    """
    multipart/form-data의 'file' 필드로 받은 첨부 파일을 업로드합니다.
    응답의 file_id를 게시글의 featured_image로 사용합니다.
    """
    uploaded = request.files.get('file')
    if uploaded is None or not uploaded.filename:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": "'file' 필드가 필요합니다."}), 400

    storage_service = current_app.services['storage']
    result = storage_service.upload_file(
        uploaded.stream, uploaded.filename, uploaded.mimetype, owner_id=get_jwt_identity()
    )
    if not result.ok:
        return error_response(result)
    return jsonify(FileInfoSchema().dump(asdict(result.value))), 201


@uploads_bp.route('/<string:file_id>', methods=['GET'])
def get_file_info(file_id: str):
    storage_service = current_app.services['storage']
    result = storage_service.get_file_info(file_id)
    if not result.ok:
        return error_response(result)
    return jsonify(FileInfoSchema().dump(asdict(result.value))), 200


@uploads_bp.route('/<string:file_id>/preview', methods=['GET'])
def get_file_preview(file_id: str):
    storage_service = current_app.services['storage']
    result = storage_service.get_file_preview(file_id)
    if not result.ok:
        return error_response(result)
    return jsonify({"file_id": file_id, "view_url": result.value}), 200


@uploads_bp.route('/<string:file_id>', methods=['DELETE'])
@jwt_required()
def delete_file(file_id: str):
    """업로드한 본인만 파일을 삭제할 수 있습니다."""
    storage_service = current_app.services['storage']
    result = storage_service.delete_file(file_id, user_id=get_jwt_identity())
    if not result.ok:
        return error_response(result)
    return jsonify({"deleted": True}), 200
