"""ローカル画像プロバイダのメソッドチャネル API."""
from __future__ import annotations

from flask import Response, jsonify, request

from . import bp
from application.local_image_provider import MethodCall
from domain.photo_library.errors import LocalImageProviderError
from ..error_handlers import provider_error_response
from ..services.local_image_provider import get_local_image_provider


@bp.route("/local_image_provider/<string:method>", methods=["POST"])
@bp.doc(
    summary="Invoke a local image provider method",
    requestBody={
        "required": False,
        "description": "メソッド引数。albums / latest_images は整数、images_in_album / image_bytes はオブジェクト。",
        "content": {
            "application/json": {
                "schema": {
                    "oneOf": [
                        {"type": "integer"},
                        {
                            "type": "object",
                            "properties": {
                                "albumId": {"type": "string"},
                                "maxImages": {"type": "integer"},
                                "id": {"type": "string"},
                                "pixelWidth": {"type": "integer", "minimum": 1},
                                "pixelHeight": {"type": "integer", "minimum": 1},
                            },
                        },
                    ]
                },
                "example": {"id": "3B1F.../L0/001", "pixelWidth": 200, "pixelHeight": 200},
            }
        },
    },
    responses={
        200: {
            "description": "成功時は結果をラップした JSON、image_bytes のみ JPEG バイト列。",
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            "status": {"type": "string", "example": "ok"},
                            "result": {},
                        },
                    }
                },
                "image/jpeg": {"schema": {"type": "string", "format": "binary"}},
            },
        },
        400: {"description": "MissingOrInvalidArg"},
        404: {"description": "ImgNotFound"},
        500: {"description": "ImgLoadFailed"},
        501: {"description": "Unimplemented"},
    },
)
def invoke_local_image_provider(method: str):
    """メソッド呼び出しをディスパッチし、確定した結果を返す。"""

    arguments = request.get_json(silent=True)
    future = get_local_image_provider().handle(MethodCall(method, arguments))
    try:
        result = future.result()
    except LocalImageProviderError as exc:
        return provider_error_response(exc)

    if isinstance(result, (bytes, bytearray)):
        return Response(bytes(result), mimetype="image/jpeg")
    return jsonify({"status": "ok", "result": result})
