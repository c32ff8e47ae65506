import logging
import uuid
from typing import Any

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_exception_handler
from rest_framework.exceptions import (
    ValidationError,
    NotAuthenticated,
    AuthenticationFailed,
    PermissionDenied,
    NotFound,
    MethodNotAllowed,
    ParseError,
    UnsupportedMediaType,
    APIException,
)

logger = logging.getLogger(__name__)


class SipItError(Exception):
    """サービス層のドメインエラー基底。
    - code/status_code はレスポンスの分類にそのまま使う
    - HTTP には依存しない（ビュー層の例外ハンドラで変換する）
    """
    code = "API_ERROR"
    status_code = 400
    default_message = "api error"

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(SipItError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "not found"


class ConflictError(SipItError):
    code = "CONFLICT"
    status_code = 409
    default_message = "conflict"


class UnauthorizedError(SipItError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "authentication required"


class ForbiddenError(SipItError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "forbidden"


class ValidationFailed(SipItError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "validation error"


class UpstreamError(SipItError):
    """外部API（Google Places）の呼び出し失敗・異常ステータス。"""
    code = "UPSTREAM_ERROR"
    status_code = 502
    default_message = "upstream service error"


def _new_trace_id() -> str:
    """トレースIDを生成する（例: req_ab12cd34ef56）。
    - クライアント問い合わせ時の追跡に利用する。
    """
    return f"req_{uuid.uuid4().hex[:12]}"


def error_response(code: str, message: str, details: dict | list | None = None, status_code: int = 400) -> Response:
    """共通のエラーレスポンスを生成する。
    - code: エラー分類（VALIDATION_ERROR / UNAUTHORIZED / FORBIDDEN / NOT_FOUND / CONFLICT / UPSTREAM_ERROR / SERVER_ERROR など）
    - message: 人が読める説明
    - details: フィールドごとの詳細や補足
    - status_code: HTTPステータスコード
    """
    payload = {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
            "trace_id": _new_trace_id(),
        }
    }
    return Response(payload, status=status_code)


def validation_error(details: dict | list | None = None, message: str = "Invalid input") -> Response:
    """シリアライザ検証失敗時の 400 VALIDATION_ERROR。"""
    return error_response(code="VALIDATION_ERROR", message=message, details=details, status_code=400)


def custom_exception_handler(exc: Exception, context: dict) -> Response:
    """DRF/ドメインの例外を受け取り、共通フォーマットに変換するハンドラ。
    - SipItError はクラスごとの code/status_code をそのまま使う
    - DRFの既定ハンドラでステータス/分類を判断し、{ error: { code, message, details, trace_id } } に正規化する。
    - 想定外の例外は 500 SERVER_ERROR として扱う。
    """
    if isinstance(exc, SipItError):
        if exc.status_code >= 500:
            logger.error("upstream failure: %s", exc.message)
        return error_response(
            code=exc.code,
            message=exc.message,
            details=exc.details,
            status_code=exc.status_code,
        )

    resp = drf_default_exception_handler(exc, context)

    if resp is not None:
        status_code = resp.status_code
        code = "SERVER_ERROR"
        message = "internal server error"
        details: Any = None

        # 代表的なDRF例外ごとにコード/メッセージをマッピング
        if isinstance(exc, ValidationError):
            code = "VALIDATION_ERROR"
            message = "validation error"
            details = resp.data
        elif isinstance(exc, (NotAuthenticated, AuthenticationFailed)):
            code = "UNAUTHORIZED"
            message = "authentication required"
        elif isinstance(exc, PermissionDenied):
            code = "FORBIDDEN"
            message = "forbidden"
        elif isinstance(exc, NotFound):
            code = "NOT_FOUND"
            message = "not found"
        elif isinstance(exc, MethodNotAllowed):
            code = "METHOD_NOT_ALLOWED"
            message = "method not allowed"
        elif isinstance(exc, ParseError):
            code = "BAD_REQUEST"
            message = "request parse error"
        elif isinstance(exc, UnsupportedMediaType):
            code = "UNSUPPORTED_MEDIA_TYPE"
            message = "unsupported media type"
        elif status_code == 409:
            code = "CONFLICT"
            message = "conflict"
        elif isinstance(exc, APIException):
            # 汎用API例外：DRFが整形したメッセージを尊重しつつコードは一般化
            code = "API_ERROR"
            message = str(getattr(exc, "detail", "api error")) or "api error"
            details = resp.data if isinstance(resp.data, (dict, list)) else None

        # 共通ペイロードに置き換えて返却
        resp.data = {
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "trace_id": _new_trace_id(),
            }
        }
        return resp

    # DRFのハンドラで処理できなかった例外（想定外）
    trace_id = _new_trace_id()
    logger.exception("unhandled error (%s)", trace_id, exc_info=exc)
    return Response(
        {
            "error": {
                "code": "SERVER_ERROR",
                "message": "internal server error",
                "details": {},
                "trace_id": trace_id,
            }
        },
        status=500,
    )
