from typing import Iterable, Optional
from pydantic import AnyHttpUrl, BaseModel, TypeAdapter, ValidationError
import re

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 50

_http_url = TypeAdapter(AnyHttpUrl)

def require_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value

def optional_url(value: Optional[str]) -> Optional[str]:
    """http(s) の絶対URLだけを許可する。保存は入力どおりの文字列 (正規化しない)"""
    if value is None or not value.strip():
        return None
    value = value.strip()
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise ValueError("must be an absolute http(s) URL") from None
    return value

def optional_slug(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    value = value.strip()
    if len(value) < SLUG_MIN_LENGTH:
        raise ValueError(f"share slug must be at least {SLUG_MIN_LENGTH} characters")
    if len(value) > SLUG_MAX_LENGTH:
        raise ValueError(f"share slug must be at most {SLUG_MAX_LENGTH} characters")
    if not SLUG_PATTERN.match(value):
        raise ValueError("share slug may only contain lowercase letters, digits and single hyphens")
    return value

def reject_explicit_nulls(model: BaseModel, fields: Iterable[str]):
    # 部分更新で省略は可、必須フィールドへの明示的な null は不可
    for field in fields:
        if field in model.model_fields_set and getattr(model, field) is None:
            raise ValueError(f"{field} must not be null")
