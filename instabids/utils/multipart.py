# instabids/utils/multipart.py
# Reads the multipart bodies sent by the bid card and messaging forms
import json
from typing import Any, Dict, List

from starlette.datastructures import FormData, UploadFile

from instabids.core.exceptions import FieldError, FieldValidationError
from instabids.services.media_storage import MediaUpload


def is_file_field(key: str) -> bool:
    # clients send either file-0, file-1, ... or a repeated "files" field
    return key == "files" or key.startswith("file-")


def parse_json_field(form: FormData, name: str, default: Any = None) -> Any:
    raw = form.get(name)
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default
    if not isinstance(raw, str):
        raise FieldValidationError([FieldError(field=name, message="Must be a JSON string")])
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise FieldValidationError(
            [FieldError(field=name, message=f"Malformed JSON: {e.msg}")]
        ) from e


def parse_data_field(form: FormData) -> Dict[str, Any]:
    """The `data` field: a JSON object with the bid card fields."""
    data = parse_json_field(form, "data", default={})
    if not isinstance(data, dict):
        raise FieldValidationError([FieldError(field="data", message="Must be a JSON object")])
    return data


async def read_uploads(form: FormData) -> List[MediaUpload]:
    uploads = []
    for key, value in form.multi_items():
        if isinstance(value, UploadFile) and is_file_field(key) and value.filename:
            uploads.append(await MediaUpload.from_upload_file(value))
    return uploads
