import csv
import io
from datetime import datetime

from flask import make_response, request
from pydantic import BaseModel, ValidationError as PydanticValidationError

from errors import ValidationError

ALLOWED_IMPORT_EXTENSIONS = {'xlsx', 'csv'}


def allowed_file(filename):
    """Check if the file has an allowed spreadsheet extension."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_IMPORT_EXTENSIONS


def load_json(schema: type[BaseModel]):
    """Validate the JSON request body against ``schema``; 400 on anything malformed."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(
            _first_error(exc),
            errors=[
                {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in exc.errors(include_url=False, include_context=False, include_input=False)
            ],
        ) from exc


def _first_error(exc: PydanticValidationError) -> str:
    err = exc.errors(include_url=False)[0]
    location = ".".join(str(p) for p in err["loc"])
    return f"{location}: {err['msg']}" if location else err["msg"]


def csv_response(header, rows, filename_prefix):
    """Build a CSV download (UTF-8 with BOM so spreadsheets pick the encoding)."""
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    data = ("\ufeff" + out.getvalue()).encode("utf-8")
    resp = make_response(data)
    resp.headers["Content-Type"] = "text/csv; charset=utf-8"
    resp.headers["Content-Disposition"] = \
        f"attachment; filename={filename_prefix}_{datetime.utcnow():%Y%m%d_%H%M%S}.csv"
    return resp
