import base64

from pollhub.services.errors import ValidationError
from pollhub.utils import format_timestamp


def request_payload(request):
    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object.")
        return data
    return request.form


def clean_text(value):
    if value is None:
        return None
    return str(value).strip() or None


def parse_flag(value, default=True):
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def profile_data_uri(image_bytes):
    if not image_bytes:
        return None
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def poll_summary(poll):
    return {
        "id": poll.id,
        "title": poll.title,
        "category": poll.category,
        "lastUpdated": format_timestamp(poll.created_at),
    }
