"""Ready-made casters for common refinements.

Register them alongside schemas with ``Decoder(schemas, casters=BUILTIN_CASTERS)``;
schemas then refer to them by name (``{"kind": "reference", "name": "Latitude"}``).
"""

from datetime import datetime, timezone
from typing import Dict

from pydantic_core import PydanticCustomError

from schemacast.kernel.casters import NUMBER, STRING, Caster, refine, transform


def _parse_date(value: str) -> datetime:
    # fromisoformat() only learned the "Z" suffix in 3.11
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise PydanticCustomError(
            "date_from_iso_string",
            "Input should be an ISO 8601 date string",
        ) from None


def _format_date(value: datetime) -> str:
    # aware values go out as UTC with milliseconds and a "Z" suffix
    if value.utcoffset() is None:
        return value.isoformat()
    utc = value.astimezone(timezone.utc).replace(tzinfo=None)
    return utc.isoformat(timespec="milliseconds") + "Z"


Date = transform(STRING, _parse_date, _format_date, "Date")
Latitude = refine(NUMBER, lambda n: -90 <= n <= 90, "Latitude")
Longitude = refine(NUMBER, lambda n: -180 <= n <= 180, "Longitude")
NonEmptyString = refine(STRING, lambda s: len(s) > 0, "NonEmptyString")

BUILTIN_CASTERS: Dict[str, Caster] = {
    "Date": Date,
    "Latitude": Latitude,
    "Longitude": Longitude,
    "NonEmptyString": NonEmptyString,
}
