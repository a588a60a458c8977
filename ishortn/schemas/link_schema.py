import datetime

_DATETIME_FIELDS = ("created_at", "disable_link_after_date")


def serialize_link(link) -> dict:
    """Denormalised link record, the shape shared by the store path and the cache."""
    return {
        "id": link.id,
        "alias": link.alias,
        "domain": link.domain,
        "url": link.url,
        "name": link.name,
        "note": link.note,
        "password_hash": link.password_hash,
        "disabled": bool(link.disabled),
        "archived": bool(link.archived),
        "public_stats": bool(link.public_stats),
        "disable_link_after_clicks": link.disable_link_after_clicks,
        "disable_link_after_date": link.disable_link_after_date,
        "user_id": link.user_id,
        "team_id": link.team_id,
        "folder_id": link.folder_id,
        "metadata": dict(link.meta or {}),
        "utm_params": dict(link.utm_params or {}),
        "tags": sorted(tag.name for tag in link.tags),
        "created_at": link.created_at,
    }


def dump_link_record(record: dict) -> dict:
    data = dict(record)
    for field in _DATETIME_FIELDS:
        value = data.get(field)
        if isinstance(value, datetime.datetime):
            data[field] = value.isoformat()
    return data


def load_link_record(data: dict) -> dict:
    record = dict(data)
    # A record without identity is not a link
    record["id"] = int(record["id"])
    if not record["alias"]:
        raise ValueError("cached record has no alias")

    for field in _DATETIME_FIELDS:
        value = record.get(field)
        if isinstance(value, str) and value:
            record[field] = datetime.datetime.fromisoformat(value)
        elif not value:
            record[field] = None
    return record


def public_link(record: dict) -> dict:
    """What callers outside the core get to see: no hash, ISO dates."""
    data = dump_link_record(record)
    data.pop("password_hash", None)
    data["password_protected"] = bool(record.get("password_hash"))
    return data
