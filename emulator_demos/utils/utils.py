from datetime import datetime, timedelta


def format_rfc3339(moment: datetime) -> str:
    """
    Formats a timestamp to the second the way Go's time.RFC3339 does, writing
    UTC as `Z` rather than `+00:00`. Naive datetimes are taken as local time.
    """
    if moment.tzinfo is None:
        moment = moment.astimezone()

    text = moment.isoformat(timespec="seconds")
    if moment.utcoffset() == timedelta(0):
        text = text[: -len("+00:00")] + "Z"
    return text


def rfc3339_now() -> str:
    return format_rfc3339(datetime.now().astimezone())
