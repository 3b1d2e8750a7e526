def get_readable_time(seconds: float) -> str:
    """Render an uptime in seconds as e.g. ``1d 2h 3m 4s``."""
    seconds = int(seconds)
    periods = [("d", 86400), ("h", 3600), ("m", 60), ("s", 1)]
    parts = []
    for suffix, length in periods:
        if seconds >= length or (suffix == "s" and not parts):
            value, seconds = divmod(seconds, length)
            parts.append(f"{value}{suffix}")
    return " ".join(parts)
