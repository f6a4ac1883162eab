import hashlib
import re


def hash_url(url: str) -> str:
    return hashlib.sha1(url.encode("utf-8", errors="ignore")).hexdigest()


_unsafe = re.compile(r"[^A-Za-z0-9._-]")

def sanitize_segment(value: str) -> str:
    return _unsafe.sub("-", value)


def decode_html(data: bytes, content_type: str | None) -> str:
    """Decodes page bytes using the Content-Type charset, falling back to utf-8."""
    if content_type and "charset=" in content_type.lower():
        charset = content_type.lower().split("charset=")[-1].split(";")[0].strip().strip('"')
        try:
            return data.decode(charset)
        except (LookupError, UnicodeDecodeError):
            pass

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("utf-8", errors="replace")
