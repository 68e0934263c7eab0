"""Asset resolution from raw scanner payloads.

Label QR codes carry ``doc|part_code|asset_code|lot|B|``. Hand scanners
plugged in while the workstation keyboard is on the Thai layout emit the
shifted Thai glyphs for digits and punctuation, so payloads are folded
back to ASCII before parsing.
"""

from registry.models import Asset

QR_SEPARATOR = "|"
ASSET_CODE_FIELD = 2

# Thai Kedmanee layout glyph -> key actually pressed on a US layout.
THAI_KEYMAP = {
    "ๅ": "1",
    "/": "2",
    "-": "3",
    "ภ": "4",
    "ถ": "5",
    "ุ": "6",
    "ึ": "7",
    "ค": "8",
    "ต": "9",
    "จ": "0",
    "ข": "-",
    "ฅ": "|",
    "%": "|",
}

INVALID_QR = "INVALID_QR"
NOT_FOUND = "NOT_FOUND"


def normalize_scan_payload(raw):
    """Recover the intended ASCII token from a scanner payload.

    Payloads that already contain the canonical separator were typed or
    pasted and are left alone apart from trimming. ``ฅ`` is always folded
    to the separator.
    """
    if raw is None:
        return ""
    payload = str(raw).strip()
    if QR_SEPARATOR not in payload:
        payload = "".join(THAI_KEYMAP.get(ch, ch) for ch in payload)
    return payload.replace("ฅ", QR_SEPARATOR).strip()


def parse_asset_code(payload):
    """Extract the asset code from a normalised payload.

    Returns (asset_code, error_code) tuple.
    """
    if not payload:
        return None, INVALID_QR
    if QR_SEPARATOR not in payload:
        return payload, None
    parts = [p.strip() for p in payload.split(QR_SEPARATOR)]
    if len(parts) <= ASSET_CODE_FIELD or not parts[ASSET_CODE_FIELD]:
        return None, INVALID_QR
    return parts[ASSET_CODE_FIELD], None


def resolve_asset_code(raw):
    """Normalise and parse a raw payload into an asset code.

    Returns (asset_code, error_code) tuple.
    """
    return parse_asset_code(normalize_scan_payload(raw))


def get_asset_by_code(asset_code, lock=False):
    """Look up an asset by code, optionally locking its row.

    Locking is only meaningful inside ``transaction.atomic()``.
    Returns None when the code is unknown.
    """
    qs = Asset.objects.select_related("status", "current_booking")
    if lock:
        qs = qs.select_for_update(of=("self",))
    return qs.filter(asset_code=asset_code).first()


def resolve_asset_from_payload(raw):
    """Resolve an Asset from a raw scanner payload.

    Returns (asset, error_code) tuple.
    """
    asset_code, error = resolve_asset_code(raw)
    if error:
        return None, error
    asset = get_asset_by_code(asset_code)
    if asset is None:
        return None, NOT_FOUND
    return asset, None
