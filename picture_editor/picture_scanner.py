"""Picture enumeration and thumbnails for the image browser.

Stand pictures live under ``img/pictures`` and are referenced by the plugin
as ``/``-separated paths without extension (``child/misaki/emotion/joy``).
Deployed games may ship them encrypted as ``.png_`` (MZ) or ``.rpgmvp`` (MV).
"""

import json
import logging
import os
from io import BytesIO

from PIL import Image

log = logging.getLogger(__name__)

# ── Image file extensions ────────────────────────────────────────

IMAGE_EXTS = (".png", ".jpg", ".jpeg", ".webp")
ENCRYPTED_EXTS = (".rpgmvp", ".png_")  # MV/MZ encrypted image formats
ALL_IMAGE_EXTS = IMAGE_EXTS + ENCRYPTED_EXTS

# RPG Maker MV/MZ encrypted file header length
_RPGMV_HEADER_LEN = 16


# ── RPG Maker MV/MZ encryption support ──────────────────────────

def read_encryption_key(project_dir: str) -> str:
    """Read encryptionKey from System.json (MV/MZ encrypted deployments)."""
    for candidate in (
        os.path.join(project_dir, "data", "System.json"),
        os.path.join(project_dir, "www", "data", "System.json"),
    ):
        if os.path.isfile(candidate):
            try:
                with open(candidate, "r", encoding="utf-8") as f:
                    system = json.load(f)
            except (json.JSONDecodeError, OSError) as exc:
                log.warning("Could not read %s: %s", candidate, exc)
                continue
            key = system.get("encryptionKey", "") if isinstance(system, dict) else ""
            if key:
                return key
    return ""


def decrypt_rpgmvp(file_path: str, encryption_key: str) -> bytes:
    """Decrypt an .rpgmvp / .png_ file to raw PNG bytes.

    The file is a 16-byte RPG Maker header followed by the PNG with its first
    16 bytes XOR'd with the key.
    """
    key_bytes = bytes.fromhex(encryption_key)

    with open(file_path, "rb") as f:
        data = f.read()

    encrypted = data[_RPGMV_HEADER_LEN:]
    decrypted_head = bytes(b ^ k for b, k in zip(encrypted[:16], key_bytes))
    return decrypted_head + encrypted[16:]


# ── Scanning ─────────────────────────────────────────────────────

def find_img_dir(project_dir: str):
    """Locate the img/ directory — handles both root and www/ layouts."""
    for candidate in (
        os.path.join(project_dir, "img"),
        os.path.join(project_dir, "www", "img"),
    ):
        if os.path.isdir(candidate):
            return candidate
    return None


def strip_image_ext(path: str):
    """Return *path* without its image extension, or None if not an image."""
    lower = path.lower()
    for ext in ALL_IMAGE_EXTS:
        if lower.endswith(ext):
            return path[:-len(ext)]
    return None


def normalize_picture_paths(names) -> list:
    """Convert relative image paths (with extensions) to plugin references.

    Accepts a directory listing from any source; backslashes and leading
    ``./`` are normalised, non-images dropped, duplicates (an image present
    both plain and encrypted) collapsed. Result is sorted.
    """
    found = set()
    for name in names:
        rel = name.replace("\\", "/").lstrip("/")
        while rel.startswith("./"):
            rel = rel[2:]
        stem = strip_image_ext(rel)
        if stem:
            found.add(stem)
    return sorted(found)


def scan_pictures(project_dir: str, subdir: str = "pictures") -> list:
    """Walk img/<subdir> recursively and return extensionless picture paths."""
    img_dir = find_img_dir(project_dir)
    if not img_dir:
        return []
    root = os.path.join(img_dir, subdir)
    if not os.path.isdir(root):
        return []
    names = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        rel_dir = os.path.relpath(dirpath, root)
        for fname in filenames:
            rel = fname if rel_dir == "." else os.path.join(rel_dir, fname)
            names.append(rel)
    return normalize_picture_paths(names)


def resolve_picture_file(project_dir: str, picture: str, subdir: str = "pictures"):
    """Find the file on disk behind a plugin reference, plain files first."""
    img_dir = find_img_dir(project_dir)
    if not img_dir or not picture:
        return None
    base = os.path.join(img_dir, subdir, *picture.split("/"))
    for ext in ALL_IMAGE_EXTS:
        if os.path.isfile(base + ext):
            return base + ext
    return None


# ── Thumbnails ───────────────────────────────────────────────────

def open_image(image_path: str, encryption_key: str = "") -> Image.Image:
    """Open an image file, decrypting .rpgmvp/.png_ if needed."""
    if image_path.lower().endswith(ENCRYPTED_EXTS):
        if not encryption_key:
            raise ValueError(f"No encryption key for {os.path.basename(image_path)}")
        return Image.open(BytesIO(decrypt_rpgmvp(image_path, encryption_key)))
    return Image.open(image_path)


def load_thumbnail(image_path: str, size: int = 96, encryption_key: str = "") -> bytes:
    """Return PNG bytes of the image scaled to fit a size x size box."""
    with open_image(image_path, encryption_key) as img:
        thumb = img.convert("RGBA")
        thumb.thumbnail((size, size), Image.Resampling.LANCZOS)
        buf = BytesIO()
        thumb.save(buf, format="PNG")
    return buf.getvalue()
