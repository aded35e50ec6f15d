"""
Output identifiers and paths.

Layout: {output_dir}/{font_base_name}/{stem}_image.png

Naming modes:
  compat    : trailing 6 hex chars of the 8-char big-endian UTF-16 identifier
              (BMP: "00" + 4-digit code unit; astral: low byte of the high
              surrogate + low surrogate). Matches existing output fixtures.
  codepoint : "u" + 6-digit scalar value, e.g. u01f600.
"""

from __future__ import annotations

from pathlib import Path

from .codepoints import is_scalar_value
from .errors import PathError

NAMING_MODES = ("compat", "codepoint")


def hex_identifier(code_point: int) -> str:
    """
    8 lowercase hex chars: the UTF-16BE code units, left-padded with a zero unit.

    >>> hex_identifier(0x41)
    '00000041'
    >>> hex_identifier(0x1F600)
    'd83dde00'
    """
    if not is_scalar_value(code_point):
        raise ValueError(f"not a Unicode scalar value: {code_point:#x}")
    units = chr(code_point).encode("utf-16-be")
    return units.rjust(4, b"\x00").hex()


def decode_hex_identifier(identifier: str) -> int:
    """Inverse of `hex_identifier`; ValueError for anything it cannot produce."""
    raw = bytes.fromhex(identifier)
    if len(raw) != 4:
        raise ValueError(f"identifier must be 8 hex chars, got {identifier!r}")
    if raw[:2] == b"\x00\x00":
        code_point = int.from_bytes(raw[2:], "big")
    else:
        # Lone or misordered surrogates raise UnicodeDecodeError here
        text = raw.decode("utf-16-be")
        if len(text) != 1:
            raise ValueError(f"identifier is not a single surrogate pair: {identifier!r}")
        code_point = ord(text)
    if not is_scalar_value(code_point):
        raise ValueError(f"identifier decodes to a non-scalar value: {identifier!r}")
    return code_point


def file_stem(code_point: int, naming: str = "compat") -> str:
    if naming == "compat":
        return hex_identifier(code_point)[2:]
    if naming == "codepoint":
        return f"u{code_point:06x}"
    raise ValueError(f"unknown naming mode {naming!r}, expected one of {NAMING_MODES}")


def font_base_name(font_path) -> str:
    """Final path segment of the font file, as portable text."""
    name = Path(font_path).name
    if not name or name in (".", ".."):
        raise PathError(f"Font path has no file name: {str(font_path)!r}")
    try:
        name.encode("utf-8")
    except UnicodeEncodeError as e:
        raise PathError(f"Font file name is not valid text: {name!r}") from e
    return name


def output_path(output_dir, font_base: str, code_point: int, naming: str = "compat") -> Path:
    return Path(output_dir) / font_base / f"{file_stem(code_point, naming)}_image.png"
