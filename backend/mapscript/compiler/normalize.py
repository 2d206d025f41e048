"""
Value normalizers shared by the compiler and the line editors.

Nothing in here raises for bad input: an unparseable value degrades to
"absent" (None or an empty BorderSpec) and default styling applies.
"""

import colorsys
import math
import re
from typing import Optional, Tuple

from matplotlib import colors as mcolors

from mapscript.compiler.types import BorderSpec


BORDER_STYLES = ("solid", "dotted", "dashed", "bold")

SIMPLE_ID_RE = re.compile(r"^[A-Za-z]\w*$", re.ASCII)
NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
LEADING_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?")
WIDTH_RE = re.compile(r"^(\d+)(px)?$", re.IGNORECASE)
RGB_RE = re.compile(r"^rgba?\(\s*([^)]+)\s*\)$", re.IGNORECASE)
HSL_RE = re.compile(r"^hsla?\(\s*([^)]+)\s*\)$", re.IGNORECASE)
STYLE_COLOUR_RE = re.compile(r"^(solid|dotted|dashed|bold)\s+(.+)$", re.IGNORECASE)

Rgb = Tuple[int, int, int]


# -------------------------
# Numbers
# -------------------------

def parse_number(value) -> Optional[float]:
    """Finite number or None; "1e999" overflows to inf and is rejected."""
    text = str(value if value is not None else "").strip()
    if not NUMBER_RE.match(text):
        return None
    number = float(text)
    return number if math.isfinite(number) else None


def parse_leading_number(value) -> Optional[float]:
    match = LEADING_NUMBER_RE.match(str(value or "").strip())
    if not match:
        return None
    number = float(match.group(0))
    return number if math.isfinite(number) else None


def parse_relative_scale(value) -> Optional[float]:
    """
    Parse a relative size multiplier.

    "1.2" -> 1.2 (20% bigger), "80%" -> 0.8 (20% smaller).
    Non-positive or malformed input is absent, not an error.
    """
    raw = str(value if value is not None else "").strip()
    if not raw:
        return None
    if raw.endswith("%"):
        n = parse_number(raw[:-1])
        return n / 100 if n is not None and n > 0 else None
    n = parse_number(raw)
    return n if n is not None and n > 0 else None


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def fmt_number(value: float) -> str:
    """Compact decimal: 2.0 -> "2", 0.30000000000000004 -> "0.3"."""
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return text if text not in ("", "-0") else "0"


# -------------------------
# Colours
# -------------------------

def clamp_byte(n: float) -> int:
    if n is None or not math.isfinite(n):
        return 0
    return max(0, min(255, round_half_up(n)))


def rgb_to_hex(rgb: Rgb) -> str:
    r, g, b = rgb
    return f"#{clamp_byte(r):02x}{clamp_byte(g):02x}{clamp_byte(b):02x}"


def expand_hex_color(value: str) -> Optional[str]:
    """#rgb, #rgba, #rrggbb, #rrggbbaa -> #rrggbb (alpha dropped)."""
    hex_part = str(value or "").strip().lstrip("#")
    if not hex_part or not re.fullmatch(r"[0-9a-fA-F]+", hex_part):
        return None
    hex_part = hex_part.lower()
    if len(hex_part) in (3, 4):
        return "#" + "".join(ch * 2 for ch in hex_part[:3])
    if len(hex_part) == 6:
        return f"#{hex_part}"
    if len(hex_part) == 8:
        return f"#{hex_part[:6]}"
    return None


def hex_to_rgb(value: str) -> Optional[Rgb]:
    expanded = expand_hex_color(value)
    if not expanded:
        return None
    return tuple(int(expanded[i:i + 2], 16) for i in (1, 3, 5))


def _channel(part: str) -> Optional[float]:
    part = part.strip()
    if part.endswith("%"):
        n = parse_number(part[:-1])
        return None if n is None else n / 100 * 255
    return parse_number(part)


def _rgb_function_channels(raw: str) -> Optional[Tuple[float, float, float]]:
    match = RGB_RE.match(raw)
    if not match:
        return None
    parts = match.group(1).split(",")
    if len(parts) < 3:
        return None
    channels = [_channel(p) for p in parts[:3]]
    if any(c is None for c in channels):
        return None
    return tuple(channels)


def normalize_color(value) -> str:
    """
    Convert common CSS colour formats into renderer-friendly hex.

    Hex forms expand to #rrggbb and rgb()/rgba() convert to hex; named
    colours and anything unrecognised pass through unchanged.
    """
    raw = str(value if value is not None else "").strip()
    if not raw:
        return raw

    if raw.startswith("#"):
        return expand_hex_color(raw) or raw

    channels = _rgb_function_channels(raw)
    if channels is not None:
        return rgb_to_hex(channels)

    return raw


def _hsl_to_rgb(raw: str) -> Optional[Rgb]:
    match = HSL_RE.match(raw)
    if not match:
        return None
    parts = [p.strip() for p in match.group(1).split(",")]
    if len(parts) < 3:
        return None
    hue = parse_number(parts[0].rstrip("deg"))
    sat = parse_number(parts[1].rstrip("%"))
    light = parse_number(parts[2].rstrip("%"))
    if hue is None or sat is None or light is None:
        return None
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360, light / 100, sat / 100)
    return clamp_byte(r * 255), clamp_byte(g * 255), clamp_byte(b * 255)


def resolve_color_to_rgb(value) -> Optional[Rgb]:
    """
    Resolve any supported colour token to an (r, g, b) triple.

    Unlike normalize_color() this rejects unknown words, so ordinary label
    text such as "decreases" is never mistaken for a colour.
    """
    raw = str(value if value is not None else "").strip()
    if not raw:
        return None

    channels = _rgb_function_channels(raw)
    if channels is not None:
        return tuple(clamp_byte(c) for c in channels)

    if raw.startswith("#"):
        return hex_to_rgb(raw)

    named = mcolors.CSS4_COLORS.get(raw.lower())
    if named:
        return tuple(clamp_byte(c * 255) for c in mcolors.to_rgb(named))

    return _hsl_to_rgb(raw)


def resolve_color_to_hex(value) -> Optional[str]:
    rgb = resolve_color_to_rgb(value)
    return rgb_to_hex(rgb) if rgb else None


def color_to_source_token(value) -> str:
    """
    Colour as it should be written into MapScript source.

    "#" starts a comment, so hex values are written as rgb(r,g,b).
    """
    raw = str(value if value is not None else "").strip()
    if not raw.startswith("#"):
        return raw
    rgb = hex_to_rgb(raw)
    if not rgb:
        return raw
    return f"rgb({rgb[0]},{rgb[1]},{rgb[2]})"


# -------------------------
# Borders
# -------------------------

def parse_border(text) -> BorderSpec:
    """
    Strict border text: WIDTH[px] STYLE [COLOUR...].

    Anything not shaped like that is an empty spec.
    """
    parts = str(text or "").split()
    if len(parts) < 2:
        return BorderSpec()

    width_match = WIDTH_RE.match(parts[0])
    style = parts[1].lower()
    if not width_match or style not in BORDER_STYLES:
        return BorderSpec()

    color_part = " ".join(parts[2:]).strip()
    return BorderSpec(
        width=int(width_match.group(1)),
        style=style,
        color=normalize_color(color_part) if color_part else None,
    )


def _valid_color(token: str) -> Optional[str]:
    if not resolve_color_to_rgb(token):
        return None
    return normalize_color(token)


def parse_border_loose(part) -> BorderSpec:
    """
    Partial border spec for one loose edge token.

    Accepts "1px solid seagreen", "1px solid", "1px", "dotted",
    "solid seagreen" and "seagreen". Colour words must resolve to a real
    colour.
    """
    part = str(part or "").strip()
    if not part:
        return BorderSpec()

    full = parse_border(part)
    if not full.is_empty():
        return full

    width_match = WIDTH_RE.match(part)
    if width_match:
        return BorderSpec(width=int(width_match.group(1)))

    if part.lower() in BORDER_STYLES:
        return BorderSpec(style=part.lower())

    style_colour = STYLE_COLOUR_RE.match(part)
    if style_colour:
        return BorderSpec(
            style=style_colour.group(1).lower(),
            color=_valid_color(style_colour.group(2).strip()),
        )

    color = _valid_color(part)
    if color:
        return BorderSpec(color=color)

    return BorderSpec()


def parse_border_tokens(tokens) -> BorderSpec:
    """Merge several loose tokens; earlier tokens keep the keys they set."""
    merged = BorderSpec()
    for token in tokens:
        merged = merged.merged_with(parse_border_loose(token))
    return merged


def looks_like_edge_style_token(token) -> bool:
    token = str(token or "").strip()
    return bool(token) and not parse_border_loose(token).is_empty()


# -------------------------
# Enums
# -------------------------

def _compact(value) -> str:
    return re.sub(r"[\s_-]+", "", str(value if value is not None else "").strip().lower())


DIRECTIONS = {
    "tb": "TB", "topbottom": "TB", "toptobottom": "TB",
    "bt": "BT", "bottomtop": "BT", "bottomtotop": "BT",
    "lr": "LR", "leftright": "LR", "lefttoright": "LR",
    "rl": "RL", "rightleft": "RL", "righttoleft": "RL",
}

TITLE_POSITIONS = {
    "topleft": "top-left",
    "topcenter": "top-centre",
    "topcentre": "top-centre",
    "topright": "top-right",
    "bottomleft": "bottom-left",
    "bottomcenter": "bottom-centre",
    "bottomcentre": "bottom-centre",
    "bottomright": "bottom-right",
    # Single words: sides map to the bottom edge
    "left": "bottom-left",
    "center": "bottom-centre",
    "centre": "bottom-centre",
    "right": "bottom-right",
    "top": "top-centre",
    "bottom": "bottom-centre",
}

DEFAULT_TITLE_POSITION = "bottom-left"


def normalize_direction(value) -> Optional[str]:
    return DIRECTIONS.get(_compact(value))


def normalize_title_position(value) -> Optional[str]:
    return TITLE_POSITIONS.get(_compact(value))


def title_position_to_dot(position) -> Tuple[str, str]:
    """(labelloc, labeljust) for a title position, bottom-left by default."""
    pos = normalize_title_position(position) or DEFAULT_TITLE_POSITION
    loc = "t" if pos.startswith("top") else "b"
    if pos.endswith("left"):
        just = "l"
    elif pos.endswith("right"):
        just = "r"
    else:
        just = "c"
    return loc, just


def font_name_with_style(base_font: str, style_text) -> str:
    """The renderer has no font-weight attribute, so use font name variants."""
    base = (base_font or "").strip() or "Arial"
    raw = str(style_text or "").strip().lower()
    if not raw or raw in ("normal", "plain"):
        return base
    bold = "bold" in raw
    italic = "italic" in raw
    if bold and italic:
        return f"{base} Bold Italic"
    if bold:
        return f"{base} Bold"
    if italic:
        return f"{base} Italic"
    return base


# -------------------------
# Identifiers and labels
# -------------------------

def is_simple_id(token) -> bool:
    return bool(SIMPLE_ID_RE.match(str(token or "").strip()))


def slug_id(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", (text or "").strip().lower()).strip("_")
    return slug[:40] or "node"


def node_id_for_token(token: str) -> str:
    """Bare identifiers are ids; free text is slugged."""
    token = (token or "").strip()
    return token if is_simple_id(token) else slug_id(token)


def wrap_label(label: str, max_chars) -> str:
    """Greedy word wrap joined with a literal backslash-n escape."""
    if max_chars is None or not math.isfinite(max_chars) or max_chars <= 0:
        return label
    words = str(label).split()
    if not words:
        return label

    lines = []
    current = ""
    for word in words:
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= max_chars:
            current = candidate
        else:
            if current:
                lines.append(current)
            current = word
    if current:
        lines.append(current)
    return "\\n".join(lines)
