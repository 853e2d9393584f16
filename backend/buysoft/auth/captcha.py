"""
Login captcha challenges.

The challenge text never touches the database. It is lowercased, tagged
with the server secret and handed to the browser as a short-lived cookie;
the login guard later verifies the tag before comparing answers.
"""

import secrets
import string
from dataclasses import dataclass
from html import escape

from buysoft.core.signing import SignedValue

# Characters easily confused with others are never drawn.
EXCLUDED_CHARS = frozenset("0o1i")
CAPTCHA_ALPHABET = "".join(
    ch
    for ch in string.ascii_uppercase + string.ascii_lowercase + string.digits
    if ch not in EXCLUDED_CHARS
)

SVG_WIDTH = 100
SVG_HEIGHT = 40
SVG_BACKGROUND = "#f0f0f0"
NOISE_LINES = 2

_random = secrets.SystemRandom()


@dataclass(frozen=True)
class Captcha:
    """A rendered challenge and the cookie value that proves it."""

    text: str
    svg: str
    cookie_value: str


def generate_captcha_text(length: int = 4) -> str:
    return "".join(secrets.choice(CAPTCHA_ALPHABET) for _ in range(length))


def _random_color(low: int = 40, high: int = 180) -> str:
    r, g, b = (_random.randint(low, high) for _ in range(3))
    return f"#{r:02x}{g:02x}{b:02x}"


def render_captcha_svg(
    text: str,
    width: int = SVG_WIDTH,
    height: int = SVG_HEIGHT,
    background: str = SVG_BACKGROUND,
    noise: int = NOISE_LINES,
) -> str:
    """
    Draw ``text`` as an SVG image.

    Each glyph gets its own colour, slight rotation and vertical jitter;
    ``noise`` random cubic curves are drawn across the image.
    """
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0,0,{width},{height}">',
        f'<rect width="100%" height="100%" fill="{background}"/>',
    ]

    for _ in range(noise):
        x1, y1 = _random.randint(0, width // 5), _random.randint(0, height)
        x2, y2 = _random.randint(width * 4 // 5, width), _random.randint(0, height)
        cx1, cy1 = _random.randint(0, width), _random.randint(0, height)
        cx2, cy2 = _random.randint(0, width), _random.randint(0, height)
        parts.append(
            f'<path d="M{x1} {y1} C{cx1} {cy1},{cx2} {cy2},{x2} {y2}" '
            f'stroke="{_random_color()}" fill="none"/>'
        )

    step = width / (len(text) + 1)
    font_size = int(height * 0.7)
    for index, char in enumerate(text):
        x = round(step * (index + 1))
        y = round(height * 0.72 + _random.uniform(-4, 4))
        angle = _random.randint(-25, 25)
        parts.append(
            f'<text x="{x}" y="{y}" fill="{_random_color()}" font-size="{font_size}" '
            f'font-family="Verdana, sans-serif" text-anchor="middle" '
            f'transform="rotate({angle} {x} {y})">{escape(char)}</text>'
        )

    parts.append("</svg>")
    return "".join(parts)


def create_captcha(secret: str, length: int = 4) -> Captcha:
    """Generate a challenge, its image and the signed cookie value."""
    text = generate_captcha_text(length)
    signed = SignedValue.sign(text.lower(), secret)
    return Captcha(text=text, svg=render_captcha_svg(text), cookie_value=signed.encode())
