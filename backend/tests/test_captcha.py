"""Tests for captcha generation and rendering."""

import re

from buysoft.auth.captcha import (
    CAPTCHA_ALPHABET,
    create_captcha,
    generate_captcha_text,
    render_captcha_svg,
)
from buysoft.core.signing import SignedValue

SECRET = "captcha-secret-0123456789"


def test_alphabet_excludes_confusable_characters():
    for ch in "0o1i":
        assert ch not in CAPTCHA_ALPHABET
    # Only the four listed characters are excluded.
    assert len(CAPTCHA_ALPHABET) == 26 + 26 + 10 - 4
    assert "O" in CAPTCHA_ALPHABET
    assert "I" in CAPTCHA_ALPHABET


def test_generated_text_length_and_charset():
    for _ in range(50):
        text = generate_captcha_text(4)
        assert len(text) == 4
        assert set(text) <= set(CAPTCHA_ALPHABET)


def test_svg_dimensions_background_and_noise():
    svg = render_captcha_svg("aB3x")
    assert svg.startswith("<svg")
    assert 'width="100"' in svg
    assert 'height="40"' in svg
    assert 'fill="#f0f0f0"' in svg
    assert svg.count("<path") == 2
    assert svg.count("<text") == 4


def test_each_glyph_is_drawn():
    svg = render_captcha_svg("Qw7E")
    glyphs = re.findall(r">([^<])</text>", svg)
    assert glyphs == ["Q", "w", "7", "E"]


def test_cookie_carries_lowercased_text_and_valid_signature():
    captcha = create_captcha(SECRET)
    signed = SignedValue.parse(captcha.cookie_value)

    assert signed is not None
    assert signed.value == captcha.text.lower()
    assert signed.verify(SECRET)
    assert not signed.verify("wrong-secret-0123456789")
