from watermarker.core.datatypes import Pixel, TransparencyConfig
from watermarker.iop.colorkey import ColorKeyMatcher


def test_alpha_rule():
    config = TransparencyConfig(use_alpha_channel=True)
    assert ColorKeyMatcher.is_transparent(Pixel(10, 20, 30, 0), config)
    assert not ColorKeyMatcher.is_transparent(Pixel(10, 20, 30, 1), config)
    assert not ColorKeyMatcher.is_transparent(Pixel(10, 20, 30, 255), config)


def test_alpha_rule_treats_missing_alpha_as_opaque():
    config = TransparencyConfig(use_alpha_channel=True)
    assert not ColorKeyMatcher.is_transparent(Pixel(0, 0, 0), config)


def test_alpha_ignored_when_not_requested():
    assert not ColorKeyMatcher.is_transparent(Pixel(0, 0, 0, 0), TransparencyConfig())


def test_color_key_compares_all_three_channels():
    config = TransparencyConfig(color_key=Pixel(255, 0, 128))
    assert ColorKeyMatcher.is_transparent(Pixel(255, 0, 128), config)
    assert not ColorKeyMatcher.is_transparent(Pixel(255, 255, 255), config)
    assert not ColorKeyMatcher.is_transparent(Pixel(255, 0, 127), config)
    assert not ColorKeyMatcher.is_transparent(Pixel(128, 0, 255), config)


def test_color_key_ignores_alpha():
    config = TransparencyConfig(color_key=Pixel(1, 2, 3))
    assert ColorKeyMatcher.is_transparent(Pixel(1, 2, 3, 77), config)


def test_alpha_rule_wins_over_color_key_when_pixel_has_alpha():
    config = TransparencyConfig(use_alpha_channel=True, color_key=Pixel(1, 2, 3))
    assert not ColorKeyMatcher.is_transparent(Pixel(1, 2, 3, 255), config)
    # no alpha on the pixel: the color key decides
    assert ColorKeyMatcher.is_transparent(Pixel(1, 2, 3), config)


def test_no_rule_never_transparent():
    assert not ColorKeyMatcher.is_transparent(Pixel(0, 0, 0), TransparencyConfig())
