import pytest

from app.scraping.platforms import Platform, detect_platform


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.tiktok.com/@x", Platform.TIKTOK),
        ("https://youtu.be/x", Platform.YOUTUBE),
        ("https://www.youtube.com/@canal", Platform.YOUTUBE),
        ("https://example.com", Platform.OTHER),
        ("https://whatsapp.com/channel/0029Va", Platform.WHATSAPP),
        ("HTTPS://WWW.INSTAGRAM.COM/fulano", Platform.INSTAGRAM),
        ("", Platform.OTHER),
    ],
)
def test_detect_platform(url, expected):
    assert detect_platform(url) == expected


def test_detect_platform_priority_order():
    """whatsapp.com vence quando mais de uma plataforma aparece na URL."""
    assert detect_platform("https://whatsapp.com/redirect?to=tiktok.com") == Platform.WHATSAPP


def test_platform_value_is_string():
    assert Platform.INSTAGRAM.value == "instagram"
    assert Platform.OTHER == "other"
