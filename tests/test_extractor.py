"""
Testes para app/scraping/extractor.py

Cobre:
- Nome do canal: og:title (nas duas ordens de atributo) → <title> → fallback
- Extração a partir de og:description / description
- Sufixos K/M e palavras-chave em outros idiomas
- Precedência: meta description vence o corpo
- Instagram: "Following" nunca é confundido com "Followers"
- Palavras-chave específicas (WhatsApp members, TikTok Fans, YouTube Abonnenten)
- Fallback para o corpo e para JSON-LD
- Extração total: sem match → follower_count None e texto fixo, sem exceção
"""

import json

import pytest

from app.scraping.extractor import (
    CASCADES,
    NOT_FOUND,
    UNKNOWN_CHANNEL,
    extract_followers,
)
from app.scraping.platforms import Platform

WHATSAPP = "https://www.whatsapp.com/channel/0029VaNoStudios"
INSTAGRAM = "https://www.instagram.com/fulano"
TIKTOK = "https://www.tiktok.com/@fulano"
YOUTUBE = "https://www.youtube.com/@fulano"
OTHER = "https://example.com/perfil"


# ---------------------------------------------------------------------------
# Nome do canal
# ---------------------------------------------------------------------------


def test_channel_name_from_og_title(make_page):
    result = extract_followers(make_page(title="NoStudios"), OTHER)
    assert result.channel_name == "NoStudios"


def test_channel_name_og_title_reversed_attributes():
    html = '<html><head><meta content="Invertido" property="og:title"></head></html>'
    assert extract_followers(html, OTHER).channel_name == "Invertido"


def test_channel_name_falls_back_to_title():
    html = "<html><head><title> MegaChannel </title></head><body></body></html>"
    assert extract_followers(html, OTHER).channel_name == "MegaChannel"


def test_channel_name_unknown_when_missing():
    assert extract_followers("<html><body>nada</body></html>", OTHER).channel_name == UNKNOWN_CHANNEL


def test_channel_name_decodes_entities():
    html = '<meta property="og:title" content="Tom &amp; Jerry">'
    assert extract_followers(html, OTHER).channel_name == "Tom & Jerry"


# ---------------------------------------------------------------------------
# Meta description
# ---------------------------------------------------------------------------


def test_extracts_from_og_description(make_page):
    html = make_page("NoStudios", "Channel • 10 followers • We are NoStudios")
    result = extract_followers(html, WHATSAPP)

    assert result.follower_count == 10
    assert result.raw_text == "10 followers"
    assert result.platform == Platform.WHATSAPP
    assert result.strategy == "whatsapp-meta"


def test_extracts_k_format(make_page):
    html = make_page("BigChannel", "15.4K followers on WhatsApp")
    assert extract_followers(html, WHATSAPP).follower_count == 15400


def test_extracts_m_format_singular_follower():
    html = """<html><head>
      <meta property="og:description" content="1.2M Follower" />
      <title>MegaChannel</title>
    </head><body></body></html>"""
    result = extract_followers(html, OTHER)

    assert result.follower_count == 1200000
    assert result.channel_name == "MegaChannel"


def test_extracts_from_name_description():
    html = '<meta name="description" content="Perfil com 3,210 subscribers">'
    assert extract_followers(html, OTHER).follower_count == 3210


def test_extracts_german_abonnenten(make_page):
    html = make_page("DeutschKanal", "3.5K Abonnenten")
    assert extract_followers(html, YOUTUBE).follower_count == 3500


def test_extracts_french_abonnes(make_page):
    html = make_page("Chaîne", "12K abonnés")
    assert extract_followers(html, YOUTUBE).follower_count == 12000


def test_extracts_keyword_before_number(make_page):
    html = make_page("Canal", "Followers: 1,234")
    result = extract_followers(html, OTHER)

    assert result.follower_count == 1234
    assert result.raw_text == "Followers: 1,234"


def test_whatsapp_members(make_page):
    html = make_page("Grupo", "Canal do WhatsApp • 2.3K members")
    assert extract_followers(html, WHATSAPP).follower_count == 2300


def test_tiktok_fans(make_page):
    html = make_page("Dancer", "Watch videos from 85.1K Fans on TikTok")
    assert extract_followers(html, TIKTOK).follower_count == 85100


def test_instagram_ignores_following(make_page):
    html = make_page("fulano", "1,234 Followers, 56 Following, 78 Posts")
    result = extract_followers(html, INSTAGRAM)

    assert result.follower_count == 1234
    assert result.raw_text == "1,234 Followers"


# ---------------------------------------------------------------------------
# Precedência e fallback
# ---------------------------------------------------------------------------


def test_meta_description_wins_over_body(make_page):
    html = make_page("Canal", "10 followers", body="<div>999 followers</div>")
    result = extract_followers(html, OTHER)

    assert result.follower_count == 10
    assert result.strategy == "generic-meta"


def test_platform_meta_miss_falls_back_to_body(make_page):
    html = make_page("fulano", "Sem números aqui", body="<span>500 followers</span>")
    result = extract_followers(html, INSTAGRAM)

    assert result.follower_count == 500
    assert result.strategy == "generic-body"


def test_extracts_from_body_without_meta():
    html = "<html><head><title>TestCh</title></head><body><div>500 followers</div></body></html>"
    result = extract_followers(html, OTHER)

    assert result.follower_count == 500
    assert result.raw_text == "500 followers"


def test_unparseable_match_continues_cascade(make_page):
    """Um match cujo número não parseia não encerra a cascata."""
    html = make_page("Canal", "1.2.3 followers", body="<p>42 followers</p>")
    assert extract_followers(html, OTHER).follower_count == 42


def test_extracts_from_json_ld():
    data = {
        "@context": "https://schema.org",
        "@type": "ProfilePage",
        "interactionStatistic": [
            {"@type": "InteractionCounter", "interactionType": "https://schema.org/LikeAction",
             "userInteractionCount": 9},
            {"@type": "InteractionCounter", "interactionType": "https://schema.org/FollowAction",
             "userInteractionCount": 4321},
        ],
    }
    html = (
        "<html><head><title>LD</title>"
        f'<script type="application/ld+json">{json.dumps(data)}</script>'
        "</head><body></body></html>"
    )
    result = extract_followers(html, OTHER)

    assert result.follower_count == 4321
    assert result.raw_text == "JSON-LD: 4321"
    assert result.strategy == "json-ld"


def test_invalid_json_ld_is_ignored():
    html = '<script type="application/ld+json">{not json</script><title>X</title>'
    result = extract_followers(html, OTHER)

    assert result.follower_count is None


# ---------------------------------------------------------------------------
# Extração total
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("html", ["", "<html><head><title>Empty</title></head><body>No data</body></html>", None])
def test_no_match_returns_none_and_fixed_text(html):
    result = extract_followers(html, OTHER)

    assert result.follower_count is None
    assert result.raw_text == NOT_FOUND
    assert not result.found


def test_to_dict_uses_api_field_names(make_page):
    data = extract_followers(make_page("Canal", "7 followers"), TIKTOK).to_dict()

    assert data == {
        "followerCount": 7,
        "channelName": "Canal",
        "rawText": "7 followers",
        "platform": "tiktok",
    }


def test_every_platform_has_a_cascade():
    for platform in Platform:
        strategies = [s.name for s in CASCADES[platform]]
        assert strategies[-2:] == ["generic-body", "json-ld"]
