import pytest

from tracker_app.tracking.referral import SOCIAL_NETWORKS, detect_social_network

FACEBOOK_IN_APP = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Mobile/21B74 [FBAN/FBIOS;FBAV/440.0.0.35.109;FBBV/548706513]"
)
INSTAGRAM_IN_APP = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.6099.144 Mobile Safari/537.36 Instagram 312.0.0.32.112 Android"
)
TIKTOK_IN_APP = "Mozilla/5.0 (Linux; Android 13) AppleWebKit/537.36 musical_ly_2023200030 BytedanceWebview/d8a21c6"


class TestReferralClassifier:
    """Social-network attribution"""

    @pytest.mark.parametrize("referer,expected", [
        ("https://l.instagram.com/?u=https%3A%2F%2Fexample.com", "instagram"),
        ("https://lm.facebook.com/l.php?u=x", "facebook"),
        ("https://www.tiktok.com/@loja", "tiktok"),
        ("https://t.co/AbCdEf", "twitter"),
        ("https://x.com/someone/status/1", "twitter"),
        ("https://www.linkedin.com/feed/", "linkedin"),
        ("https://web.whatsapp.com/", "whatsapp"),
        ("https://t.me/canal", "telegram"),
        ("https://br.pinterest.com/pin/1", "pinterest"),
        ("https://www.youtube.com/watch?v=1", "youtube"),
        ("https://youtu.be/1", "youtube"),
        ("https://www.reddit.com/r/brasil", "reddit"),
        ("https://www.kwai.com/@x", "kwai"),
        ("https://www.snapchat.com/add/x", "snapchat"),
    ])
    def test_referer_domains(self, referer, expected):
        assert detect_social_network(referer, None) == expected

    @pytest.mark.parametrize("user_agent,expected", [
        (FACEBOOK_IN_APP, "facebook"),
        (INSTAGRAM_IN_APP, "instagram"),
        (TIKTOK_IN_APP, "tiktok"),
    ])
    def test_in_app_browser_without_referer(self, user_agent, expected):
        assert detect_social_network(None, user_agent) == expected

    def test_android_app_referer(self):
        assert detect_social_network("android-app://com.whatsapp/", None) == "whatsapp"
        assert detect_social_network("android-app://com.instagram.android/", None) == "instagram"

    def test_case_insensitive(self):
        assert detect_social_network("HTTPS://WWW.TIKTOK.COM/@LOJA", None) == "tiktok"

    def test_domain_fragments_do_not_leak(self):
        """reddit.com ends in 't.com', not '.t.co'; it must not read as twitter"""
        assert detect_social_network("https://reddit.com/", None) == "reddit"
        assert detect_social_network("https://notinstagram.example/", None) is None

    def test_direct_or_unknown(self):
        assert detect_social_network(None, None) is None
        assert detect_social_network("https://www.google.com/search?q=x", "Mozilla/5.0 Chrome/120") is None

    def test_labels(self):
        assert SOCIAL_NETWORKS == (
            "instagram", "facebook", "tiktok", "twitter", "linkedin", "whatsapp",
            "telegram", "pinterest", "youtube", "reddit", "kwai", "snapchat",
        )
