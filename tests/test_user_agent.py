import pytest

from tracker_app.tracking.user_agent import parse_user_agent

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
EDGE_WINDOWS = CHROME_WINDOWS + " Edg/120.0.2210.91"
OPERA_WINDOWS = CHROME_WINDOWS + " OPR/106.0.0.0"
IPHONE_SAFARI = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
)
IPAD_SAFARI = (
    "Mozilla/5.0 (iPad; CPU OS 16_6 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.6 Mobile/15E148 Safari/604.1"
)
ANDROID_PHONE = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.6099.144 Mobile Safari/537.36"
)
ANDROID_TABLET = (
    "Mozilla/5.0 (Linux; Android 13; SM-X200) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/116.0.0.0 Safari/537.36"
)
FIREFOX_MAC = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:121.0) Gecko/20100101 Firefox/121.0"
FIREFOX_LINUX = "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"
SAFARI_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2 Safari/605.1.15"
)
SAMSUNG_PHONE = (
    "Mozilla/5.0 (Linux; Android 13; SM-S911B) AppleWebKit/537.36 "
    "(KHTML, like Gecko) SamsungBrowser/23.0 Chrome/115.0.0.0 Mobile Safari/537.36"
)
IE11 = "Mozilla/5.0 (Windows NT 6.1; Trident/7.0; rv:11.0) like Gecko"
GOOGLEBOT = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"


class TestUserAgentClassifier:
    """User-agent classification"""

    def test_missing_user_agent_is_unknown(self):
        for value in (None, ""):
            info = parse_user_agent(value)
            assert info.device == "unknown"
            assert info.platform == "unknown"
            assert info.browser == "unknown"
            assert info.is_mobile is False
            assert info.is_bot is False

    def test_chrome_on_windows(self):
        info = parse_user_agent(CHROME_WINDOWS)
        assert info.device == "desktop"
        assert info.is_mobile is False
        assert info.platform == "Windows"
        assert info.os_version == "10/11"
        assert info.browser == "Chrome"
        assert info.browser_version == "120.0"

    @pytest.mark.parametrize("ua,browser,version", [
        (EDGE_WINDOWS, "Edge", "120.0"),
        (OPERA_WINDOWS, "Opera", "106.0"),
        (SAFARI_MAC, "Safari", "17.2"),
        (FIREFOX_MAC, "Firefox", "121.0"),
        (IE11, "Internet Explorer", "11.0"),
    ])
    def test_browser_precedence(self, ua, browser, version):
        """Overlapping tokens resolve to the most specific browser"""
        info = parse_user_agent(ua)
        assert info.browser == browser
        assert info.browser_version == version

    def test_iphone(self):
        info = parse_user_agent(IPHONE_SAFARI)
        assert info.device == "mobile"
        assert info.is_mobile is True
        assert info.platform == "iOS"
        assert info.os_version == "17.1"
        assert info.browser == "Safari"

    def test_ipad_is_tablet(self):
        info = parse_user_agent(IPAD_SAFARI)
        assert info.device == "tablet"
        assert info.is_mobile is True
        assert info.platform == "iOS"
        assert info.os_version == "16.6"

    def test_android_phone_and_tablet(self):
        phone = parse_user_agent(ANDROID_PHONE)
        assert phone.device == "mobile"
        assert phone.platform == "Android"
        assert phone.os_version == "14"

        tablet = parse_user_agent(ANDROID_TABLET)
        assert tablet.device == "tablet"
        assert tablet.platform == "Android"
        assert tablet.os_version == "13"

    def test_mobile_browser_families_fold_to_desktop_labels(self):
        assert parse_user_agent(ANDROID_PHONE).browser == "Chrome"
        assert parse_user_agent(ANDROID_PHONE).browser_version == "120.0"
        assert parse_user_agent(IPHONE_SAFARI).browser_version == "17.1"

    def test_samsung_internet(self):
        info = parse_user_agent(SAMSUNG_PHONE)
        assert info.device == "mobile"
        assert info.browser == "Samsung Internet"
        assert info.browser_version == "23.0"

    def test_macos_version_normalised(self):
        assert parse_user_agent(SAFARI_MAC).os_version == "10.15.7"
        assert parse_user_agent(FIREFOX_MAC).os_version == "10.15"

    def test_linux(self):
        info = parse_user_agent(FIREFOX_LINUX)
        assert info.platform == "Linux"
        assert info.os_version is None

    def test_windows_version_table(self):
        assert parse_user_agent(IE11).os_version == "7"

    def test_bot_detection(self):
        assert parse_user_agent(GOOGLEBOT).is_bot is True
        assert parse_user_agent("facebookexternalhit/1.1").is_bot is True
        assert parse_user_agent(CHROME_WINDOWS).is_bot is False

    def test_classification_is_pure(self):
        assert parse_user_agent(ANDROID_PHONE) == parse_user_agent(ANDROID_PHONE)
