import hashlib
import logging

from tracker_app.config import DEFAULT_IP_HASH_SALT
from tracker_app.tracking.anonymizer import IPAnonymizer, hash_ip


class TestIPAnonymizer:
    """Salted IP hashing"""

    def test_hash_format(self):
        expected = hashlib.sha256(b"8.8.8.8pepper").hexdigest()[:16]
        assert hash_ip("8.8.8.8", "pepper") == expected
        assert len(expected) == 16

    def test_deterministic(self):
        anonymizer = IPAnonymizer("pepper")
        assert anonymizer.hash("8.8.8.8") == anonymizer.hash("8.8.8.8")

    def test_salt_changes_hash(self):
        assert hash_ip("8.8.8.8", "a") != hash_ip("8.8.8.8", "b")

    def test_no_collisions_in_corpus(self):
        anonymizer = IPAnonymizer("pepper")
        ips = [f"10.{a}.{b}.1" for a in range(40) for b in range(50)]
        hashes = {anonymizer.hash(ip) for ip in ips}
        assert len(hashes) == len(ips)

    def test_raw_ip_not_in_hash(self):
        assert "8.8.8.8" not in IPAnonymizer("pepper").hash("8.8.8.8")

    def test_default_salt_is_flagged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="tracker_app.tracking.anonymizer"):
            anonymizer = IPAnonymizer(DEFAULT_IP_HASH_SALT)
        assert anonymizer.uses_default_salt is True
        assert "IP_HASH_SALT" in caplog.text

    def test_configured_salt_is_quiet(self, caplog):
        with caplog.at_level(logging.WARNING, logger="tracker_app.tracking.anonymizer"):
            anonymizer = IPAnonymizer("a-real-secret")
        assert anonymizer.uses_default_salt is False
        assert caplog.text == ""
