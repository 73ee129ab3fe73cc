"""Tests for auth tokens and Help Scout signatures."""

import base64
import hashlib
import hmac
import time

from envato_server.security import bearer_token, sign_token, unsign_token, verify_helpscout_signature


def test_token_round_trip():
    token = sign_token("secret", 42)
    assert unsign_token("secret", token) == 42


def test_token_rejects_other_secret():
    assert unsign_token("other", sign_token("secret", 42)) is None


def test_token_expires():
    token = sign_token("secret", 42)
    time.sleep(1.1)
    assert unsign_token("secret", token, max_age_seconds=0) is None


def test_bearer_token():
    assert bearer_token("Bearer abc") == "abc"
    assert bearer_token("bearer  abc ") == "abc"
    assert bearer_token("Basic abc") == ""
    assert bearer_token("") == ""


def test_helpscout_signature():
    body = b'{"customer": {}}'
    sig = base64.b64encode(hmac.new(b"hs", body, hashlib.sha1).digest()).decode()
    assert verify_helpscout_signature(body, sig, "hs")
    assert not verify_helpscout_signature(body + b" ", sig, "hs")
    assert not verify_helpscout_signature(body, "", "hs")
    assert not verify_helpscout_signature(body, sig, "")
