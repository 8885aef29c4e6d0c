from datetime import datetime, timezone

import pytest

from srd_backend.security_utils import create_jwt_token, verify_jwt_token
from srd_backend.shared.clock import to_business_local
from srd_backend.shared.validators import slugify, split_tags, validate_email, validate_phone
from srd_backend.utils.file_storage import FileStorage
from srd_backend.webhook_security import compute_hmac_sha512, verify_paystack_signature


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0803 123 4567", "+2348031234567"),
        ("+234 803-123-4567", "+2348031234567"),
        ("+1 (415) 555-0100", "+14155550100"),
    ],
)
def test_phone_normalization(raw, expected):
    assert validate_phone(raw) == expected


@pytest.mark.parametrize("raw", ["123", "+1234567890123456", "phone"])
def test_phone_rejects_bad_lengths(raw):
    with pytest.raises(ValueError):
        validate_phone(raw)


def test_email_is_lowercased_and_checked():
    assert validate_email(" Ada@Example.COM ") == "ada@example.com"
    with pytest.raises(ValueError):
        validate_email("ada@")


def test_slugify_and_tags():
    assert slugify("  Hello --  World?! ") == "hello-world"
    assert split_tags(" a, ,b ") == ["a", "b"]
    assert split_tags(None) == []


def test_aware_timestamps_convert_to_lagos_time():
    assert to_business_local(datetime(2025, 6, 10, 9, 0, tzinfo=timezone.utc)) == datetime(2025, 6, 10, 10, 0)
    assert to_business_local(datetime(2025, 6, 10, 9, 0)) == datetime(2025, 6, 10, 9, 0)


def test_paystack_signature_check():
    body = b'{"event":"charge.success"}'
    signature = compute_hmac_sha512("sk_live", body)

    assert verify_paystack_signature(body, signature, "sk_live")
    assert not verify_paystack_signature(body, signature, "sk_other")
    assert not verify_paystack_signature(body + b" ", signature, "sk_live")
    assert not verify_paystack_signature(body, None, "sk_live")


def test_jwt_round_trip_and_tamper():
    token, expires_at = create_jwt_token({"sub": "1"})

    payload = verify_jwt_token(token)
    assert payload["sub"] == "1"
    assert payload["exp"] == int(expires_at.timestamp())
    header, claims, signature = token.split(".")
    assert verify_jwt_token(f"{header}.{claims}.{signature[::-1]}") is None


def test_local_storage_refuses_paths_outside_root(storage):
    assert storage.path_for("/uploads/../../etc/passwd") is None
    assert storage.path_for("/elsewhere/file.png") is None
    assert storage.delete("/uploads/../../etc/passwd") is False


def test_storage_backend_must_implement_every_operation():
    class WriteOnlyStorage(FileStorage):
        def _write(self, key, contents, content_type):
            return f"/uploads/{key}"

    with pytest.raises(TypeError):
        WriteOnlyStorage()
