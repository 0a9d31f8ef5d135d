from backend.security import get_password_hash, pwd_context, verify_password


def test_password_hashing_roundtrip():
    raw = "s3cr3tPa55!"
    hashed = pwd_context.hash(raw)
    assert pwd_context.verify(raw, hashed), "Пароль после хеширования не верифицируется"

    # хеши разные при каждом вызове
    assert hashed != pwd_context.hash(raw)


def test_password_hash_is_not_plaintext():
    hashed = get_password_hash("mypassword123")
    assert isinstance(hashed, str)
    assert "mypassword123" not in hashed
    assert verify_password("mypassword123", hashed)
    assert not verify_password("wrongpassword", hashed)
