import pytest

from core.exceptions import InvalidNameError, ValidationError
from core.storage.naming import MAX_KEY_LENGTH, split_key, validate_bucket_name, validate_key


@pytest.mark.parametrize("name", ["photos", "my-bucket_01", "a.b", "x" * 255])
def test_valid_bucket_names(name):
    """Test accepted bucket names."""
    assert validate_bucket_name(name) == name


@pytest.mark.parametrize("name", ["", ".", "..", ".hidden", "a/b", "a\\b", "nul\x00", "x" * 256])
def test_invalid_bucket_names(name):
    """Test rejected bucket names."""
    with pytest.raises(InvalidNameError):
        validate_bucket_name(name)


def test_split_key_segments():
    """Test key splitting."""
    assert split_key("2024/03/a.jpg") == ("2024", "03", "a.jpg")
    assert split_key(".gitignore") == (".gitignore",)


@pytest.mark.parametrize(
    "key",
    ["", "/abs", "a//b", "a/", "./a", "a/./b", "..", "a/../b", "back\\slash", "nul\x00", "x" * (MAX_KEY_LENGTH + 1)],
)
def test_invalid_keys(key):
    """Test rejected keys."""
    with pytest.raises(InvalidNameError):
        validate_key(key)


def test_invalid_name_is_validation_error():
    """InvalidNameError is a ValidationError."""
    with pytest.raises(ValidationError):
        validate_key("../etc/passwd")
