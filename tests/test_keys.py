"""Tests for store key initialization and loading."""
import pytest

from lockbox.exceptions import CorruptKey, NotInitialized
from lockbox.vault.crypto import KEY_SIZE
from lockbox.vault.keys import ENCRYPTION_KEY_NAME, KeyStatus, get_key, initialize


class TestInitialize:

    def test_fresh_store_created(self, store):
        assert initialize(store) is KeyStatus.CREATED
        assert len(get_key(store)) == KEY_SIZE

    def test_idempotent(self, store):
        """A second initialize keeps the original key."""
        initialize(store)
        first = get_key(store)
        assert initialize(store) is KeyStatus.ALREADY_INITIALIZED
        assert get_key(store) == first

    def test_key_stored_as_hex(self, store):
        initialize(store)
        raw = store.get_config(ENCRYPTION_KEY_NAME)
        assert len(raw) == KEY_SIZE * 2
        assert bytes.fromhex(raw.decode("ascii")) == get_key(store)


class TestGetKey:

    def test_not_initialized(self, store):
        with pytest.raises(NotInitialized) as exc:
            get_key(store)
        assert "lb init" in str(exc.value)

    @pytest.mark.parametrize("raw", [
        b"not-hex",
        b"abcd",
        b"00" * 33,
        b"\xff\xfe",
    ])
    def test_corrupt_key(self, store, raw):
        store.set_config(ENCRYPTION_KEY_NAME, raw)
        with pytest.raises(CorruptKey):
            get_key(store)

    @pytest.mark.parametrize("raw", [
        b" ".join([b"ab"] * 32),
        b"ab" * 32 + b"\n",
        b"\t" + b"ab" * 32,
    ])
    def test_whitespace_in_key_is_corrupt(self, store, raw):
        """Hex that only decodes after skipping whitespace is rejected."""
        store.set_config(ENCRYPTION_KEY_NAME, raw)
        with pytest.raises(CorruptKey):
            get_key(store)

    def test_uppercase_hex_accepted(self, store):
        store.set_config(ENCRYPTION_KEY_NAME, b"AB" * 32)
        assert get_key(store) == b"\xab" * 32
