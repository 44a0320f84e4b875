"""
Tests for the entry model.
"""

import pytest
from dataclasses import FrozenInstanceError

from cpass.entry import (
    Entry, Entries, InvalidIdentity, InvalidEntry, parse_identity
)
from cpass.crypto import LengthOutOfRange


class TestParseIdentity:
    """Test parse_identity function"""

    def test_simple(self):
        assert parse_identity('alice@example.com') == ('alice', 'example.com')

    def test_email_username_splits_on_last_at(self):
        assert parse_identity('alice@mail.com@example.com') == ('alice@mail.com', 'example.com')

    def test_invalid(self):
        for identity in ['alice', '', '@example.com', 'alice@']:
            with pytest.raises(InvalidIdentity):
                parse_identity(identity)


class TestEntry:
    """Test Entry value type"""

    def test_identity_and_describe(self):
        entry = Entry(username='alice', url='example.com', length=16)
        assert entry.identity() == 'alice@example.com'
        assert entry.describe() == 'alice@example.com (16)'
        assert str(entry) == 'alice@example.com (16)'

    def test_from_identity(self):
        entry = Entry.from_identity('alice@mail.com@example.com', 20)
        assert entry.username == 'alice@mail.com'
        assert entry.url == 'example.com'
        assert entry.identity() == 'alice@mail.com@example.com'

    def test_from_identity_checks_length(self):
        with pytest.raises(LengthOutOfRange):
            Entry.from_identity('alice@example.com', 45)

    def test_immutable(self):
        entry = Entry(username='alice', url='example.com', length=16)
        with pytest.raises(FrozenInstanceError):
            entry.length = 20

    def test_dict_mapping(self):
        record = {'url': 'example.com', 'username': 'alice', 'length': 16}
        entry = Entry.from_dict(record)
        assert entry == Entry(username='alice', url='example.com', length=16)
        assert entry.to_dict() == record

    def test_from_dict_invalid(self):
        invalid = [
            {'url': 'example.com', 'username': 'alice'},
            {'url': 'example.com', 'username': '', 'length': 16},
            {'url': 'a@example.com', 'username': 'alice', 'length': 16},
            {'url': 'example.com', 'username': 'alice', 'length': '16'},
            {'url': 'example.com', 'username': 'alice', 'length': True},
            ['example.com', 'alice', 16],
        ]
        for record in invalid:
            with pytest.raises(InvalidEntry):
                Entry.from_dict(record)

    def test_derive_password_uses_identity_as_salt(self):
        entry = Entry(username='alice', url='example.com', length=16)
        assert entry.derive_password(b'hunter2') == '455nNJFzr6txXNk9'

    def test_renaming_changes_password(self):
        alice = Entry(username='alice', url='example.com', length=16)
        bob = Entry(username='bob', url='example.com', length=16)
        assert alice.derive_password(b'hunter2') != bob.derive_password(b'hunter2')


class TestEntries:
    """Test Entries collection"""

    @pytest.fixture
    def entries(self):
        return Entries([
            Entry(username='alice', url='foo.com', length=16),
            Entry(username='bob', url='foo.org', length=20),
            Entry(username='carol', url='bar.net', length=12),
        ])

    def test_get(self, entries):
        entry = entries.get('bob@foo.org')
        assert entry == Entry(username='bob', url='foo.org', length=20)

    def test_get_missing(self, entries):
        assert entries.get('dave@foo.com') is None
        assert entries.get('alice@foo') is None

    def test_get_returns_matching_value(self, entries):
        """Lookups return the matched entry, not the last one scanned"""
        assert entries.get('alice@foo.com').username == 'alice'
        assert entries.get('carol@bar.net').username == 'carol'

    def test_index_of(self, entries):
        assert entries.index_of('alice@foo.com') == 0
        assert entries.index_of('carol@bar.net') == 2
        assert entries.index_of('nobody@nowhere') is None

    def test_filter(self, entries):
        foo = entries.filter('foo')
        assert [e.identity() for e in foo] == ['alice@foo.com', 'bob@foo.org']
        assert isinstance(foo, Entries)
        assert entries.filter('baz') == []

    def test_filter_is_case_sensitive(self, entries):
        assert entries.filter('FOO') == []

    def test_filter_spans_separator(self, entries):
        assert [e.identity() for e in entries.filter('b@foo')] == ['bob@foo.org']

    def test_str(self, entries):
        assert str(entries) == 'alice@foo.com (16)\nbob@foo.org (20)\ncarol@bar.net (12)\n'
        assert str(Entries()) == ''
