"""
Shared pytest fixtures for cpass tests.
"""

import os
import tempfile
import shutil
import pytest
from json import dumps


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    temp_path = tempfile.mkdtemp()
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def temp_store_path(temp_dir):
    """Return a temporary store file path (the file is not created)"""
    return os.path.join(temp_dir, 'bookmarks.json')


@pytest.fixture
def test_secret():
    """Return a test master secret"""
    return b'hunter2'


@pytest.fixture
def sample_records():
    """Return store records as they appear in the JSON file"""
    return [
        {'url': 'foo.com', 'username': 'alice', 'length': 16},
        {'url': 'foo.org', 'username': 'bob', 'length': 20},
        {'url': 'example.com', 'username': 'carol@mail.example.com', 'length': 44},
    ]


@pytest.fixture
def empty_store_path(temp_store_path):
    """Create a store file holding an empty array"""
    with open(temp_store_path, 'w') as f:
        f.write('[]')
    return temp_store_path


@pytest.fixture
def store_path(temp_store_path, sample_records):
    """Create a store file holding the sample records"""
    with open(temp_store_path, 'w') as f:
        f.write(dumps(sample_records, indent=2))
    return temp_store_path
