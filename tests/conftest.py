# Shared pytest fixtures for CardVS tests

import pytest
import os
import sys
import shutil
import tempfile

# Make the package importable without installing it
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from cardvs.core.controller import VersionController
from cardvs.core.repository import Repository
from cardvs.core.tree import Node, Tree


@pytest.fixture
def temp_dir():
    # Creates a temporary directory that is cleaned up after the test
    original_dir = os.getcwd()
    tmp = tempfile.mkdtemp()
    yield tmp
    os.chdir(original_dir)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def base_tree():
    # 0
    # |-- 1 "A"
    # |   |-- 11 "A.1"
    # |   `-- 12 "A.2"
    # |       `-- 121 "A.2.1"
    # `-- 2 "B"
    #     `-- 21 "B.1"
    return Tree(Node("0", "", [
        Node("1", "A", [
            Node("11", "A.1"),
            Node("12", "A.2", [Node("121", "A.2.1")]),
        ]),
        Node("2", "B", [Node("21", "B.1")]),
    ]))


@pytest.fixture
def controller():
    return VersionController()


@pytest.fixture
def committed(controller, base_tree):
    # A controller whose head is base_tree
    head = controller.commit("tester", base_tree, message="base", timestamp=1000)
    return controller, head


@pytest.fixture
def clone():
    # Returns a function that builds an independent controller holding source's head
    def _clone(source):
        copy = VersionController()
        copy.merge(source.head, source.store.delta(source.head))
        return copy
    return _clone


@pytest.fixture
def repo(temp_dir):
    # An initialized on-disk repository
    repository = Repository(os.path.join(temp_dir, 'doc'))
    repository.init()
    return repository


@pytest.fixture
def other_repo(temp_dir):
    repository = Repository(os.path.join(temp_dir, 'other'))
    repository.init()
    return repository


@pytest.fixture
def deep_tree():
    # 0 -> d0 -> d1 -> ... -> d1499, deeper than the interpreter's recursion limit
    node = Node("d1499", "leaf")
    for i in range(1498, -1, -1):
        node = Node(f"d{i}", f"level {i}", [node])
    return Tree(Node("0", "", [node]))
