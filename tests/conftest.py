"""Shared fixtures for the email network tests."""

import pytest

from email_graph import Graph

EXAMPLE_EDGES = [
    ("alice", "bob"),
    ("alice", "carol"),
    ("bob", "dave"),
    ("carol", "dave"),
    ("carol", "eve"),
    ("carol", "frank"),
    ("alice", "dave"),
]

TRIANGLES = [
    (u, v)
    for tri in (("A", "B", "C"), ("D", "E", "F"))
    for u in tri
    for v in tri
    if u != v
]

CSV_HEADER = ",date,sender,recipient1,subject,text\n"


@pytest.fixture
def example_graph():
    return Graph.build_from_pairs(EXAMPLE_EDGES)


@pytest.fixture
def triangles_graph():
    return Graph.build_from_pairs(TRIANGLES)


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV rows (already formatted lines) under the standard header."""
    def _write(lines, name="emails.csv", header=CSV_HEADER):
        path = tmp_path / name
        path.write_text(header + "".join(line + "\n" for line in lines))
        return str(path)
    return _write
