"""
Integration tests for lowmain against a real Neo4j.

These tests verify that:
1. An unreachable server yields a retryable CONNECTION_FAILED envelope
2. Node and relationship CRUD round-trips through the real driver
3. Deleting a connected node requires --detach
4. --limit caps rows from a real result stream

All but the first need a running Neo4j; they are skipped unless
NEO4J_PASSWORD is set (NEO4J_URI / NEO4J_USER / NEO4J_DB optional).
"""

import io
import json
import os
import uuid

import pytest

from lowmain.cli import main

requires_neo4j = pytest.mark.skipif(
    not os.environ.get("NEO4J_PASSWORD"), reason="NEO4J_PASSWORD not set; no live Neo4j"
)


def run(*argv, environ=None):
    """Run the real CLI and return (exit_status, envelope)."""
    out = io.StringIO()
    status = main(list(argv), environ=dict(os.environ) if environ is None else environ, stream=out)
    return status, json.loads(out.getvalue())


@pytest.fixture
def label():
    """Unique label per test so runs never collide."""
    return f"LowmainTest_{uuid.uuid4().hex[:12]}"


@pytest.fixture
def cleanup(label):
    yield
    if os.environ.get("NEO4J_PASSWORD"):
        run("query", f"MATCH (n:`{label}`) DETACH DELETE n", "--write")


class TestUnreachable:
    def test_ping_closed_port(self):
        """Verify a refused connection is CONNECTION_FAILED and retryable."""
        status, envelope = run(
            "ping",
            "--uri",
            "bolt://127.0.0.1:1",
            "--timeout",
            "2",
            environ={"NEO4J_PASSWORD": "irrelevant"},
        )
        assert status == 1
        assert envelope["ok"] is False
        assert envelope["error"]["code"] == "CONNECTION_FAILED"
        assert envelope["error"]["retryable"] is True
        assert envelope["next_actions"] == ["lowmain ping"]


@pytest.mark.integration
@requires_neo4j
class TestLiveCrud:
    def test_ping(self):
        status, envelope = run("ping")
        assert status == 0
        assert envelope["result"]["connected"] is True

    def test_node_lifecycle(self, label, cleanup):
        status, created = run("node", "create", "--label", label, "--props", '{"name": "Alice", "age": 30}')
        assert status == 0
        node = created["result"]["node"]
        assert list(node)[:2] == ["_id", "_labels"]
        node_id = str(node["_id"])

        status, fetched = run("node", "get", node_id)
        assert fetched["result"]["node"] == node

        status, updated = run("node", "update", node_id, "--set", '{"age": 31, "name": null}')
        assert status == 0
        assert updated["result"]["node"]["age"] == 31
        assert "name" not in updated["result"]["node"]

        status, found = run("node", "find", "--label", label, "--where", "age=31")
        assert found["result"]["count"] == 1

        status, deleted = run("node", "delete", node_id)
        assert status == 0
        assert deleted["result"]["deleted"] is True

        status, missing = run("node", "get", node_id)
        assert status == 1
        assert missing["error"]["code"] == "NODE_NOT_FOUND"

    def test_delete_requires_detach(self, label, cleanup):
        _, a = run("node", "create", "--label", label, "--props", "{}")
        _, b = run("node", "create", "--label", label, "--props", "{}")
        a_id, b_id = str(a["result"]["node"]["_id"]), str(b["result"]["node"]["_id"])

        status, rel = run("rel", "create", "--from", a_id, "--to", b_id, "--type", "LINKS")
        assert status == 0
        assert rel["result"]["relationship"]["_type"] == "LINKS"

        status, refused = run("node", "delete", a_id)
        assert status == 1
        assert refused["error"]["code"] == "CONSTRAINT_VIOLATION"
        assert "--detach" in refused["error"]["fix"]

        status, _ = run("node", "delete", a_id, "--detach")
        assert status == 0
        status, rels = run("rel", "find", "--to", b_id)
        assert rels["result"]["count"] == 0

    def test_rel_create_missing_endpoint(self, label, cleanup):
        _, a = run("node", "create", "--label", label, "--props", "{}")
        a_id = str(a["result"]["node"]["_id"])
        status, envelope = run("rel", "create", "--from", a_id, "--to", "999999999", "--type", "LINKS")
        assert status == 1
        assert envelope["error"]["code"] == "NODE_NOT_FOUND"

    def test_query_limit(self):
        status, envelope = run("query", "UNWIND range(1, 10) AS i RETURN i", "--limit", "5")
        assert status == 0
        assert envelope["result"]["count"] == 5
        assert envelope["result"]["truncated"] is True

    def test_syntax_error(self):
        status, envelope = run("query", "MATC (n) RETURN n")
        assert status == 1
        assert envelope["error"]["code"] == "CYPHER_SYNTAX_ERROR"

    def test_schema(self):
        status, envelope = run("schema")
        assert status == 0
        assert set(envelope["result"]) == {"labels", "relationship_types", "indexes", "constraints"}
