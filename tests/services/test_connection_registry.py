"""Connection registry tests — identify/forget bindings and reverse lookup."""

from app.services.connection_registry import ConnectionRegistry


def test_identify_binds_handle_to_user():
    registry = ConnectionRegistry()
    registry.identify("c1", "u1")
    assert registry.user_for("c1") == "u1"
    assert registry.connections_for("u1") == {"c1"}
    assert "c1" in registry


def test_one_user_many_connections():
    registry = ConnectionRegistry()
    registry.identify("c1", "u1")
    registry.identify("c2", "u1")
    assert registry.connections_for("u1") == {"c1", "c2"}
    assert len(registry) == 2


def test_identify_again_rebinds_handle():
    registry = ConnectionRegistry()
    registry.identify("c1", "u1")
    registry.identify("c1", "u2")
    assert registry.user_for("c1") == "u2"
    assert registry.connections_for("u1") == set()
    assert registry.connections_for("u2") == {"c1"}


def test_forget_removes_binding():
    registry = ConnectionRegistry()
    registry.identify("c1", "u1")
    registry.identify("c2", "u1")
    registry.forget("c1")
    assert "c1" not in registry
    assert registry.connections_for("u1") == {"c2"}
    registry.forget("c2")
    assert len(registry) == 0
    assert registry.connections_for("u1") == set()


def test_forget_unknown_handle_is_noop():
    registry = ConnectionRegistry()
    registry.forget("never-seen")
    assert len(registry) == 0


def test_connections_for_returns_a_copy():
    registry = ConnectionRegistry()
    registry.identify("c1", "u1")
    handles = registry.connections_for("u1")
    handles.add("c99")
    assert registry.connections_for("u1") == {"c1"}
