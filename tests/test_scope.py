"""Tests for the variable scope chain."""

import pytest

from plz.errors import UndefinedVariable
from plz.model import Variable
from plz.scope import Scope, Undefined, resolve


def frame(**values):
    return {name: Variable.literal(name, value) for name, value in values.items()}


class TestLookup:
    """Tests for name lookup through the chain."""

    def test_innermost_frame_wins(self):
        """Test a child frame shadows the same name in an ancestor frame."""
        scope = Scope.root(frame(name="root")).push(frame(name="child"))
        assert scope.lookup("name").value == "child"

    def test_falls_back_to_outer_frames(self):
        """Test names missing from the inner frame are found further out."""
        scope = Scope.root(frame(greeting="hi")).push(frame(name="child"))
        assert scope.lookup("greeting").value == "hi"

    def test_undefined_name(self):
        """Test a missing name returns the Undefined sentinel."""
        scope = Scope.root(frame(a="1"))
        assert scope.lookup("b") is Undefined
        assert resolve(scope, "b") is Undefined
        assert not Undefined

    def test_find_raises_undefined_variable(self):
        """Test find() signals UndefinedVariable with the name."""
        with pytest.raises(UndefinedVariable) as exc:
            Scope.root(frame(a="1")).find("missing")
        assert exc.value.name == "missing"

    def test_find_reports_frame_index(self):
        """Test find() returns the index of the frame holding the binding."""
        scope = Scope.root(frame(a="outer")).push(frame(b="inner"))
        index, variable = scope.find("a")
        assert index == 1
        assert variable.value == "outer"

    def test_find_can_start_past_inner_frames(self):
        """Test find() with a start index skips the inner frames."""
        scope = Scope.root(frame(a="outer")).push(frame(a="inner"))
        assert scope.find("a", start=1)[1].value == "outer"


class TestBinding:
    """Tests for bind() and push()."""

    def test_bind_replaces_only_innermost(self):
        """Test bind() never touches ancestor frames."""
        outer = Scope.root(frame(name="root"))
        scope = outer.push(frame(other="x"))
        bound = scope.bind("name", Variable.literal("name", "bound"))

        assert bound.lookup("name").value == "bound"
        assert bound.find("name", start=1)[1].value == "root"
        assert scope.lookup("name").value == "root"
        assert outer.lookup("name").value == "root"

    def test_push_does_not_mutate_parent(self):
        """Test pushing a frame returns a new scope."""
        parent = Scope.root(frame(a="1"))
        child = parent.push(frame(a="2"))
        assert parent.lookup("a").value == "1"
        assert child.lookup("a").value == "2"
        assert len(child) == 2

    def test_frames_are_read_only(self):
        """Test frames cannot be modified through the scope."""
        scope = Scope.root(frame(a="1"))
        with pytest.raises(TypeError):
            scope.frames[0]["a"] = Variable.literal("a", "2")

    def test_frames_are_copied(self):
        """Test later changes to the source mapping do not leak in."""
        source = frame(a="1")
        scope = Scope.root(source)
        source["a"] = Variable.literal("a", "2")
        assert scope.lookup("a").value == "1"

    def test_visible_applies_shadowing(self):
        """Test visible() merges frames with inner frames winning."""
        scope = Scope.root(frame(a="1", b="2")).push(frame(b="3"))
        visible = scope.visible()
        assert visible["a"].value == "1"
        assert visible["b"].value == "3"
        assert "b" in scope
        assert "c" not in scope
