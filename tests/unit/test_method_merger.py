"""
Unit tests for the method merger and documentation propagation.
"""

import logging

import pytest

from implmerge.config.models import NullAnchorPolicy
from implmerge.languages.java.plugin import JavaPlugin
from implmerge.merger.doc_propagator import DocPropagator, has_own_doc
from implmerge.merger.edits import EditTransaction
from implmerge.merger.errors import StructuralError
from implmerge.merger.matcher import match
from implmerge.merger.method_merger import MethodMerger


SHAPE = """public interface Shape {

    /**
     * Area of the shape.
     */
    default double area() {
        return 0;
    }

    /**
     * Display name.
     */
    String name();

    default String describe() {
        return name() + " " + area();
    }
}
"""

SHAPE_IMPL = """public class ShapeImpl implements Shape {
    private final String label = "square";

    public String name() {
        return label;
    }
}
"""


class CountingPropagator(DocPropagator):
    """Records every propagation request."""

    def __init__(self, transaction):
        super().__init__(transaction)
        self.calls = []

    def propagate_doc(self, source, target):
        self.calls.append((source.name, target.name))
        super().propagate_doc(source, target)


@pytest.fixture
def plugin():
    return JavaPlugin()


def run_merge(plugin, interface_source, class_source, null_anchor=NullAnchorPolicy.PREPEND, propagator_cls=None):
    interface = plugin.parse_source(interface_source).types[0]
    target = plugin.parse_source(class_source).types[0]
    matches = match(interface.methods, target.methods)

    with EditTransaction(target.file.source) as transaction:
        propagator = propagator_cls(transaction) if propagator_cls else None
        merger = MethodMerger(
            target,
            transaction,
            propagator=propagator,
            null_anchor=null_anchor,
            interface_name=interface.name,
        )
        report = merger.merge(matches)
        return transaction.commit(), report, merger.propagator


def test_report_lists_each_decision(plugin):
    """Test that copies, matches and documentation are reported per method."""
    _, report, _ = run_merge(plugin, SHAPE, SHAPE_IMPL)

    assert report.class_name == "ShapeImpl"
    assert report.interface_name == "Shape"
    assert report.copied == ["area()", "describe()"]
    assert report.matched == ["name()"]
    assert report.documented == ["name()"]
    assert not report.has_ambiguities


def test_copies_follow_last_matched_method(plugin):
    """Test that a copy lands after the most recent matched implementation."""
    result, _, _ = run_merge(plugin, SHAPE, SHAPE_IMPL)

    assert result.index("String name()") < result.index("default String describe()")
    assert "    }\n\n    default String describe() {\n" in result


def test_leading_copy_prepended_to_class_body(plugin):
    """Test that a copy with no matched method before it goes to the top of the body."""
    result, _, _ = run_merge(plugin, SHAPE, SHAPE_IMPL)

    assert result.startswith(
        "public class ShapeImpl implements Shape {\n"
        "    /**\n"
        "     * Area of the shape.\n"
        "     */\n"
        "    default double area() {\n"
        "        return 0;\n"
        "    }\n"
    )
    assert result.index("double area()") < result.index("private final String label")


def test_leading_copy_skipped_when_configured(plugin, caplog):
    """Test that the skip policy leaves leading copies out and reports them."""
    with caplog.at_level(logging.ERROR):
        result, report, _ = run_merge(plugin, SHAPE, SHAPE_IMPL, null_anchor=NullAnchorPolicy.SKIP)

    assert "double area()" not in result
    assert report.unplaced == ["area()"]
    assert report.copied == ["describe()"]
    assert "Can't place area()" in caplog.text


def test_consecutive_copies_keep_interface_order(plugin):
    """Test that several copies after one anchor stay in declaration order."""
    interface = """interface Steps {
    void first();
    default void second() {}
    default void third() {}
}
"""
    impl = """class StepsImpl implements Steps {
    public void first() {
    }
}
"""
    result, _, _ = run_merge(plugin, interface, impl)

    assert result.index("first()") < result.index("second()") < result.index("third()")


def test_doc_propagated_onto_matched_implementation(plugin):
    """Test that the interface doc is placed before the implementation's first child."""
    result, _, _ = run_merge(plugin, SHAPE, SHAPE_IMPL)

    assert "    /**\n     * Display name.\n     */\n    public String name() {" in result


def test_doc_not_propagated_over_own_doc(plugin):
    """Test that an implementation with its own documentation keeps it."""
    impl = """public class ShapeImpl implements Shape {
    /** The label. */
    public String name() {
        return "x";
    }
}
"""
    result, report, _ = run_merge(plugin, SHAPE, impl)

    assert "Display name." not in result
    assert report.documented == []


def test_doc_propagated_over_placeholder(plugin):
    """Test that an {@inheritDoc} placeholder doesn't count as documentation."""
    impl = """public class ShapeImpl implements Shape {
    /** {@inheritDoc} */
    @Override
    public String name() {
        return "x";
    }
}
"""
    result, report, _ = run_merge(plugin, SHAPE, impl)

    assert report.documented == ["name()"]
    assert "     * Display name.\n     */\n    @Override\n" in result


def test_doc_propagated_once_per_implementation(plugin):
    """Test that each implementation receives documentation at most once."""
    _, _, propagator = run_merge(plugin, SHAPE, SHAPE_IMPL, propagator_cls=CountingPropagator)

    assert propagator.calls == [("name", "name")]


def test_ambiguous_method_left_unchanged(plugin, caplog):
    """Test that an interface method with two implementations is reported and skipped."""
    interface = """import java.util.List;

interface Processor {
    /** Processes items. */
    void process(List<String> items);
}
"""
    impl = """import java.util.List;

class ProcessorImpl implements Processor {
    public void process(List<String> items) {
    }

    public void process(List<Integer> items) {
    }
}
"""
    with caplog.at_level(logging.WARNING):
        result, report, _ = run_merge(plugin, interface, impl)

    assert result == impl
    assert report.matched == []
    assert [a.method for a in report.ambiguous] == ["process(List)"]
    assert len(report.ambiguous[0].implementations) == 2
    assert "more than 1 imp of method - process" in caplog.text



def test_generic_method_with_renamed_type_variable_is_matched(plugin):
    """Test that <T> T load(T) in the interface matches <K> K load(K) in the class."""
    interface = """interface Repo {
    /** Loads by key. */
    <T> T load(T key);
}
"""
    impl = """class RepoImpl implements Repo {
    public <K> K load(K key) {
        return key;
    }
}
"""
    result, report, _ = run_merge(plugin, interface, impl)

    assert report.copied == []
    assert report.matched == ["load(Object)"]
    assert result.count(" load(") == 1
    assert "    /** Loads by key. */\n    public <K> K load(K key) {\n" in result


class TestDocPropagator:
    """Tests for copying doc comments between declarations."""

    def test_class_doc_copied_above_modifiers(self, plugin):
        """Test class-level propagation before the first modifier."""
        interface = plugin.parse_source("/**\n * A shape.\n */\npublic interface Shape {}\n").types[0]
        target_file = plugin.parse_source("public class ShapeImpl implements Shape {}\n")

        with EditTransaction(target_file.source) as transaction:
            DocPropagator(transaction).propagate_doc(interface, target_file.types[0])
            result = transaction.commit()

        assert result == "/**\n * A shape.\n */\npublic class ShapeImpl implements Shape {}\n"

    def test_doc_reindented_for_nested_target(self, plugin):
        """Test that continuation lines follow the target's indentation."""
        interface = plugin.parse_source("interface Runner {\n    /**\n     * Runs.\n     */\n    void run();\n}\n")
        target_file = plugin.parse_source(
            "class Outer {\n    static class RunnerImpl {\n        public void run() {}\n    }\n}\n"
        )
        target = target_file.find_type("RunnerImpl").methods[0]

        with EditTransaction(target_file.source) as transaction:
            DocPropagator(transaction).propagate_doc(interface.types[0].methods[0], target)
            result = transaction.commit()

        assert "        /**\n         * Runs.\n         */\n        public void run() {}" in result

    def test_source_without_doc_rejected(self, plugin):
        """Test that propagating from an undocumented declaration fails."""
        java_file = plugin.parse_source("interface A {\n    void run();\n}\n")
        method = java_file.types[0].methods[0]

        with EditTransaction(java_file.source) as transaction:
            with pytest.raises(ValueError):
                DocPropagator(transaction).propagate_doc(method, method)

    def test_target_without_children_rejected(self, plugin):
        """Test that a target with nothing to anchor to raises a structural error."""
        java_file = plugin.parse_source("/** Doc. */\ninterface A {\n    void run();\n}\n")
        method = java_file.types[0].methods[0]
        method.first_child_start = None

        with EditTransaction(java_file.source) as transaction:
            with pytest.raises(StructuralError):
                DocPropagator(transaction).propagate_doc(java_file.types[0], method)

    def test_has_own_doc(self, plugin):
        """Test which comments count as real documentation."""
        java_file = plugin.parse_source(
            "class A {\n    /** Real. */\n    void a() {}\n    /** {@inheritDoc} */\n    void b() {}\n    void c() {}\n}\n"
        )
        a, b, c = java_file.types[0].methods

        assert has_own_doc(a)
        assert not has_own_doc(b)
        assert not has_own_doc(c)
