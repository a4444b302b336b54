"""
Unit tests for merge preconditions, target selection and planning.
"""

from pathlib import Path

import pytest

from implmerge.config.models import ImplMergeConfig, MatchDecision
from implmerge.languages.java.plugin import JavaPlugin
from implmerge.merger.errors import PreconditionError, UnsupportedConstructError
from implmerge.merger.orchestrator import MergeOrchestrator, select_target_class


def write(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def orchestrator():
    return MergeOrchestrator(ImplMergeConfig())


class TestSelectTargetClass:
    """Tests for choosing the class to merge within a file."""

    SOURCE = """public class Outer {
    static class RunnerImpl implements Runner {
        public void run() {
        }
    }

    interface Hidden {
    }
}

class Second implements Runnable {
    public void run() {}
}
"""

    def test_caret_selects_innermost_class(self):
        """Test that a caret inside a nested class selects that class."""
        java_file = JavaPlugin().parse_source(self.SOURCE)
        offset = self.SOURCE.index("public void run()")

        assert select_target_class(java_file, offset).name == "RunnerImpl"

    def test_caret_in_nested_interface_selects_enclosing_class(self):
        """Test that a caret inside an interface falls back to its enclosing class."""
        java_file = JavaPlugin().parse_source(self.SOURCE)
        offset = self.SOURCE.index("interface Hidden")

        assert select_target_class(java_file, offset).name == "Outer"

    def test_caret_outside_every_class(self):
        """Test that a caret before any declaration is rejected."""
        source = "import java.util.List;\n\nclass A {}\n"
        java_file = JavaPlugin().parse_source(source)

        with pytest.raises(PreconditionError):
            select_target_class(java_file, 0)

    def test_without_caret_prefers_class_with_implements(self):
        """Test the default choice of the first top-level class that implements something."""
        java_file = JavaPlugin().parse_source(self.SOURCE)

        assert select_target_class(java_file).name == "Second"

    def test_interface_only_file(self):
        """Test that a file without classes is rejected."""
        java_file = JavaPlugin().parse_source("interface A {}\n")

        with pytest.raises(PreconditionError):
            select_target_class(java_file)


class TestPreconditions:
    """Tests for files that must be skipped."""

    def test_two_interfaces(self, orchestrator, tmp_path):
        """Test that a class implementing two interfaces is refused."""
        write(tmp_path, "A.java", "interface A {}\n")
        write(tmp_path, "B.java", "interface B {}\n")
        path = write(tmp_path, "ABImpl.java", "public class ABImpl implements A, B {}\n")

        with pytest.raises(PreconditionError, match="2 interfaces"):
            orchestrator.prepare(path)

    def test_no_interface(self, orchestrator, tmp_path):
        """Test that a class implementing nothing is refused."""
        path = write(tmp_path, "PlainImpl.java", "public class PlainImpl {}\n")

        with pytest.raises(PreconditionError, match="0 interfaces"):
            orchestrator.prepare(path)

    def test_generic_interface(self, orchestrator, tmp_path):
        """Test that a parameterized interface is refused."""
        write(tmp_path, "Repository.java", "interface Repository<T> {\n    void save(T item);\n}\n")
        path = write(
            tmp_path,
            "RepositoryImpl.java",
            "public class RepositoryImpl implements Repository<String> {\n    public void save(String item) {}\n}\n",
        )

        with pytest.raises(UnsupportedConstructError):
            orchestrator.prepare(path)

    def test_interface_with_type_parameters(self, orchestrator, tmp_path):
        """Test that a raw use of a generic interface is refused too."""
        write(tmp_path, "Repository.java", "interface Repository<T> {\n    void save(T item);\n}\n")
        path = write(tmp_path, "RepositoryImpl.java", "public class RepositoryImpl implements Repository {}\n")

        with pytest.raises(UnsupportedConstructError):
            orchestrator.prepare(path)

    def test_unresolved_interface(self, orchestrator, tmp_path):
        """Test that an interface without source is refused."""
        path = write(tmp_path, "TaskImpl.java", "public class TaskImpl implements java.lang.Runnable {}\n")

        with pytest.raises(PreconditionError, match="Can't find"):
            orchestrator.prepare(path)

    def test_interface_in_same_file(self, orchestrator, tmp_path):
        """Test that an interface declared next to its class is refused."""
        path = write(tmp_path, "TaskImpl.java", "interface Task {}\n\npublic class TaskImpl implements Task {}\n")

        with pytest.raises(PreconditionError, match="same file"):
            orchestrator.prepare(path)

    def test_implements_a_class(self, orchestrator, tmp_path):
        """Test that a resolved type that isn't an interface is refused."""
        write(tmp_path, "Task.java", "class Task {}\n")
        path = write(tmp_path, "TaskImpl.java", "public class TaskImpl implements Task {}\n")

        with pytest.raises(PreconditionError, match="not an interface"):
            orchestrator.prepare(path)

    def test_syntax_errors(self, orchestrator, tmp_path):
        """Test that an unparsable file is refused."""
        path = write(tmp_path, "BrokenImpl.java", "public class BrokenImpl implements Broken {\n")

        with pytest.raises(PreconditionError, match="syntax errors"):
            orchestrator.prepare(path)


def test_plan_file(orchestrator, tmp_path):
    """Test the per-method decisions of a plan."""
    write(
        tmp_path,
        "Base.java",
        "public class Base {\n    public int size() { return 0; }\n}\n",
    )
    write(
        tmp_path,
        "Store.java",
        "import java.util.List;\n\npublic interface Store {\n"
        "    /** Saves. */\n    void save(List<String> items);\n"
        "    int size();\n"
        "    void clear();\n"
        "    default boolean isEmpty() { return size() == 0; }\n}\n",
    )
    path = write(
        tmp_path,
        "StoreImpl.java",
        "import java.util.List;\n\npublic class StoreImpl extends Base implements Store {\n"
        "    public void save(List<String> items) {}\n"
        "    public void save(List<Integer> items) {}\n"
        "    public void clear() {}\n}\n",
    )
    original = path.read_text(encoding="utf-8")

    plan = orchestrator.plan_file(path)

    decisions = {entry.method: entry.decision for entry in plan.entries}
    assert plan.class_name == "StoreImpl"
    assert plan.interface_name == "Store"
    assert decisions == {
        "save(List)": MatchDecision.AMBIGUOUS,
        "size()": MatchDecision.INHERITED,
        "clear()": MatchDecision.MERGE,
        "isEmpty()": MatchDecision.COPY,
    }
    assert plan.entries[0].has_doc
    assert plan.entries[1].implementations == ["Base.size()"]
    assert path.read_text(encoding="utf-8") == original
