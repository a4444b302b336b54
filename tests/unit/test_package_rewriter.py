"""
Unit tests for the package/import rewriter.
"""

from pathlib import Path

import pytest

from implmerge.languages.java.plugin import JavaPlugin
from implmerge.merger.edits import EditTransaction
from implmerge.merger.package_rewriter import rewrite_package


@pytest.fixture
def plugin():
    return JavaPlugin()


def rewrite(plugin, class_source, interface_source):
    class_file = plugin.parse_source(class_source, Path("GreeterImpl.java"))
    interface = plugin.parse_source(interface_source, Path("Greeter.java")).types[0]

    with EditTransaction(class_file.source) as transaction:
        rewrite_package(class_file, interface, transaction)
        return transaction.commit()


def test_package_replaced_and_import_removed(plugin):
    """Test moving the class into the interface's package."""
    class_source = """package com.acme.impl;

import com.acme.api.Greeter;
import java.util.List;

public class GreeterImpl implements Greeter {
}
"""
    result = rewrite(plugin, class_source, "package com.acme.api;\n\npublic interface Greeter {}\n")

    assert result == """package com.acme.api;

import java.util.List;

public class GreeterImpl implements Greeter {
}
"""


def test_same_package_left_alone(plugin):
    """Test that nothing changes when the packages already agree."""
    class_source = "package com.acme;\n\npublic class GreeterImpl implements Greeter {\n}\n"

    assert rewrite(plugin, class_source, "package com.acme;\n\ninterface Greeter {}\n") == class_source


def test_package_inserted_when_missing(plugin):
    """Test that a class in the default package gets the interface's package."""
    class_source = "public class GreeterImpl implements Greeter {\n}\n"

    result = rewrite(plugin, class_source, "package com.acme.api;\n\ninterface Greeter {}\n")

    assert result == "package com.acme.api;\n\npublic class GreeterImpl implements Greeter {\n}\n"


def test_package_removed_for_default_package_interface(plugin):
    """Test that the package line goes when the interface has none."""
    class_source = "package com.acme.impl;\n\npublic class GreeterImpl implements Greeter {\n}\n"

    result = rewrite(plugin, class_source, "interface Greeter {}\n")

    assert result == "\npublic class GreeterImpl implements Greeter {\n}\n"


def test_static_and_wildcard_imports_kept(plugin):
    """Test that only the exact single-type import of the interface is removed."""
    class_source = """package com.acme.impl;

import static com.acme.api.Greeter.DEFAULT;
import com.acme.api.*;
import com.acme.api.Greeter;
import com.acme.api.GreeterFactory;

public class GreeterImpl implements Greeter {
}
"""
    result = rewrite(plugin, class_source, "package com.acme.api;\n\npublic interface Greeter {}\n")

    assert "import static com.acme.api.Greeter.DEFAULT;\n" in result
    assert "import com.acme.api.*;\n" in result
    assert "import com.acme.api.GreeterFactory;\n" in result
    assert "import com.acme.api.Greeter;\n" not in result
