"""
Package/Import Rewriter.

Moves the merged class into the interface's package and drops the import of
the interface, which would otherwise import the class into itself.
"""

import logging

from implmerge.languages.java.model import JavaFile, TypeDecl
from implmerge.merger.edits import EditTransaction

logger = logging.getLogger(__name__)


def rewrite_package(class_file: JavaFile, interface: TypeDecl, transaction: EditTransaction) -> None:
    """
    Give the class file the interface's package and remove the interface import.

    Args:
        class_file: Parsed file of the implementing class
        interface: The interface being merged into it
        transaction: Edit transaction over ``class_file``'s source
    """
    new_package = interface.file.package_name
    current = class_file.package

    if new_package is None:
        if current is not None:
            logger.info("Moving %s to the default package", class_file.path or "<source>")
            transaction.delete_lines(current.start_byte, current.end_byte)
    elif current is None:
        transaction.insert(0, f"package {new_package};\n\n")
    elif current.name != new_package:
        transaction.replace(current.name_start_byte, current.name_end_byte, new_package)
        logger.debug("Package %s -> %s", current.name, new_package)

    qualified_name = f"{new_package}.{interface.name}" if new_package else interface.name
    for import_decl in class_file.imports:
        if import_decl.is_static or import_decl.is_wildcard:
            continue
        if import_decl.name == qualified_name:
            transaction.delete_lines(import_decl.start_byte, import_decl.end_byte)
            logger.debug("Removed import of %s", qualified_name)
