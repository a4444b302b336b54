"""
Java source parser.

Handles Java parsing with tree-sitter and builds the owned syntax model
(package, imports, types, methods, doc comments) used by the merger.
"""

import logging
import re
from pathlib import Path
from typing import Any

from implmerge.languages.base.plugin import SourceParser
from implmerge.languages.java.model import (
    CommentNode,
    DocComment,
    ImportDecl,
    JavaFile,
    MethodDecl,
    PackageDecl,
    TypeDecl,
    TypeKind,
    TypeRef,
)

logger = logging.getLogger(__name__)

COMMENT_TYPES = frozenset({"comment", "line_comment", "block_comment"})

TYPE_DECLARATIONS = {
    "class_declaration": TypeKind.CLASS,
    "interface_declaration": TypeKind.INTERFACE,
}

_NAME_TYPES = ("identifier", "scoped_identifier")
_ANNOTATION_TYPES = ("marker_annotation", "annotation")
_FIELD_TYPES = ("field_declaration", "constant_declaration")

_ANNOTATION = re.compile(r"@[\w.]+(\s*\([^()]*\))?\s*")
_TYPE_ARGUMENTS = re.compile(r"<[^<>]*>")


def erase_type(type_text: str, type_variables: dict[str, str] | None = None) -> str:
    """
    Reduce a parameter type to the form used for override matching.

    Annotations, type arguments, whitespace and package qualifiers are dropped;
    array dimensions are kept (``java.util.List<String>[]`` -> ``List[]``).
    Type variables in ``type_variables`` are replaced by their erasure, so
    ``<T> void f(T[] x)`` and ``<K> void f(K[] x)`` both give ``Object[]``.
    """
    text = _ANNOTATION.sub("", type_text)
    previous = None
    while previous != text:
        previous = text
        text = _TYPE_ARGUMENTS.sub("", text)
    text = re.sub(r"\s+", "", text)

    dims = ""
    while text.endswith("[]"):
        dims += "[]"
        text = text[:-2]
    base = text.rsplit(".", 1)[-1]
    if type_variables and text in type_variables:
        base = type_variables[text]
    return base + dims


class JavaPlugin(SourceParser):
    """Java parser using tree-sitter."""

    def __init__(self):
        self._parser = None

    @property
    def language_name(self) -> str:
        return "java"

    @property
    def file_extensions(self) -> list[str]:
        return [".java"]

    # =========================================================================
    # Parsing (using tree-sitter)
    # =========================================================================

    def _get_parser(self):
        """Lazy initialization of tree-sitter parser."""
        if self._parser is None:
            try:
                import tree_sitter_java as tsjava
                from tree_sitter import Language, Parser

                JAVA_LANGUAGE = Language(tsjava.language())
                self._parser = Parser(JAVA_LANGUAGE)
            except ImportError:
                raise RuntimeError(
                    "tree-sitter-java not installed. Run: pip install tree-sitter-java"
                )
        return self._parser

    def parse_source(self, source_code: str, file_path: Path | None = None) -> JavaFile:
        """Parse Java source code into a JavaFile."""
        source_bytes = source_code.encode("utf-8")
        tree = self._get_parser().parse(source_bytes)
        root = tree.root_node

        java_file = JavaFile(source=source_bytes, path=file_path, has_errors=root.has_error)
        if java_file.has_errors:
            logger.debug("Syntax errors while parsing %s", file_path or "<source>")

        for child in root.children:
            if child.type == "package_declaration":
                java_file.package = self._extract_package(child, java_file)
            elif child.type == "import_declaration":
                import_decl = self._extract_import(child, java_file)
                if import_decl:
                    java_file.imports.append(import_decl)
            elif child.type in TYPE_DECLARATIONS:
                java_file.types.append(self._extract_type(child, java_file))

        java_file.comments = [
            CommentNode(
                text=java_file.text(node.start_byte, node.end_byte),
                start_byte=node.start_byte,
                end_byte=node.end_byte,
            )
            for node in self._traverse_tree(root)
            if node.type in COMMENT_TYPES
        ]
        return java_file

    def _traverse_tree(self, node: Any):
        """Traverse tree-sitter tree depth-first, in source order, without recursion."""
        stack = [node]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    @staticmethod
    def _node_text(java_file: JavaFile, node: Any) -> str:
        return java_file.text(node.start_byte, node.end_byte)

    # =========================================================================
    # Package & Imports
    # =========================================================================

    def _extract_package(self, node: Any, java_file: JavaFile) -> PackageDecl | None:
        for child in node.named_children:
            if child.type in _NAME_TYPES:
                return PackageDecl(
                    name=re.sub(r"\s+", "", self._node_text(java_file, child)),
                    start_byte=node.start_byte,
                    end_byte=node.end_byte,
                    name_start_byte=child.start_byte,
                    name_end_byte=child.end_byte,
                )
        return None

    def _extract_import(self, node: Any, java_file: JavaFile) -> ImportDecl | None:
        """
        Parse a single import declaration node.

        Handles:
        - import java.util.List;
        - import java.util.*;
        - import static java.lang.Math.PI;
        """
        name_node = next((c for c in node.named_children if c.type in _NAME_TYPES), None)
        if name_node is None:
            return None

        return ImportDecl(
            name=re.sub(r"\s+", "", self._node_text(java_file, name_node)),
            is_static=any(c.type == "static" for c in node.children),
            is_wildcard=any(c.type == "asterisk" for c in node.children),
            start_byte=node.start_byte,
            end_byte=node.end_byte,
        )

    # =========================================================================
    # Type Declarations
    # =========================================================================

    def _extract_type(self, node: Any, java_file: JavaFile) -> TypeDecl:
        """Extract a class or interface declaration, including nested types."""
        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        type_parameters = node.child_by_field_name("type_parameters")
        type_variables = self._type_variables(type_parameters, java_file)

        if body is not None:
            body_start = body.start_byte + 1
            closing = body.children[-1] if body.children else None
            body_end = closing.start_byte if closing is not None and closing.type == "}" else body.end_byte
        else:
            body_start = body_end = node.end_byte

        decl = TypeDecl(
            kind=TYPE_DECLARATIONS[node.type],
            name=self._node_text(java_file, name_node) if name_node else "<anonymous>",
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            first_child_start=node.children[0].start_byte if node.children else None,
            body_start_byte=body_start,
            body_end_byte=body_end,
            member_indent=self._member_indent(node, body, java_file),
            doc=self._doc_comment(node, java_file),
            type_parameters=self._node_text(java_file, type_parameters) if type_parameters else None,
            file=java_file,
        )

        superclass = node.child_by_field_name("superclass")
        if superclass is not None and superclass.named_children:
            decl.superclass = self._type_ref(superclass.named_children[-1], java_file)

        for clause in node.children:
            if clause.type in ("super_interfaces", "extends_interfaces"):
                decl.super_interfaces.extend(self._type_list(clause, java_file))

        if body is not None:
            for member in body.named_children:
                if member.type == "method_declaration":
                    method = self._extract_method(member, java_file)
                    method.owner = decl
                    decl.methods.append(method)
                elif member.type in TYPE_DECLARATIONS:
                    decl.nested.append(self._extract_type(member, java_file))
                elif member.type in _FIELD_TYPES:
                    decl.field_count += 1

        return decl

    def _type_list(self, clause: Any, java_file: JavaFile) -> list[TypeRef]:
        type_list = next((c for c in clause.named_children if c.type == "type_list"), clause)
        return [self._type_ref(t, java_file) for t in type_list.named_children]

    def _type_ref(self, node: Any, java_file: JavaFile) -> TypeRef:
        if node.type == "generic_type":
            base = next((c for c in node.named_children if c.type != "type_arguments"), node)
            arguments = next((c for c in node.named_children if c.type == "type_arguments"), None)
            return TypeRef(
                name=self._clean_type_name(self._node_text(java_file, base)),
                type_arguments=self._node_text(java_file, arguments) if arguments else None,
            )
        return TypeRef(name=self._clean_type_name(self._node_text(java_file, node)))

    @staticmethod
    def _clean_type_name(text: str) -> str:
        return re.sub(r"\s+", "", _ANNOTATION.sub("", text))

    def _member_indent(self, node: Any, body: Any, java_file: JavaFile) -> str:
        if body is not None:
            for member in body.named_children:
                if java_file.line_start(member.start_byte) > java_file.line_start(body.start_byte):
                    return java_file.line_indent(member.start_byte)
        return java_file.line_indent(node.start_byte) + "    "

    # =========================================================================
    # Methods
    # =========================================================================

    def _extract_method(self, node: Any, java_file: JavaFile) -> MethodDecl:
        """Extract a method declaration with its erased signature."""
        name_node = node.child_by_field_name("name")

        modifiers: set[str] = set()
        for child in node.children:
            if child.type == "modifiers":
                modifiers.update(m.type for m in child.children if m.type not in _ANNOTATION_TYPES)

        type_parameters = node.child_by_field_name("type_parameters")
        type_variables = self._type_variables(type_parameters, java_file)

        return MethodDecl(
            name=self._node_text(java_file, name_node) if name_node else "unknownMethod",
            parameter_types=self._extract_param_types(node, java_file, type_variables),
            modifiers=frozenset(modifiers),
            has_body=node.child_by_field_name("body") is not None,
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            first_child_start=node.children[0].start_byte if node.children else None,
            doc=self._doc_comment(node, java_file),
            type_parameters=self._node_text(java_file, type_parameters) if type_parameters else None,
        )

    def _type_variables(self, type_parameters: Any, java_file: JavaFile) -> dict[str, str]:
        """Erasure of each declared type variable: its first bound, or ``Object``."""
        variables: dict[str, str] = {}
        if type_parameters is None:
            return variables

        for param in type_parameters.named_children:
            if param.type != "type_parameter":
                continue
            name_node = next((c for c in param.named_children if c.type in ("type_identifier", "identifier")), None)
            if name_node is None:
                continue
            bound = next((c for c in param.named_children if c.type == "type_bound"), None)
            if bound is not None and bound.named_children:
                erased = erase_type(self._node_text(java_file, bound.named_children[0]), variables)
            else:
                erased = "Object"
            variables[self._node_text(java_file, name_node)] = erased
        return variables

    def _extract_param_types(
        self, node: Any, java_file: JavaFile, type_variables: dict[str, str] | None = None
    ) -> tuple[str, ...]:
        """Erased parameter types, used to discriminate overloads."""
        params = node.child_by_field_name("parameters")
        if params is None:
            return ()

        param_types: list[str] = []
        for param in params.named_children:
            if param.type == "formal_parameter":
                type_node = param.child_by_field_name("type")
                if type_node is None:
                    continue
                type_text = self._node_text(java_file, type_node)
                dims = param.child_by_field_name("dimensions")
                if dims is not None:
                    type_text += "[]" * self._node_text(java_file, dims).count("[")
                param_types.append(erase_type(type_text, type_variables))
            elif param.type == "spread_parameter":
                type_node = next(
                    (c for c in param.named_children if c.type not in ("modifiers", "variable_declarator")),
                    None,
                )
                if type_node is not None:
                    param_types.append(erase_type(self._node_text(java_file, type_node), type_variables) + "[]")
        return tuple(param_types)

    # =========================================================================
    # Documentation
    # =========================================================================

    def _doc_comment(self, node: Any, java_file: JavaFile) -> DocComment | None:
        """The ``/** */`` comment directly preceding a declaration, if any."""
        prev = node.prev_sibling
        if prev is None or prev.type not in COMMENT_TYPES:
            return None

        text = self._node_text(java_file, prev)
        if not text.startswith("/**"):
            return None
        if java_file.source[prev.end_byte:node.start_byte].strip():
            return None

        return DocComment(
            text=text,
            start_byte=prev.start_byte,
            end_byte=prev.end_byte,
            column=java_file.column(prev.start_byte),
        )
