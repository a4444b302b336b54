"""
Owned syntax model for Java sources.

The parser fills these objects from a tree-sitter tree. Every node keeps the
byte range it came from, so structural edits can be expressed against the
original buffer and serialized once.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

INHERIT_DOC = "{@inheritDoc}"

_COMMENT_MARKERS = re.compile(r"//|/\*+|\*+/|\*")


def clean_comment_text(text: str) -> str:
    """Strip comment markers (``*``, ``//``, ``/*``, ``*/``) and surrounding whitespace."""
    return _COMMENT_MARKERS.sub("", text).strip()


class TypeKind(str, Enum):
    CLASS = "class"
    INTERFACE = "interface"


@dataclass
class CommentNode:
    """Any comment in a file (line, block or doc)."""

    text: str
    start_byte: int
    end_byte: int

    @property
    def is_doc(self) -> bool:
        return self.text.startswith("/**")


@dataclass(eq=False)
class DocComment:
    """A ``/** ... */`` block attached to the declaration that follows it."""

    text: str
    start_byte: int
    end_byte: int
    column: int

    @property
    def is_placeholder(self) -> bool:
        """True when the comment holds nothing but ``{@inheritDoc}``."""
        return clean_comment_text(self.text) == INHERIT_DOC

    @property
    def is_empty(self) -> bool:
        return not clean_comment_text(self.text)


@dataclass
class PackageDecl:
    name: str
    start_byte: int
    end_byte: int
    name_start_byte: int
    name_end_byte: int


@dataclass
class ImportDecl:
    name: str  # e.g. "com.acme.Greeter", without "static" or ".*"
    is_static: bool
    is_wildcard: bool
    start_byte: int
    end_byte: int


@dataclass
class TypeRef:
    """A type as written in an ``extends``/``implements`` clause."""

    name: str  # possibly qualified, type arguments removed
    type_arguments: str | None = None

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    @property
    def is_qualified(self) -> bool:
        return "." in self.name


@dataclass(eq=False)
class MethodDecl:
    """A method declaration. Hashes by identity so it can key match tables."""

    name: str
    parameter_types: tuple[str, ...]
    modifiers: frozenset[str]
    has_body: bool
    start_byte: int
    end_byte: int
    first_child_start: int | None
    doc: DocComment | None = None
    type_parameters: str | None = None
    owner: "TypeDecl | None" = field(default=None, repr=False)

    @property
    def signature(self) -> str:
        return f"{self.name}({', '.join(self.parameter_types)})"

    @property
    def override_key(self) -> tuple[str, tuple[str, ...]]:
        return (self.name, self.parameter_types)

    @property
    def is_static(self) -> bool:
        return "static" in self.modifiers

    @property
    def is_private(self) -> bool:
        return "private" in self.modifiers

    @property
    def is_default(self) -> bool:
        return "default" in self.modifiers

    @property
    def file(self) -> "JavaFile":
        return self.owner.file

    @property
    def text(self) -> str:
        return self.file.text(self.start_byte, self.end_byte)

    @property
    def qualified_signature(self) -> str:
        owner = self.owner.name if self.owner is not None else "?"
        return f"{owner}.{self.signature}"


@dataclass(eq=False)
class TypeDecl:
    """A class or interface declaration."""

    kind: TypeKind
    name: str
    start_byte: int
    end_byte: int
    first_child_start: int | None
    body_start_byte: int  # just after the opening brace
    body_end_byte: int  # at the closing brace
    member_indent: str
    doc: DocComment | None = None
    type_parameters: str | None = None
    superclass: TypeRef | None = None
    super_interfaces: list[TypeRef] = field(default_factory=list)
    methods: list[MethodDecl] = field(default_factory=list)
    field_count: int = 0
    nested: list["TypeDecl"] = field(default_factory=list)
    file: "JavaFile | None" = field(default=None, repr=False)

    @property
    def is_interface(self) -> bool:
        return self.kind == TypeKind.INTERFACE

    @property
    def qualified_name(self) -> str:
        package = self.file.package_name if self.file is not None else None
        return f"{package}.{self.name}" if package else self.name

    def contains(self, offset: int) -> bool:
        return self.start_byte <= offset < self.end_byte


@dataclass(eq=False)
class JavaFile:
    """A parsed compilation unit."""

    source: bytes
    path: Path | None = None
    package: PackageDecl | None = None
    imports: list[ImportDecl] = field(default_factory=list)
    types: list[TypeDecl] = field(default_factory=list)
    comments: list[CommentNode] = field(default_factory=list)
    has_errors: bool = False

    @property
    def package_name(self) -> str | None:
        return self.package.name if self.package else None

    def text(self, start: int, end: int) -> str:
        return self.source[start:end].decode("utf-8", errors="replace")

    def iter_types(self):
        """All type declarations, outer before inner."""
        stack = list(reversed(self.types))
        while stack:
            decl = stack.pop()
            yield decl
            stack.extend(reversed(decl.nested))

    def find_type(self, name: str) -> TypeDecl | None:
        for decl in self.iter_types():
            if decl.name == name:
                return decl
        return None

    def type_at(self, offset: int) -> TypeDecl | None:
        """Innermost type declaration enclosing a byte offset."""
        found = None
        for decl in self.iter_types():
            if decl.contains(offset):
                found = decl
        return found

    def line_start(self, offset: int) -> int:
        return self.source.rfind(b"\n", 0, offset) + 1

    def line_indent(self, offset: int) -> str:
        """Leading whitespace of the line containing ``offset``."""
        start = self.line_start(offset)
        end = start
        while end < len(self.source) and self.source[end:end + 1] in (b" ", b"\t"):
            end += 1
        return self.text(start, end)

    def column(self, offset: int) -> int:
        """Character column of a byte offset."""
        return len(self.text(self.line_start(offset), offset))
