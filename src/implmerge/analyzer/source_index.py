"""
Source index.

Resolves type references (``implements Foo``, ``extends Base``) to parsed
declarations under a source root, and collects the full method sets of a
type including what it inherits from types in the same source tree.
"""

import logging
from pathlib import Path

from implmerge.languages.base.plugin import SourceParser
from implmerge.languages.java.model import JavaFile, MethodDecl, TypeDecl, TypeRef
from implmerge.workspace.file_store import FileStore

logger = logging.getLogger(__name__)


def infer_source_root(path: Path, package: str | None) -> Path:
    """
    Source root of a file, derived from its package declaration.

    ``src/main/java/com/acme/FooImpl.java`` in package ``com.acme`` gives
    ``src/main/java``. Falls back to the file's directory when the layout does
    not follow the package.
    """
    directory = path.resolve().parent
    if not package:
        return directory

    parts = package.split(".")
    if len(directory.parts) > len(parts) and list(directory.parts[-len(parts):]) == parts:
        return directory.parents[len(parts) - 1]
    return directory


class SourceIndex:
    """Caches parsed files and maps qualified type names to their files."""

    def __init__(
        self,
        plugin: SourceParser,
        store: FileStore,
        root: Path | None = None,
        exclude_patterns: list[str] | None = None,
    ):
        self.plugin = plugin
        self.store = store
        self.root = root
        self.exclude_patterns = exclude_patterns or []
        self._files: dict[Path, JavaFile] = {}
        self._by_name: dict[str, Path] | None = None

    # =========================================================================
    # File Cache
    # =========================================================================

    def load(self, path: Path) -> JavaFile:
        """Parse a file, reusing the cached result if it was parsed before."""
        key = path.resolve()
        if key not in self._files:
            self._files[key] = self.plugin.parse_source(self.store.read(path), path)
        return self._files[key]

    def invalidate(self, path: Path) -> None:
        """Forget a file after it was rewritten or deleted."""
        key = path.resolve()
        self._files.pop(key, None)
        if self._by_name is not None:
            self._by_name = {name: p for name, p in self._by_name.items() if p.resolve() != key}

    def set_root(self, root: Path) -> None:
        if self.root is None or root.resolve() != self.root.resolve():
            self.root = root
            self._by_name = None

    def _index(self) -> dict[str, Path]:
        if self._by_name is None:
            self._by_name = {}
            if self.root is not None:
                for path in self.store.list_files(self.root, "*.java", self.exclude_patterns):
                    try:
                        java_file = self.load(path)
                    except (OSError, UnicodeDecodeError) as e:
                        logger.warning("Failed to index %s: %s", path, e)
                        continue
                    for decl in java_file.types:
                        self._by_name.setdefault(decl.qualified_name, path)
                logger.debug("Indexed %d type(s) under %s", len(self._by_name), self.root)
        return self._by_name

    # =========================================================================
    # Resolution
    # =========================================================================

    def candidate_names(self, ref: TypeRef, context: JavaFile) -> list[str]:
        """Qualified names a reference may denote, most specific first."""
        if ref.is_qualified:
            return [ref.name]

        simple = ref.simple_name
        names = [
            imp.name
            for imp in context.imports
            if not imp.is_static and not imp.is_wildcard and imp.name.rsplit(".", 1)[-1] == simple
        ]
        package = context.package_name
        names.append(f"{package}.{simple}" if package else simple)
        names.extend(f"{imp.name}.{simple}" for imp in context.imports if imp.is_wildcard and not imp.is_static)
        return names

    def _lookup(self, qualified_name: str) -> TypeDecl | None:
        simple = qualified_name.rsplit(".", 1)[-1]

        if self.root is not None:
            conventional = self.root.joinpath(*qualified_name.split(".")).with_suffix(".java")
            if conventional.is_file():
                decl = self.load(conventional).find_type(simple)
                if decl is not None and decl.qualified_name == qualified_name:
                    return decl

        path = self._index().get(qualified_name)
        if path is None:
            return None
        return self.load(path).find_type(simple)

    def resolve(self, ref: TypeRef, context: JavaFile) -> TypeDecl | None:
        """
        Find the declaration a type reference points to.

        Tries the referencing file itself, then the qualified name, single-type
        imports, the file's own package and on-demand imports, and finally a
        unique simple-name match anywhere under the source root.
        """
        if not ref.is_qualified:
            local = context.find_type(ref.simple_name)
            if local is not None:
                return local

        for name in self.candidate_names(ref, context):
            decl = self._lookup(name)
            if decl is not None:
                return decl

        paths = {p for name, p in self._index().items() if name.rsplit(".", 1)[-1] == ref.simple_name}
        if len(paths) == 1:
            return self.load(paths.pop()).find_type(ref.simple_name)
        if len(paths) > 1:
            logger.warning("Type %s is declared in %d files; can't choose", ref.name, len(paths))
        return None

    # =========================================================================
    # Method Sets
    # =========================================================================

    def interface_methods(self, interface: TypeDecl) -> list[MethodDecl]:
        """Methods of an interface followed by those of its super-interfaces, first declaration wins."""
        methods: list[MethodDecl] = []
        seen: set[tuple] = set()
        visited: set[int] = set()
        queue = [interface]

        while queue:
            decl = queue.pop(0)
            if id(decl) in visited:
                continue
            visited.add(id(decl))

            for method in decl.methods:
                if method.override_key not in seen:
                    seen.add(method.override_key)
                    methods.append(method)

            for ref in decl.super_interfaces:
                parent = self.resolve(ref, decl.file)
                if parent is None:
                    logger.warning("Can't resolve super-interface %s of %s", ref.name, decl.name)
                    continue
                queue.append(parent)

        return methods

    def class_methods(self, target: TypeDecl, include_superclasses: bool = True) -> list[MethodDecl]:
        """
        Methods of a class plus the non-private methods it inherits.

        Superclass methods already overridden further down the chain are left
        out. Methods declared in the class itself are all kept, even when two
        of them share a signature.
        """
        methods = list(target.methods)
        if not include_superclasses:
            return methods

        seen = {m.override_key for m in methods}
        visited = {id(target)}
        current = target
        while current.superclass is not None:
            parent = self.resolve(current.superclass, current.file)
            if parent is None:
                logger.debug("Superclass %s of %s is outside the source tree", current.superclass.name, current.name)
                break
            if id(parent) in visited or parent.is_interface:
                break
            visited.add(id(parent))

            for method in parent.methods:
                if not method.is_private and method.override_key not in seen:
                    seen.add(method.override_key)
                    methods.append(method)
            current = parent

        return methods
