"""Parse a project once and hold the declaration tables every later phase reads."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path

from callchain.config import AnalyzerConfig
from callchain.errors import ParseError, ProjectRootError
from callchain.mappings import mapping_path
from callchain.model import ParsedFile, TypeDeclaration
from callchain.parsers import SourceParser, get_parser

logger = logging.getLogger(__name__)

# Files to skip when walking Java sources.
_SKIP_FILES = {"package-info.java", "module-info.java"}

# Below this many files, process start-up costs more than it saves.
MIN_FILES_FOR_PARALLEL = 64

# One parser per backend per process.
_PARSER_CACHE: dict[str, SourceParser] = {}


# Directory name that starts a source tree; package directories below it are never excluded.
SOURCE_ROOT = "src"


def _excluded_segment(directories: tuple[str, ...], excluded: set[str]) -> str | None:
    """First excluded directory above the source root, if any."""
    if SOURCE_ROOT in directories:
        directories = directories[: directories.index(SOURCE_ROOT)]
    for name in directories:
        if name in excluded:
            return name
    return None


def discover_sources(root: Path, exclude: Iterable[str] = ()) -> list[Path]:
    """Return every ``*.java`` file under *root*, sorted, minus excluded directories.

    Excluded names only match directories above the first ``src`` segment,
    so a package named ``build`` or ``target`` is still indexed.
    """
    excluded = set(exclude)
    sources: list[Path] = []
    for java_file in sorted(root.rglob("*.java")):
        if java_file.name in _SKIP_FILES:
            continue
        segment = _excluded_segment(java_file.relative_to(root).parts[:-1], excluded)
        if segment is not None:
            logger.debug("Excluding %s (under %s/)", java_file, segment)
            continue
        if java_file.is_file():
            sources.append(java_file)
    return sources


def _cached_parser(name: str) -> SourceParser:
    parser = _PARSER_CACHE.get(name)
    if parser is None:
        parser = _PARSER_CACHE[name] = get_parser(name)
    return parser


def _parse_one(args: tuple[str, str]) -> tuple[str, ParsedFile | None, str | None]:
    """Parse a single file; returns ``(path, parsed, error)``.

    Must be at module level for ProcessPoolExecutor pickling. Errors travel
    back as text so one bad file never breaks the pool.
    """
    path, parser_name = args
    try:
        source = Path(path).read_bytes()
    except OSError as e:
        return path, None, f"could not read: {e}"
    try:
        return path, _cached_parser(parser_name).parse(source, path), None
    except ParseError as e:
        return path, None, str(e)


def _worker_count(requested: int | None, file_count: int) -> int:
    if requested is None:
        if file_count < MIN_FILES_FOR_PARALLEL:
            return 1
        return min(os.cpu_count() or 4, 8)
    return max(1, min(requested, file_count))


def _check_root(root: Path) -> None:
    if not root.exists():
        raise ProjectRootError(f"project root does not exist: {root}")
    if not root.is_dir():
        raise ProjectRootError(f"project root is not a directory: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise ProjectRootError(f"project root is not readable: {root}")
    try:
        next(root.iterdir(), None)
    except OSError as e:
        raise ProjectRootError(f"cannot list project root {root}: {e}") from e


class SourceIndex:
    """Parsed files plus the lookup tables built by the declarations pass.

    Constructing the index runs the declarations pass over *all* files, so
    any holder of a ``SourceIndex`` can rely on complete field and interface
    tables. Name collisions across packages are not disambiguated: the last
    declaration registered under a simple name wins.
    """

    def __init__(
        self,
        files: Sequence[ParsedFile],
        config: AnalyzerConfig | None = None,
        *,
        skipped: Sequence[str] = (),
    ) -> None:
        self.config = config or AnalyzerConfig()
        self.files: tuple[ParsedFile, ...] = tuple(files)
        self.skipped: tuple[str, ...] = tuple(skipped)

        self.class_files: dict[str, str] = {}
        self.types: dict[str, TypeDeclaration] = {}
        self.fields: dict[str, dict[str, str]] = {}
        self.interface_mappings: dict[str, dict[str, str]] = {}

        for parsed in self.files:
            for type_decl in parsed.types:
                self._register(type_decl)

    @classmethod
    def from_files(
        cls, files: Iterable[ParsedFile], config: AnalyzerConfig | None = None
    ) -> SourceIndex:
        """Index files that were parsed elsewhere."""
        return cls(list(files), config)

    @classmethod
    def build(cls, root: Path, config: AnalyzerConfig | None = None) -> SourceIndex:
        """Discover, parse and index every Java file under *root*.

        Raises :class:`ProjectRootError` before doing any work if *root*
        cannot be read. Files that fail to parse are skipped.
        """
        root = Path(root)
        _check_root(root)
        config = config or AnalyzerConfig()
        # Fail fast on an unknown backend instead of once per file.
        _cached_parser(config.parser)

        sources = discover_sources(root, config.exclude)
        workers = _worker_count(config.workers, len(sources))
        logger.debug(
            "Parsing %d Java files under %s (%s, %d worker(s))",
            len(sources),
            root,
            config.parser,
            workers,
        )

        args = [(str(path), config.parser) for path in sources]
        if workers > 1:
            with ProcessPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(_parse_one, args, chunksize=16))
        else:
            results = [_parse_one(a) for a in args]

        # Fan-in: merge in discovery order, independent of completion order.
        files: list[ParsedFile] = []
        skipped: list[str] = []
        for path, parsed, error in results:
            if parsed is None:
                logger.debug("Skipping %s: %s", path, error)
                skipped.append(path)
            else:
                files.append(parsed)

        index = cls(files, config, skipped=skipped)
        logger.debug(
            "Indexed %d types from %d files (%d skipped)",
            len(index.types),
            len(files),
            len(skipped),
        )
        return index

    def _register(self, type_decl: TypeDeclaration) -> None:
        name = type_decl.name
        self.class_files[name] = type_decl.file_path
        self.types[name] = type_decl
        self.fields[name] = dict(type_decl.fields)
        for field_name, field_type in type_decl.fields.items():
            logger.debug("Field: %s.%s : %s", name, field_name, field_type)

        if type_decl.is_interface:
            mappings: dict[str, str] = {}
            for method in type_decl.methods:
                path = mapping_path(method.annotations, self.config.mapping_annotations)
                if path is not None:
                    mappings[method.mapping_key] = path
                    logger.debug("Interface mapping: %s#%s -> %s", name, method.name, path)
            if mappings:
                self.interface_mappings[name] = mappings

    def find_type(self, name: str) -> TypeDeclaration | None:
        return self.types.get(name)

    def field_type(self, class_name: str, field_name: str) -> str | None:
        return self.fields.get(class_name, {}).get(field_name)

    def superclass_of(self, class_name: str) -> str | None:
        type_decl = self.types.get(class_name)
        return type_decl.superclass if type_decl else None

    def interface_mapping(self, interface_name: str, method_key: str) -> str | None:
        """Mapping path declared on ``interface_name`` for ``method#(sig)``."""
        return self.interface_mappings.get(interface_name, {}).get(method_key)

    def iter_types(self) -> Iterator[TypeDeclaration]:
        """Every declaration of every file, in file order (duplicates included)."""
        for parsed in self.files:
            yield from parsed.types
