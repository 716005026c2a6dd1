"""
Base generator interface for all code generation targets.

Defines the contract that all language generators implement and the
operations built on it: preview, generate, orphans and clean. The
operations only use the abstract capability set, never a concrete backend.
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple, Union

from ..core.files import (
    CleanResult,
    FileError,
    GeneratedFile,
    GenerateResult,
    Overwrite,
    PreviewAction,
    PreviewFile,
    WriteOutcome,
    WriteResult,
)
from ..core.keywords import get_language_rules
from ..ir.app import AppIR
from ..logging_config import get_logger
from .builder import CodeFile
from .config import GeneratorConfig, load_config
from .errors import GeneratorError, RenderError
from .files import FileEntry, FileRegistry
from .imports import ImportCollector
from .naming import NamingConvention
from .templates import TemplateEngine, TemplateError, create_template_engine
from .tree import CommandTree, FlatCommand

logger = get_logger(__name__)

Snapshot = Union[None, str, Path, Iterable[str]]


class CodeGenerator(ABC):
    """Abstract base class for all code generators."""

    def __init__(self, app: AppIR, config: Optional[GeneratorConfig] = None):
        """
        Initialize generator for one application.

        Args:
            app: Application to generate
            config: Generator settings; language defaults when omitted
        """
        self.app = app
        self.config = config or load_config(self.language_name)
        self.tree = CommandTree.from_app(app)
        self._template_engine = None
        self._setup_templates()

    def _setup_templates(self):
        """Setup template engine for this generator."""
        self._template_engine = create_template_engine(self.get_template_directory())

    # Capability set

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the name of the target language (e.g., 'rust', 'python')."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Return the extension of generated source files (e.g., '.rs')."""
        pass

    @property
    @abstractmethod
    def naming(self) -> NamingConvention:
        """Naming convention applied to every generated symbol and file."""
        pass

    @property
    def reserved_words(self) -> FrozenSet[str]:
        """Words that cannot be used as identifiers in this language."""
        return get_language_rules(self.language_name).reserved_words

    @property
    @abstractmethod
    def managed_dirs(self) -> Tuple[str, ...]:
        """
        Output directories owned by the generator.

        Orphan detection and clean never look outside them.
        """
        pass

    @property
    @abstractmethod
    def handlers_dir(self) -> str:
        """Directory holding generate-once handler files."""
        pass

    @property
    @abstractmethod
    def entry_file(self) -> str:
        """Relative path of the program entry file."""
        pass

    @property
    def entry_marker(self) -> Optional[str]:
        """Line required at the very top of the entry file, if any."""
        return None

    @abstractmethod
    def build_registry(self) -> FileRegistry:
        """Describe every file this backend produces for ``self.app``."""
        pass

    @abstractmethod
    def stub_marker(self, command: FlatCommand) -> str:
        """Text present in a handler stub until the user edits it."""
        pass

    @abstractmethod
    def format_imports(self, imports: ImportCollector) -> str:
        """Format collected imports as this language's import block."""
        pass

    def get_template_directory(self) -> Optional[Path]:
        """
        Return the directory containing templates for this generator.

        Returns:
            Path to template directory or None for in-memory templates
        """
        return None

    @property
    def template_engine(self) -> TemplateEngine:
        """Get the template engine for this generator."""
        if self._template_engine is None:
            self._setup_templates()
        return self._template_engine

    # Rendering helpers for backends

    def code_file(self, header: bool = True, marker: Optional[str] = None) -> CodeFile:
        """Start a new source file using this backend's import format."""
        return CodeFile(
            self.template_engine,
            self.format_imports,
            header=self.header_comment() if header else None,
            marker=marker,
        )

    def header_comment(self) -> Optional[str]:
        """Comment placed at the top of always-regenerated source files."""
        if not self.config.add_comments:
            return None
        return f"{self.comment_prefix} {self.config.generated_header}"

    @property
    def comment_prefix(self) -> str:
        return "//"

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with context.

        Args:
            template_name: Template file name
            context: Template variables

        Returns:
            Rendered content
        """
        return self.template_engine.render_template(template_name, context)

    def format_code(self, code: str) -> str:
        """
        Normalize generated text.

        Trailing whitespace is removed, runs of blank lines are limited to
        two and the text ends with exactly one newline.
        """
        formatted_lines = []
        blank_count = 0

        for line in code.split("\n"):
            stripped = line.rstrip()
            if not stripped:
                blank_count += 1
                if blank_count <= 2:  # Allow max 2 consecutive blank lines
                    formatted_lines.append("")
            else:
                blank_count = 0
                formatted_lines.append(stripped)

        return "\n".join(formatted_lines).strip("\n") + "\n"

    def validate_app(self) -> List[str]:
        """
        Check the application for problems that do not stop generation.

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []
        for flat in self.tree:
            if flat.is_leaf and not flat.command.inputs and not flat.command.description:
                warnings.append(f"Command '{flat.dotted}' has no inputs and no description")
        if not self.tree.invocable():
            warnings.append("Application has no invocable commands")
        return warnings

    # Operations

    def render_all(self, registry: Optional[FileRegistry] = None) -> List[GeneratedFile]:
        """
        Render every registry entry.

        Raises:
            RenderError: If any entry cannot be rendered
        """
        if registry is None:
            registry = self.build_registry()
        files = []
        for entry in registry:
            files.append(
                GeneratedFile(
                    path=entry.path,
                    content=self._render_entry(entry),
                    category=entry.category,
                    overwrite=entry.policy,
                )
            )
        return files

    def _render_entry(self, entry: FileEntry) -> str:
        try:
            content = entry.render()
        except RenderError:
            raise
        except TemplateError as e:
            raise RenderError(str(e), entry.command or entry.path) from e
        return self.format_code(content)

    def preview(self, existing: Snapshot = None) -> List[PreviewFile]:
        """
        Render every file without touching disk.

        Args:
            existing: Files already present, as an output directory or a set
                of relative paths; None is an empty snapshot

        Returns:
            One PreviewFile per registry entry, in write order
        """
        present = self._snapshot(existing)
        previews = []
        for generated in self.render_all():
            if generated.path not in present:
                action = PreviewAction.CREATE
            elif generated.overwrite is Overwrite.IF_MISSING:
                action = PreviewAction.SKIP
            else:
                action = PreviewAction.OVERWRITE
            previews.append(
                PreviewFile(generated.path, generated.content, generated.category, action)
            )
        return previews

    def generate(self, output_dir: Union[str, Path]) -> GenerateResult:
        """
        Write the generated project to ``output_dir``.

        Always-regenerate files are written unconditionally; generate-once
        files only when absent. Everything is rendered before the first
        write, so a RenderError leaves the directory untouched. I/O
        failures are recorded per file and do not stop the run.
        Stale files that would shadow a written file are then deleted,
        except edited handlers, which are reported as errors.

        Raises:
            RenderError: If any file cannot be rendered
            GeneratorError: If ``output_dir`` exists but is not a directory
        """
        root = Path(output_dir)
        if root.exists() and not root.is_dir():
            raise GeneratorError(f"Output path is not a directory: {root}")

        files = self.render_all()
        result = GenerateResult()

        for generated in files:
            target = root / generated.path
            try:
                outcome = self._write(target, generated)
            except OSError as e:
                logger.warning("Failed to write %s: %s", generated.path, e)
                result.errors.append(FileError(generated.path, str(e)))
                continue
            logger.debug("%s %s", outcome.value, generated.path)
            result.written.append(WriteResult(generated.path, outcome))

        self._remove_shadows(root, [generated.path for generated in files], result)

        try:
            result.orphans = self.orphans(root)
        except OSError as e:
            result.errors.append(FileError(str(root), f"orphan scan failed: {e}"))

        logger.info(
            "Generated %s project in %s: %d created, %d overwritten, %d skipped",
            self.language_name,
            root,
            len(result.created),
            len(result.overwritten),
            len(result.skipped),
        )
        return result

    def shadowed_paths(self, paths: List[str]) -> List[str]:
        """
        Files that would take precedence over the generated ``paths``.

        A backend whose module resolution prefers one spelling of a path
        over another returns the stale spellings here; generate deletes the
        ones that exist.
        """
        return []

    def _remove_shadows(self, root: Path, paths: List[str], result: GenerateResult):
        handlers_prefix = self.handlers_dir.rstrip("/") + "/"
        for relative in self.shadowed_paths(paths):
            path = root / relative
            if not path.is_file():
                continue
            try:
                if relative.startswith(handlers_prefix) and not self.is_unmodified_stub(
                    path.read_text(encoding="utf-8")
                ):
                    message = "edited handler shadows a regenerated module; move its code and delete it"
                    result.errors.append(FileError(relative, message))
                    continue
                path.unlink()
            except OSError as e:
                result.errors.append(FileError(relative, str(e)))
                continue
            logger.info("Removed %s, which shadowed a regenerated file", relative)
            result.removed.append(relative)

    @staticmethod
    def _write(target: Path, generated: GeneratedFile) -> WriteOutcome:
        exists = target.exists()
        if exists and generated.overwrite is Overwrite.IF_MISSING:
            return WriteOutcome.SKIPPED
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8", newline="\n") as f:
            f.write(generated.content)
        return WriteOutcome.OVERWRITTEN if exists else WriteOutcome.CREATED

    def orphans(self, output_dir: Union[str, Path]) -> List[str]:
        """
        Find generated files that no longer belong to the application.

        Only files with this backend's source extension inside
        ``managed_dirs`` are considered.

        Returns:
            Sorted relative paths of orphaned files
        """
        root = Path(output_dir)
        expected = set(self.build_registry().paths())
        found = []
        for relative in self._managed_files(root):
            if relative not in expected:
                found.append(relative)
        return sorted(found)

    def _managed_files(self, root: Path) -> List[str]:
        files = []
        for managed in self.managed_dirs:
            directory = root / managed
            if not directory.is_dir():
                continue
            for path in directory.rglob(f"*{self.file_extension}"):
                if path.is_file():
                    files.append(path.relative_to(root).as_posix())
        return files

    def clean(self, output_dir: Union[str, Path], dry_run: bool = False) -> CleanResult:
        """
        Delete orphaned files.

        Orphaned handlers are deleted only while they still contain a stub
        marker; edited handlers are reported as kept. Directories emptied
        by the deletion are removed.

        Args:
            output_dir: Generated project directory
            dry_run: Report what would be deleted without deleting

        Returns:
            CleanResult
        """
        root = Path(output_dir)
        result = CleanResult()
        handlers_prefix = self.handlers_dir.rstrip("/") + "/"

        for relative in self.orphans(root):
            path = root / relative
            if relative.startswith(handlers_prefix):
                try:
                    content = path.read_text(encoding="utf-8")
                except OSError as e:
                    result.errors.append(FileError(relative, str(e)))
                    continue
                if not self.is_unmodified_stub(content):
                    logger.info("Keeping edited handler %s", relative)
                    result.kept.append(relative)
                    continue

            if not dry_run:
                try:
                    path.unlink()
                except OSError as e:
                    result.errors.append(FileError(relative, str(e)))
                    continue
                self._prune_empty_dirs(root, path.parent)
            result.deleted.append(relative)

        return result

    def is_unmodified_stub(self, content: str) -> bool:
        """Whether a handler file still looks like a generated stub."""
        return self.stub_marker_pattern() in content

    @abstractmethod
    def stub_marker_pattern(self) -> str:
        """Stable prefix of every stub marker, independent of the command.

        Orphaned handlers belong to commands that no longer exist, so
        clean recognizes stubs by this prefix rather than by stub_marker.
        """
        pass

    def check_identifier(self, name: str, path: str) -> str:
        """
        Return ``name`` if it can be spelled as an identifier.

        Raises:
            RenderError: If ``name`` is a reserved word of this language
        """
        if name in self.reserved_words:
            raise RenderError(
                f"'{name}' is a reserved word in {self.language_name}", path
            )
        return name

    def _prune_empty_dirs(self, root: Path, directory: Path):
        managed = {(root / d).resolve() for d in self.managed_dirs}
        current = directory
        while current.resolve() not in managed and root.resolve() in current.resolve().parents:
            try:
                next(current.iterdir())
                return
            except StopIteration:
                current.rmdir()
                current = current.parent

    @staticmethod
    def _snapshot(existing: Snapshot) -> Set[str]:
        if existing is None:
            return set()
        if isinstance(existing, (str, Path)):
            root = Path(existing)
            if not root.is_dir():
                return set()
            present = set()
            for dirpath, _, filenames in os.walk(root):
                for filename in filenames:
                    present.add((Path(dirpath) / filename).relative_to(root).as_posix())
            return present
        return set(existing)
