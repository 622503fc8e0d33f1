from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Dict, List, Optional

from i18nizer.i18n.deduplicator import DeduplicationStats


class TranslationAction(Enum):
    TRANSLATE = auto()


class FileStatus(Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    NO_TEXTS = "no_texts"
    FAILED = "failed"


@dataclass
class FileResult:
    """Outcome of processing one component file."""
    path: str
    status: FileStatus
    component_name: str = ""
    spans: int = 0
    new_keys: int = 0
    reused_keys: int = 0
    keys: Dict[str, str] = field(default_factory=dict)
    written_files: List[str] = field(default_factory=list)
    messages: Dict[str, Dict[str, str]] = field(default_factory=dict)
    key_stats: Optional[DeduplicationStats] = None
    message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == FileStatus.SUCCESS


@dataclass
class TranslationManagerResults:
    """Results from a translation manager run over one or more files."""
    project_dir: str
    action: TranslationAction
    action_timestamp: datetime
    action_successful: bool = True
    dry_run: bool = False
    locales: List[str] = field(default_factory=list)
    file_results: List[FileResult] = field(default_factory=list)
    error_message: Optional[str] = None
    cache_stored: bool = False

    @classmethod
    def create(cls, project_dir: str, action: TranslationAction, locales=None,
               dry_run: bool = False) -> 'TranslationManagerResults':
        return cls(
            project_dir=project_dir,
            action=action,
            action_timestamp=datetime.now(),
            locales=list(locales or []),
            dry_run=dry_run,
        )

    def add(self, result: FileResult):
        self.file_results.append(result)
        if result.status == FileStatus.FAILED:
            self.extend_error_message(f"{result.path}: {result.message}")

    def files_with_status(self, status: FileStatus) -> List[FileResult]:
        return [r for r in self.file_results if r.status == status]

    @property
    def any_succeeded(self) -> bool:
        return any(r.succeeded for r in self.file_results)

    @property
    def failed_files(self) -> List[str]:
        return [r.path for r in self.files_with_status(FileStatus.FAILED)]

    @property
    def total_spans(self) -> int:
        return sum(r.spans for r in self.file_results)

    def extend_error_message(self, message: str):
        """Extend the error message with a new message."""
        if self.error_message:
            self.error_message += "\n" + message
        else:
            self.error_message = message

    def determine_action_successful(self):
        """Determine if the action was successful based on the results."""
        self.action_successful = self.action_successful and not self.error_message and not self.failed_files

    def format_status_report(self) -> str:
        """Generate a human-readable status report."""
        lines = [
            f"Project Directory: {self.project_dir}",
            f"Action: {self.action.name}{' (dry run)' if self.dry_run else ''} at {self.action_timestamp}",
            f"Status: {'Success' if self.action_successful else 'Failed'}",
        ]
        if self.locales:
            lines.append(f"Locales: {', '.join(self.locales)}")

        if self.file_results:
            lines.append("\nFiles:")
            for result in self.file_results:
                marker = {
                    FileStatus.SUCCESS: "✓",
                    FileStatus.SKIPPED: "-",
                    FileStatus.NO_TEXTS: "·",
                    FileStatus.FAILED: "✗",
                }[result.status]
                line = f"{marker} {result.path}"
                if result.status == FileStatus.SUCCESS:
                    line += f" ({result.spans} texts, {result.new_keys} new keys, {result.reused_keys} reused"
                    stats = result.key_stats
                    if stats is not None and stats.suggester_called and not stats.suggester_returned:
                        line += ", generated keys only"
                    line += ")"
                elif result.message:
                    line += f" ({result.message})"
                lines.append(line)

        lines.extend([
            "\nSummary:",
            f"- Translated: {len(self.files_with_status(FileStatus.SUCCESS))}",
            f"- No texts: {len(self.files_with_status(FileStatus.NO_TEXTS))}",
            f"- Skipped: {len(self.files_with_status(FileStatus.SKIPPED))}",
            f"- Failed: {len(self.files_with_status(FileStatus.FAILED))}",
            f"- Total texts: {self.total_spans}",
        ])
        if self.error_message:
            lines.append(f"\nErrors:\n{self.error_message}")
        return "\n".join(lines)
