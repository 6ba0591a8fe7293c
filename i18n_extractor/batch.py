#!/usr/bin/env python3
"""
批次轉換

收集 input 下符合條件的檔案，逐一轉換後寫到 output 的對應位置，
最後匯出整個批次累積的翻譯表。

單一檔案失敗（解析、輸出、讀寫、編碼）只會略過該檔案，批次繼續執行。
"""

import fnmatch
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from .config import TransformOptions
from .errors import ExtractorError, ParseFailure, PrintFailure
from .exporter import export_with_options
from .store import TranslationStore
from .transformer import transform_unit

logger = logging.getLogger(__name__)


class UnitStatus(Enum):
    """單一檔案的處理結果"""
    REWRITTEN = "rewritten"     # 有字面量被替換
    UNCHANGED = "unchanged"     # 沒有可替換的字面量
    SKIPPED = "skipped"         # 解析或輸出失敗，未寫入
    FAILED = "failed"           # 讀寫或編碼錯誤


@dataclass
class UnitResult:
    path: str
    status: UnitStatus
    replacements: int = 0
    error: Optional[str] = None


@dataclass
class BatchReport:
    """批次執行報告"""
    results: List[UnitResult] = field(default_factory=list)
    export_path: Optional[str] = None
    dry_run: bool = False

    def count(self, status: UnitStatus) -> int:
        return sum(1 for result in self.results if result.status is status)

    @property
    def total_replacements(self) -> int:
        return sum(result.replacements for result in self.results)

    @property
    def has_failures(self) -> bool:
        return self.count(UnitStatus.FAILED) > 0

    def summary_table(self) -> Table:
        table = Table(title="i18n 字面量提取結果", show_lines=False)
        table.add_column("檔案", style="cyan")
        table.add_column("狀態")
        table.add_column("替換數", justify="right")
        table.add_column("訊息", style="dim")

        styles = {
            UnitStatus.REWRITTEN: "green",
            UnitStatus.UNCHANGED: "white",
            UnitStatus.SKIPPED: "yellow",
            UnitStatus.FAILED: "red",
        }
        for result in self.results:
            table.add_row(
                result.path,
                f"[{styles[result.status]}]{result.status.value}[/{styles[result.status]}]",
                str(result.replacements),
                result.error or "",
            )
        return table


# ==========================================
# 檔案收集
# ==========================================

def _is_excluded(relative: str, patterns) -> bool:
    posix = PurePosixPath(relative)
    for pattern in patterns:
        if fnmatch.fnmatch(relative, pattern) or posix.match(pattern):
            return True
        # '**/node_modules/**' 也要排除位於頂層的 node_modules
        if pattern.startswith('**/') and fnmatch.fnmatch(relative, pattern[3:]):
            return True
    return False


def collect_files(options: TransformOptions) -> List[Path]:
    """
    收集要轉換的檔案

    Args:
        options: 已解析的轉換選項

    Returns:
        排序且不重複的檔案路徑
    """
    input_path = Path(options.input)
    extensions = set(options.extensions)

    if input_path.is_file():
        return [input_path] if input_path.suffix in extensions else []

    found = set()
    for pattern in options.include:
        # 結尾為 ** 的模式在部分 Python 版本只會列出目錄
        if pattern.endswith('**'):
            pattern = f"{pattern}/*"
        for candidate in input_path.glob(pattern):
            if not candidate.is_file() or candidate.suffix not in extensions:
                continue
            relative = candidate.relative_to(input_path).as_posix()
            if _is_excluded(relative, options.exclude):
                continue
            found.add(candidate)

    return sorted(found)


def output_path_for(file_path: Path, options: TransformOptions) -> Path:
    """輸入檔案對應的輸出位置（保留相對路徑）"""
    input_path = Path(options.input)
    output_path = Path(options.output)
    if input_path.is_file():
        return output_path
    return output_path / file_path.relative_to(input_path)


# ==========================================
# 執行
# ==========================================

def process_file(file_path: Path, options: TransformOptions, store: TranslationStore,
                 display_root: Optional[Path] = None) -> UnitResult:
    """轉換單一檔案並寫入輸出"""
    display = str(file_path.relative_to(display_root)) if display_root else str(file_path)

    try:
        code = file_path.read_text(encoding='utf-8')
        unit = transform_unit(code, options, store, path=str(file_path))
    except (ParseFailure, PrintFailure) as e:
        logger.warning(f"略過 {e}")
        return UnitResult(display, UnitStatus.SKIPPED, error=str(e))
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"讀取失敗 {file_path}: {e}")
        return UnitResult(display, UnitStatus.FAILED, error=str(e))
    except Exception as e:
        logger.exception(f"處理失敗 {file_path}: {e}")
        return UnitResult(display, UnitStatus.FAILED, error=f"{type(e).__name__}: {e}")

    status = UnitStatus.REWRITTEN if unit.replacements else UnitStatus.UNCHANGED
    if options.dry_run:
        return UnitResult(display, status, replacements=unit.replacements)

    target = output_path_for(file_path, options)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(unit.output, encoding='utf-8')
    except OSError as e:
        logger.error(f"寫入失敗 {target}: {e}")
        return UnitResult(display, UnitStatus.FAILED, replacements=unit.replacements, error=str(e))

    logger.debug(f"已寫入 {target}（{unit.replacements} 處替換）")
    return UnitResult(display, status, replacements=unit.replacements)


def run(options: TransformOptions, store: Optional[TranslationStore] = None,
        console: Optional[Console] = None) -> BatchReport:
    """
    執行一次完整的批次轉換

    Args:
        options: 已解析的轉換選項
        store: 翻譯鍵儲存（None 時建立新的）
        console: 顯示摘要用的 rich Console（None 時不顯示）

    Returns:
        BatchReport
    """
    store = store if store is not None else TranslationStore()
    report = BatchReport(dry_run=options.dry_run)

    files = collect_files(options)
    if not files:
        logger.warning(f"沒有符合條件的檔案: {options.input}")

    input_path = Path(options.input)
    display_root = input_path if input_path.is_dir() else None
    for file_path in files:
        report.results.append(process_file(file_path, options, store, display_root))

    export_options = options.export_options
    if export_options is not None and not options.dry_run:
        try:
            report.export_path = str(export_with_options(store, export_options))
        except OSError as e:
            raise ExtractorError(f"翻譯表匯出失敗: {e}", path=export_options.path)

    if console is not None:
        _print_summary(console, report, store)

    return report


def _print_summary(console: Console, report: BatchReport, store: TranslationStore):
    if report.results:
        console.print(report.summary_table())

    console.print(
        f"\n[bold]共 {len(report.results)} 個檔案[/bold]："
        f"[green]改寫 {report.count(UnitStatus.REWRITTEN)}[/green]、"
        f"未變更 {report.count(UnitStatus.UNCHANGED)}、"
        f"[yellow]略過 {report.count(UnitStatus.SKIPPED)}[/yellow]、"
        f"[red]失敗 {report.count(UnitStatus.FAILED)}[/red]"
    )
    console.print(f"替換 {report.total_replacements} 處，翻譯鍵 {len(store)} 筆")

    for key, texts in store.collisions().items():
        console.print(f"[yellow]⚠️  翻譯鍵 {key} 被多個文字共用：{'、'.join(texts)}[/yellow]")

    if report.dry_run:
        console.print("[dim]試執行模式，未寫入任何檔案[/dim]")
    elif report.export_path:
        console.print(f"[green]✓ 翻譯表：{report.export_path}[/green]")
