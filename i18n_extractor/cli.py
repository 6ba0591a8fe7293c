#!/usr/bin/env python3
"""
命令列介面

使用方式：
    i18n-extract src dist
    i18n-extract -r ./project -i src -o dist --export-format yaml
    python -m i18n_extractor src --dry-run -v

結束代碼：
    0  批次完成（可能有略過的檔案）
    1  有檔案讀寫失敗
    2  設定錯誤
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from . import __version__
from .batch import run
from .classifier import SCRIPT_RANGE_PRESETS
from .config import EXPORT_FORMATS, resolve_options
from .errors import ConfigurationError, ExtractorError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNIT_FAILED = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='i18n-extract',
        description='將 JS/TS/JSX 原始碼中的中文字面量替換為 i18n 查詢呼叫，並匯出翻譯表',
    )
    parser.add_argument('input_pos', nargs='?', metavar='input', help='輸入檔案或目錄')
    parser.add_argument('output_pos', nargs='?', metavar='output', help='輸出檔案或目錄（預設覆寫輸入）')
    parser.add_argument('-r', '--root', help='專案根目錄（相對路徑以此為準，預設為目前目錄）')
    parser.add_argument('-i', '--input', help='輸入檔案或目錄（預設 index.js）')
    parser.add_argument('-o', '--output', help='輸出檔案或目錄')

    parser.add_argument('--extensions', action='append', metavar='EXT',
                        help='額外處理的副檔名（可重複指定）')
    parser.add_argument('--include', action='append', metavar='GLOB',
                        help='包含的檔案模式（可重複指定，預設 **）')
    parser.add_argument('--exclude', action='append', metavar='GLOB',
                        help='排除的檔案模式（可重複指定，預設 **/node_modules/**）')

    parser.add_argument('--auto-import', action=argparse.BooleanOptionalAction, default=None,
                        help='自動插入查詢函數的 import（預設啟用）')
    parser.add_argument('--import-identity', help='被導入的函數名稱（預設 i18n）')
    parser.add_argument('--import-source', help='導入來源模組（預設 i18n）')
    parser.add_argument('--function-identity', help='程式碼中呼叫的函數名稱（預設 i18n）')

    parser.add_argument('--export-sheet', action=argparse.BooleanOptionalAction, default=None,
                        help='匯出翻譯表（預設啟用）')
    parser.add_argument('--export-sheet-path', help='翻譯表輸出目錄（預設為輸出目錄）')
    parser.add_argument('--export-sheet-name', help='翻譯表檔名（預設 data）')
    parser.add_argument('--export-format', choices=EXPORT_FORMATS, help='翻譯表格式（預設 csv）')

    parser.add_argument('--script-ranges', choices=sorted(SCRIPT_RANGE_PRESETS),
                        help='判定中文的字元範圍（預設 extended）')
    parser.add_argument('--config', help='設定檔路徑（預設尋找 root 下的 i18n-extract.yaml/.yml/.json）')
    parser.add_argument('--dry-run', action='store_true', default=None, help='只分析，不寫入任何檔案')
    parser.add_argument('-v', '--verbose', action='store_true', help='顯示詳細記錄')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def cli_settings(args: argparse.Namespace) -> Dict[str, Any]:
    """將命令列參數轉為設定字典（未指定者為 None，不覆蓋較低層級）"""
    return {
        'root': args.root,
        'input': args.input or args.input_pos,
        'output': args.output or args.output_pos,
        'extensions': args.extensions,
        'include': args.include,
        'exclude': args.exclude,
        'auto_import': args.auto_import,
        'import_identity': args.import_identity,
        'import_source': args.import_source,
        'function_identity': args.function_identity,
        'export_sheet': args.export_sheet,
        'export_sheet_path': args.export_sheet_path,
        'export_sheet_name': args.export_sheet_name,
        'export_format': args.export_format,
        'script_ranges': args.script_ranges,
        'dry_run': args.dry_run,
    }


def setup_logging(console: Console, verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(message)s',
        datefmt='[%X]',
        handlers=[RichHandler(
            console=console,
            show_time=False,
            show_path=False,
            markup=True,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            enable_link_path=False,
        )],
        force=True,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    console = Console()
    setup_logging(console, args.verbose)

    try:
        options = resolve_options(cli=cli_settings(args), config_path=args.config)
    except ConfigurationError as e:
        console.print(Panel(str(e), title="設定錯誤", border_style="red"))
        return EXIT_CONFIG_ERROR

    console.print(f"[bold cyan]🔍 擷取中文字面量：{options.input}[/bold cyan]")
    try:
        report = run(options, console=console)
    except ExtractorError as e:
        logger.error(str(e))
        return EXIT_UNIT_FAILED

    return EXIT_UNIT_FAILED if report.has_failures else EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
