#!/usr/bin/env python3
"""
翻譯表匯出

將 TranslationStore 依插入順序匯出，欄位為 origin / key / zh_CN：
- csv:  utf-8-sig 編碼，試算表軟體可直接開啟中文
- yaml / json: 資料列列表（碰撞的翻譯鍵也會完整保留每一列）
"""

import csv
import json
import logging
from pathlib import Path
from typing import Union

import yaml

from .config import EXPORT_FORMATS, ExportSheetOptions
from .errors import ConfigurationError
from .store import TranslationStore

logger = logging.getLogger(__name__)

SHEET_FIELDS = ['origin', 'key', 'zh_CN']


def _write_csv(store: TranslationStore, file_path: Path):
    with open(file_path, 'w', encoding='utf-8-sig', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=SHEET_FIELDS)
        writer.writeheader()
        writer.writerows(store.rows())


def _write_yaml(store: TranslationStore, file_path: Path):
    with open(file_path, 'w', encoding='utf-8') as f:
        yaml.dump(store.rows(), f, allow_unicode=True, sort_keys=False)


def _write_json(store: TranslationStore, file_path: Path):
    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump(store.rows(), f, ensure_ascii=False, indent=2)


_WRITERS = {
    'csv': _write_csv,
    'yaml': _write_yaml,
    'json': _write_json,
}


def export_store(store: TranslationStore, path: Union[str, Path], name: str = 'data',
                 fmt: str = 'csv') -> Path:
    """
    匯出翻譯表

    Args:
        store: 翻譯鍵儲存
        path: 輸出目錄
        name: 檔名（不含副檔名）
        fmt: 匯出格式（csv / yaml / json）

    Returns:
        輸出檔案路徑
    """
    if fmt not in EXPORT_FORMATS:
        raise ConfigurationError(f"不支援的匯出格式: {fmt}")

    output_dir = Path(path)
    output_dir.mkdir(parents=True, exist_ok=True)
    file_path = output_dir / f"{name}.{fmt}"

    _WRITERS[fmt](store, file_path)

    collisions = store.collisions()
    if collisions:
        for key, texts in collisions.items():
            logger.warning(f"翻譯鍵 {key} 對應多個文字: {', '.join(texts)}")

    logger.info(f"翻譯表已匯出: {file_path}（{len(store)} 筆）")
    return file_path


def export_with_options(store: TranslationStore, options: ExportSheetOptions) -> Path:
    return export_store(store, options.path, options.name, options.format)
