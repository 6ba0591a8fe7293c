#!/usr/bin/env python3
"""
翻譯鍵彙整儲存

整個批次執行期間共用一個 TranslationStore，依插入順序保存
正規化文字 → KeyedEntry。相同文字只保留一筆，重複出現時覆寫（結果相同）。
"""

import threading
from collections import OrderedDict, defaultdict
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional


@dataclass(frozen=True)
class KeyedEntry:
    """單筆翻譯資料"""
    origin: str         # 原始文字（已正規化）
    key: str            # 生成的翻譯鍵
    normalized: str     # 正規化文字

    @property
    def zh_CN(self) -> str:
        return self.origin

    def to_row(self) -> Dict[str, str]:
        """匯出表格用的欄位"""
        return {
            'origin': self.origin,
            'key': self.key,
            'zh_CN': self.zh_CN,
        }


class TranslationStore:
    """
    批次執行範圍內的翻譯鍵彙整

    record() 以鎖保護，跨檔案平行處理時也不會破壞映射（後寫入者為準）。
    """

    def __init__(self):
        self._entries: 'OrderedDict[str, KeyedEntry]' = OrderedDict()
        self._lock = threading.Lock()

    def record(self, normalized: str, key: str) -> KeyedEntry:
        """
        記錄一筆文字與翻譯鍵

        Args:
            normalized: 正規化後的文字
            key: 翻譯鍵

        Returns:
            儲存的 KeyedEntry
        """
        entry = KeyedEntry(origin=normalized, key=key, normalized=normalized)
        with self._lock:
            self._entries[normalized] = entry
        return entry

    def merge(self, other: 'TranslationStore'):
        """依 other 的插入順序合併所有資料"""
        for entry in other.entries():
            self.record(entry.normalized, entry.key)

    def get(self, normalized: str) -> Optional[KeyedEntry]:
        return self._entries.get(normalized)

    def entries(self) -> List[KeyedEntry]:
        with self._lock:
            return list(self._entries.values())

    def rows(self) -> List[Dict[str, str]]:
        """依插入順序輸出 {origin, key, zh_CN} 列表"""
        return [entry.to_row() for entry in self.entries()]

    def keys_for(self, key: str) -> List[str]:
        """取得對應到同一個翻譯鍵的所有文字"""
        return [entry.origin for entry in self.entries() if entry.key == key]

    def collisions(self) -> Dict[str, List[str]]:
        """
        列出被多個不同文字共用的翻譯鍵

        僅供報告使用，不會修改任何翻譯鍵。
        """
        grouped = defaultdict(list)
        for entry in self.entries():
            grouped[entry.key].append(entry.origin)
        return {key: texts for key, texts in grouped.items() if len(texts) > 1}

    def __contains__(self, normalized: str) -> bool:
        return normalized in self._entries

    def __iter__(self) -> Iterator[KeyedEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        return len(self._entries)
