#!/usr/bin/env python3
"""
錯誤類型定義

分類：
- ParseFailure: 原始碼無法以目前語法解析
- PrintFailure: 改寫後的結果無法輸出（編輯重疊或輸出無法再解析）
- ConfigurationError: 選項設定錯誤

所有單元層級的錯誤只影響該檔案，批次處理會記錄後繼續下一個檔案。
"""

from enum import Enum
from typing import Optional


class ErrorType(Enum):
    """錯誤類型分類"""
    PARSE_FAILURE = "parse_failure"
    PRINT_FAILURE = "print_failure"
    CONFIGURATION_ERROR = "configuration_error"
    IO_ERROR = "io_error"


class ExtractorError(Exception):
    """所有擷取工具錯誤的基底類別"""

    error_type: ErrorType = ErrorType.IO_ERROR

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class ParseFailure(ExtractorError):
    """原始碼解析失敗"""

    error_type = ErrorType.PARSE_FAILURE

    def __init__(self, message: str, path: Optional[str] = None,
                 line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message, path)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        location = super().__str__()
        if self.line is not None:
            return f"{location} (line {self.line}, column {self.column})"
        return location


class PrintFailure(ExtractorError):
    """改寫後的語法樹無法輸出為程式碼"""

    error_type = ErrorType.PRINT_FAILURE


class ConfigurationError(ExtractorError):
    """選項值無效"""

    error_type = ErrorType.CONFIGURATION_ERROR
