#!/usr/bin/env python3
"""
選項設定與解析

分層架構（優先級由低到高）：
- Tier 1: 內建預設值
- Tier 2: 專案設定檔（root 下的 i18n-extract.yaml / .yml / .json，或 --config 指定）
- Tier 3: 環境變數 I18N_EXTRACT_*（root 下的 .env 會先載入，不覆蓋既有變數）
- Tier 4: 程式呼叫時傳入的選項
- Tier 5: 命令列參數

解析後的 TransformOptions 為唯讀。
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import yaml
from dotenv import load_dotenv

from .classifier import EXTENDED_RANGES, ScriptRange, parse_script_ranges
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_EXECUTION_EXTENSIONS = ('.js', '.cjs', '.mjs', '.jsx', '.ts', '.cts', '.mts', '.tsx')
DEFAULT_INCLUDE_FILES = '**'
DEFAULT_EXCLUDE_FILES = '**/node_modules/**'
DEFAULT_FUNCTION_IDENTITY = 'i18n'
DEFAULT_IMPORT_IDENTITY = 'i18n'
DEFAULT_IMPORT_SOURCE = 'i18n'
DEFAULT_EXPORT_NAME = 'data'
DEFAULT_EXPORT_FORMAT = 'csv'
EXPORT_FORMATS = ('csv', 'yaml', 'json')

CONFIG_FILE_NAMES = ('i18n-extract.yaml', 'i18n-extract.yml', 'i18n-extract.json')

_IDENTIFIER_RE = re.compile(r'^[A-Za-z_$][\w$]*$')


@dataclass(frozen=True)
class AutoImportOptions:
    """自動導入設定"""
    identity: str = DEFAULT_IMPORT_IDENTITY     # 被導入的函數名稱
    source: str = DEFAULT_IMPORT_SOURCE         # 導入來源模組


@dataclass(frozen=True)
class ExportSheetOptions:
    """翻譯表匯出設定"""
    path: str                                   # 輸出目錄
    name: str = DEFAULT_EXPORT_NAME             # 檔名（不含副檔名）
    format: str = DEFAULT_EXPORT_FORMAT         # csv / yaml / json


@dataclass(frozen=True)
class TransformOptions:
    """轉換選項（解析後唯讀）"""
    root: str = '.'
    input: str = 'index.js'
    output: str = 'index.js'
    extensions: Tuple[str, ...] = DEFAULT_EXECUTION_EXTENSIONS
    include: Tuple[str, ...] = (DEFAULT_INCLUDE_FILES,)
    exclude: Tuple[str, ...] = (DEFAULT_EXCLUDE_FILES,)
    auto_import: Union[AutoImportOptions, bool] = field(default_factory=AutoImportOptions)
    function_identity: str = DEFAULT_FUNCTION_IDENTITY
    export_sheet: Union[ExportSheetOptions, bool] = False
    script_ranges: Tuple[ScriptRange, ...] = EXTENDED_RANGES
    dry_run: bool = False

    @property
    def import_options(self) -> Optional[AutoImportOptions]:
        """自動導入設定（停用時為 None）"""
        if self.auto_import is True:
            return AutoImportOptions()
        if not self.auto_import:
            return None
        return self.auto_import

    @property
    def export_options(self) -> Optional[ExportSheetOptions]:
        if isinstance(self.export_sheet, ExportSheetOptions):
            return self.export_sheet
        return None


# ==========================================
# 環境變數
# ==========================================

class EnvironmentOverrides:
    """環境變數讀取與類型轉換"""

    # 環境變數 → (設定鍵, 類型)
    ENV_VAR_MAPPING = {
        'I18N_EXTRACT_ROOT': ('root', str),
        'I18N_EXTRACT_INPUT': ('input', str),
        'I18N_EXTRACT_OUTPUT': ('output', str),
        'I18N_EXTRACT_EXTENSIONS': ('extensions', list),
        'I18N_EXTRACT_INCLUDE': ('include', list),
        'I18N_EXTRACT_EXCLUDE': ('exclude', list),
        'I18N_EXTRACT_AUTO_IMPORT': ('auto_import', bool),
        'I18N_EXTRACT_IMPORT_IDENTITY': ('import_identity', str),
        'I18N_EXTRACT_IMPORT_SOURCE': ('import_source', str),
        'I18N_EXTRACT_FUNCTION_IDENTITY': ('function_identity', str),
        'I18N_EXTRACT_EXPORT_SHEET': ('export_sheet', bool),
        'I18N_EXTRACT_EXPORT_SHEET_PATH': ('export_sheet_path', str),
        'I18N_EXTRACT_EXPORT_SHEET_NAME': ('export_sheet_name', str),
        'I18N_EXTRACT_EXPORT_FORMAT': ('export_format', str),
        'I18N_EXTRACT_SCRIPT_RANGES': ('script_ranges', str),
        'I18N_EXTRACT_DRY_RUN': ('dry_run', bool),
    }

    @classmethod
    def _convert_type(cls, value: str, var_type: type) -> Any:
        if var_type == bool:
            return value.strip().lower() in ('true', '1', 'yes', 'on')
        if var_type == list:
            return [part.strip() for part in value.split(',') if part.strip()]
        return value

    @classmethod
    def get_all_env_overrides(cls, environ: Mapping[str, str]) -> Dict[str, Any]:
        """
        取得所有環境變數覆寫

        Args:
            environ: 環境變數來源

        Returns:
            設定字典（僅包含已設定的變數）
        """
        overrides = {}
        for env_var, (config_key, var_type) in cls.ENV_VAR_MAPPING.items():
            value = environ.get(env_var)
            if value is None or value == '':
                continue
            overrides[config_key] = cls._convert_type(value, var_type)
        return overrides


# ==========================================
# 設定檔
# ==========================================

def find_config_file(root: Path) -> Optional[Path]:
    for name in CONFIG_FILE_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def _flatten(settings: Mapping[str, Any]) -> Dict[str, Any]:
    """將巢狀的 auto_import / export_sheet 展開為扁平鍵"""
    flat = {}
    for key, value in settings.items():
        key = key.replace('-', '_')
        if key == 'auto_import' and isinstance(value, Mapping):
            if 'identity' in value:
                flat['import_identity'] = value['identity']
            if 'source' in value:
                flat['import_source'] = value['source']
            flat['auto_import'] = True
        elif key == 'export_sheet' and isinstance(value, Mapping):
            for sub_key in ('path', 'name', 'format'):
                if sub_key in value:
                    target = 'export_format' if sub_key == 'format' else f'export_sheet_{sub_key}'
                    flat[target] = value[sub_key]
            flat['export_sheet'] = True
        else:
            flat[key] = value
    return flat


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    載入專案設定檔（YAML 或 JSON）

    Raises:
        ConfigurationError: 檔案無法讀取或格式錯誤
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"設定檔載入失敗: {e}", path=str(path))

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigurationError("設定檔內容必須是物件", path=str(path))

    logger.debug(f"載入設定檔: {path}")
    return _flatten(data)


# ==========================================
# 解析
# ==========================================

def _to_tuple(value: Union[str, Iterable[str], None]) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


def _last(value: Any) -> Any:
    """重複指定的參數以最後一個為準"""
    if isinstance(value, (list, tuple)):
        return value[-1] if value else None
    return value


def _normalize_extensions(extra: Iterable[str]) -> Tuple[str, ...]:
    extensions = list(DEFAULT_EXECUTION_EXTENSIONS)
    for ext in extra:
        ext = ext.strip()
        if not ext:
            continue
        if not ext.startswith('.'):
            ext = '.' + ext
        if ext not in extensions:
            extensions.append(ext)
    return tuple(extensions)


def _validate_identity(value: str, option: str) -> str:
    if not isinstance(value, str) or not _IDENTIFIER_RE.match(value):
        raise ConfigurationError(f"{option} 不是有效的識別字: {value!r}")
    return value


def _merge(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in _flatten(layer).items():
            if value is not None:
                merged[key] = value
    return merged


def resolve_options(
    options: Optional[Mapping[str, Any]] = None,
    cli: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
    config_path: Optional[str] = None,
) -> TransformOptions:
    """
    合併各層設定並解析為 TransformOptions

    Args:
        options: 程式呼叫時傳入的選項
        cli: 命令列參數
        environ: 環境變數（None 表示使用 os.environ，並載入 root/.env）
        config_path: 指定設定檔路徑

    Returns:
        唯讀的 TransformOptions

    Raises:
        ConfigurationError: 設定值無效或輸入不存在
    """
    explicit = _merge(options, cli)

    if environ is None:
        pre_root = Path(str(_last(explicit.get('root')) or os.environ.get('I18N_EXTRACT_ROOT') or os.getcwd()))
        env_file = pre_root / '.env'
        if env_file.is_file():
            load_dotenv(env_file, override=False)
        environ = os.environ

    env_layer = EnvironmentOverrides.get_all_env_overrides(environ)
    root = Path(str(_last(explicit.get('root') or env_layer.get('root')) or os.getcwd())).resolve()

    file_layer: Dict[str, Any] = {}
    config_file = Path(config_path) if config_path else find_config_file(root)
    if config_file is not None:
        if not config_file.is_absolute():
            config_file = root / config_file
        file_layer = load_config_file(config_file)
        file_layer.pop('root', None)

    settings = _merge(file_layer, env_layer, options, cli)

    input_path = Path(str(_last(settings.get('input')) or 'index.js'))
    if not input_path.is_absolute():
        input_path = root / input_path
    output_path = Path(str(_last(settings.get('output')) or input_path))
    if not output_path.is_absolute():
        output_path = root / output_path

    if not input_path.exists():
        raise ConfigurationError("輸入路徑不存在", path=str(input_path))
    if output_path.exists() and input_path.is_dir() != output_path.is_dir():
        logger.warning(f"輸出路徑類型與輸入不一致，改為覆寫輸入: {input_path}")
        output_path = input_path

    auto_import: Union[AutoImportOptions, bool] = False
    if settings.get('auto_import', True) is not False:
        auto_import = AutoImportOptions(
            identity=_validate_identity(settings.get('import_identity', DEFAULT_IMPORT_IDENTITY), 'import-identity'),
            source=str(settings.get('import_source', DEFAULT_IMPORT_SOURCE)),
        )

    export_sheet: Union[ExportSheetOptions, bool] = False
    if settings.get('export_sheet', True) is not False:
        default_dir = output_path if output_path.is_dir() or input_path.is_dir() else output_path.parent
        sheet_path = Path(str(settings.get('export_sheet_path') or default_dir))
        if not sheet_path.is_absolute():
            sheet_path = root / sheet_path
        export_format = str(settings.get('export_format', DEFAULT_EXPORT_FORMAT)).lower()
        if export_format not in EXPORT_FORMATS:
            raise ConfigurationError(f"不支援的匯出格式: {export_format}")
        export_sheet = ExportSheetOptions(
            path=str(sheet_path),
            name=str(settings.get('export_sheet_name', DEFAULT_EXPORT_NAME)),
            format=export_format,
        )

    resolved = TransformOptions(
        root=str(root),
        input=str(input_path),
        output=str(output_path),
        extensions=_normalize_extensions(_to_tuple(settings.get('extensions'))),
        include=_to_tuple(settings.get('include', DEFAULT_INCLUDE_FILES)) or (DEFAULT_INCLUDE_FILES,),
        exclude=_to_tuple(settings.get('exclude', DEFAULT_EXCLUDE_FILES)),
        auto_import=auto_import,
        function_identity=_validate_identity(
            settings.get('function_identity', DEFAULT_FUNCTION_IDENTITY), 'function-identity'
        ),
        export_sheet=export_sheet,
        script_ranges=parse_script_ranges(settings.get('script_ranges')),
        dry_run=bool(settings.get('dry_run', False)),
    )

    logger.debug(f"解析後選項: {resolved}")
    return resolved
