"""
pytest 全局配置與共用 fixtures

Fixtures 說明：
- temp_dir: 臨時測試目錄
- store: 空的 TranslationStore
- options: 預設轉換選項
- sample_project: 含多種檔案的範例專案
"""

import pytest
import tempfile
import shutil
import sys
from pathlib import Path
from typing import Dict

# 添加專案根目錄到 Python 路徑
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from i18n_extractor.config import TransformOptions
from i18n_extractor.store import TranslationStore


# ============================================================================
# pytest 配置
# ============================================================================

def pytest_configure(config):
    """pytest 啟動時的配置"""
    config.addinivalue_line(
        "markers", "integration: 標記為整合測試"
    )
    config.addinivalue_line(
        "markers", "unit: 標記為單元測試"
    )


# ============================================================================
# 基礎 Fixtures
# ============================================================================

@pytest.fixture
def temp_dir():
    """臨時測試目錄（每個測試獨立）

    使用後自動清理
    """
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    if temp_path.exists():
        shutil.rmtree(temp_path)


@pytest.fixture
def store() -> TranslationStore:
    return TranslationStore()


@pytest.fixture
def options() -> TransformOptions:
    """預設轉換選項（自動導入 i18n，不匯出）"""
    return TransformOptions()


@pytest.fixture
def clean_env(monkeypatch):
    """清除所有 I18N_EXTRACT_* 環境變數"""
    import os
    for name in list(os.environ):
        if name.startswith('I18N_EXTRACT_'):
            monkeypatch.delenv(name, raising=False)
    return {}


# ============================================================================
# 範例專案
# ============================================================================

SAMPLE_SOURCES: Dict[str, str] = {
    'src/index.js': "var a = '字面量';\n",
    'src/App.jsx': 'export const App = () => <p title="标题">内容</p>;\n',
    'src/types.ts': "type Label = '标签';\nconst label: Label = '标签';\n",
    'src/plain.js': "const greeting = 'hello';\n",
    'src/broken.js': "var x = ;\n",
    'src/readme.md': "# 說明\n",
    'node_modules/lib/index.js': "module.exports = '依賴';\n",
}


@pytest.fixture
def sample_project(temp_dir) -> Path:
    """建立範例專案結構

    Returns:
        專案根目錄路徑
    """
    project_root = temp_dir / "sample_project"
    for relative, content in SAMPLE_SOURCES.items():
        file_path = project_root / relative
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding='utf-8')
    return project_root
