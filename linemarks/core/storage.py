import os
import configparser
import json
import tempfile
from typing import Dict, Any, List

from .utils import AppConstants

"""
ストレージ／設定モジュール。
- `ConfigManager`       : `config.ini` を管理するクラス
- `JsonEntryRepository` : ブックマークのレコードを JSON ファイルに読み書きする
"""


class StorageError(Exception):
    """ブックマークファイルの読み書きに失敗した場合に送出される。"""


class ConfigManager:
    """設定ファイル(config.ini)の管理を専門に行うクラス。"""

    def __init__(self, config_path='config.ini'):
        self.config_path = config_path
        self.config = configparser.ConfigParser()
        self.load_config()

    def load_config(self):
        """設定ファイルを読み込む"""
        if os.path.exists(self.config_path):
            self.config.read(self.config_path, encoding='utf-8')

    def get_store_path(self) -> str:
        """
        ブックマーク保存先のパスを取得する（環境変数を優先）。

        優先順位:
        1. 環境変数 LINEMARKS_STORE
        2. config.ini の [Storage] セクション
        3. 既定値 `.linemarks.json`

        Returns:
            保存先のパス
        """
        path = os.environ.get(AppConstants.STORE_ENV_VAR)
        if path and path.strip():
            return path.strip()

        if self.config.has_section("Storage") and self.config.has_option("Storage", "path"):
            path = self.config.get("Storage", "path", fallback="").strip()
            if path:
                return path
        return AppConstants.DEFAULT_STORE_FILE

    def get_logging_settings(self) -> Dict[str, Any]:
        """
        ログ設定を取得する。不正な数値は既定値に戻す。

        Returns:
            'file', 'level', 'max_bytes', 'backup_count' を含む辞書
        """
        section = self.config['Logging'] if 'Logging' in self.config else {}
        settings = {
            'file': section.get('file') or AppConstants.DEFAULT_LOG_FILE,
            'level': (section.get('level') or 'INFO').upper(),
            'max_bytes': AppConstants.LOG_MAX_BYTES,
            'backup_count': AppConstants.LOG_BACKUP_COUNT,
        }
        for key, default in (('max_bytes', AppConstants.LOG_MAX_BYTES),
                             ('backup_count', AppConstants.LOG_BACKUP_COUNT)):
            try:
                value = int(section.get(key, default))
            except (TypeError, ValueError):
                value = default
            settings[key] = value if value >= 0 else default
        return settings


class JsonEntryRepository:
    """
    永続化コラボレータの JSON ファイル実装。

    `load()` はレコードのリストを返し、`save(records)` はリストを書き込む。
    レコードの中身には手を加えないため、未知のキーもそのまま保存される。
    """

    def __init__(self, path: str):
        self.path = path

    def load(self) -> List[Dict[str, Any]]:
        """
        Load bookmark records from the JSON file.

        Returns:
            レコードのリスト（ファイルが無い場合は空リスト）

        Raises:
            StorageError: 読み込みエラー、または JSON として不正な内容
        """
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Could not read bookmarks from {self.path}: {e}") from e

        if isinstance(data, dict):
            data = data.get(AppConstants.STORE_KEY)
        if data is None:
            return []
        if not isinstance(data, list):
            raise StorageError(f"Unexpected bookmark data in {self.path}")
        return data

    def save(self, records: List[Dict[str, Any]]) -> str:
        """
        Save bookmark records. 一時ファイルに書いてから置き換える。

        Returns:
            保存したファイルのパス

        Raises:
            StorageError: 書き込みエラー
        """
        directory = os.path.dirname(os.path.abspath(self.path))
        payload = {AppConstants.STORE_KEY: records}
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix='.linemarks-', suffix='.tmp', dir=directory)
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(payload, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Could not write bookmarks to {self.path}: {e}") from e
        return self.path
