import os
from typing import Optional, Dict, Any

"""
エントリモデル。
- `Bookmark` : ファイルの行を指すブックマーク
- `Group`    : ブックマークを整理するためのグループ
- `entry_from_record` / `Entry.to_record` : 永続化レコードとの相互変換
"""

# 永続化レコードのキー（旧バージョンのデータと互換）
KEY_LABEL = "label"
KEY_FILE_PATH = "filePath"
KEY_LINE_NUMBER = "lineNumber"
KEY_TEXT = "text"
KEY_GROUP = "group"
KEY_IS_EXPANDED = "isExpanded"

KNOWN_KEYS = (KEY_LABEL, KEY_FILE_PATH, KEY_LINE_NUMBER, KEY_TEXT, KEY_GROUP, KEY_IS_EXPANDED)
ANCHOR_KEYS = (KEY_FILE_PATH, KEY_LINE_NUMBER, KEY_TEXT)


def snippet_of(line_text: Optional[str]) -> str:
    """行テキストからキャッシュ用のスニペットを作る（前後の空白を除去）。"""
    return (line_text or "").strip()


class Entry:
    __slots__ = ("label", "group", "is_expanded", "extra")

    type = "entry"

    def __init__(self, label: str, group: Optional[str] = None, is_expanded: bool = False,
                 extra: Optional[Dict[str, Any]] = None):
        self.label = label
        self.group = group
        self.is_expanded = is_expanded
        # 未知のキーはそのまま保持して保存時に書き戻す
        self.extra = dict(extra or {})

    @property
    def is_group(self) -> bool:
        return False

    def describe(self) -> str:
        return self.label

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = dict(self.extra)
        record[KEY_LABEL] = self.label
        if self.group is not None:
            record[KEY_GROUP] = self.group
        record[KEY_IS_EXPANDED] = self.is_expanded
        return record

    def __repr__(self):
        return f"{self.__class__.__name__}(label='{self.label}', group={self.group!r})"


class Bookmark(Entry):
    """ファイル内の行 (file_path, line_number) を指すブックマーク。line_number は 0 始まり。"""
    __slots__ = ("file_path", "line_number", "text")

    type = "bookmark"

    def __init__(self, label: str, file_path: str, line_number: int, text: str = "",
                 group: Optional[str] = None, is_expanded: bool = False,
                 extra: Optional[Dict[str, Any]] = None):
        super().__init__(label, group, is_expanded, extra)
        self.file_path = file_path
        self.line_number = max(0, int(line_number))
        self.text = text

    def describe(self) -> str:
        """クイックピック用の表示文字列。行番号は 1 始まりで表示する。"""
        return f"{self.label} | {os.path.basename(self.file_path)}:{self.line_number + 1}"

    def to_record(self) -> Dict[str, Any]:
        record = super().to_record()
        record[KEY_FILE_PATH] = self.file_path
        record[KEY_LINE_NUMBER] = self.line_number
        record[KEY_TEXT] = self.text
        return record

    def __repr__(self):
        return (f"Bookmark(label='{self.label}', file_path='{self.file_path}', "
                f"line_number={self.line_number}, group={self.group!r})")


class Group(Entry):
    """ファイル情報を持たない整理用ノード。"""
    __slots__ = ()

    type = "group"

    @property
    def is_group(self) -> bool:
        return True


def entry_from_record(record: Dict[str, Any]) -> Entry:
    """
    永続化レコードから `Bookmark` または `Group` を生成する。

    filePath / lineNumber / text の3つがすべて無いレコードをグループとみなす
    （明示的な種別フィールドを持たない旧フォーマットとの互換のため）。

    Args:
        record: 永続化レコード

    Returns:
        生成したエントリ

    Raises:
        ValueError: ラベルが無い、またはアンカー情報が不完全なレコード
    """
    if not isinstance(record, dict):
        raise ValueError(f"record must be a mapping, got {type(record).__name__}")

    label = record.get(KEY_LABEL)
    if not isinstance(label, str) or not label.strip():
        raise ValueError("record has no label")

    group = record.get(KEY_GROUP)
    if group is not None and not isinstance(group, str):
        raise ValueError(f"record '{label}' has an invalid group reference")
    is_expanded = bool(record.get(KEY_IS_EXPANDED, False))
    extra = {k: v for k, v in record.items() if k not in KNOWN_KEYS}

    present = [k for k in ANCHOR_KEYS if record.get(k) is not None]
    if not present:
        return Group(label, group=group, is_expanded=is_expanded, extra=extra)

    file_path = record.get(KEY_FILE_PATH)
    line_number = record.get(KEY_LINE_NUMBER)
    if not isinstance(file_path, str) or not file_path:
        raise ValueError(f"record '{label}' has no file path")
    if isinstance(line_number, bool) or not isinstance(line_number, int):
        raise ValueError(f"record '{label}' has no valid line number")

    text = record.get(KEY_TEXT)
    return Bookmark(label, file_path, line_number, text if isinstance(text, str) else "",
                    group=group, is_expanded=is_expanded, extra=extra)
