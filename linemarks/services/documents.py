import os
import logging
from typing import Optional, List, Sequence, Callable

from linemarks.core.reanchor import EditOperation

"""
ホストエディタ側のイベントを再アンカー処理の入力に変換するアダプタ群。
- `TextChange`   : 範囲 + 挿入テキストで表した1件の変更
- `TextDocument` : メモリ上の行データ
- `FileDocument` : ディスク上のファイルを読む行ソース
- `FileRename`   : ファイル／ディレクトリの名前変更
"""

logger = logging.getLogger(__name__)


class TextChange:
    """ホストの変更イベント1件（変更前の座標系）。"""
    __slots__ = ("start_line", "start_character", "end_line", "end_character", "inserted_text")

    def __init__(self, start_line: int, start_character: int, end_line: int, end_character: int,
                 inserted_text: str = ""):
        self.start_line = start_line
        self.start_character = start_character
        self.end_line = end_line
        self.end_character = end_character
        self.inserted_text = inserted_text or ""

    @property
    def inserted_line_count(self) -> int:
        return self.inserted_text.count("\n")

    def to_operation(self) -> EditOperation:
        return EditOperation(self.start_line, self.end_line, self.inserted_line_count,
                             start_character=self.start_character)


def operations_from_changes(changes: Sequence[TextChange]) -> List[EditOperation]:
    """変更を与えられた順のまま `EditOperation` に変換する（並べ替えない）。"""
    return [change.to_operation() for change in changes]


class TextDocument:
    """行のリストで表したドキュメント。"""

    def __init__(self, text: str = ""):
        self.lines = text.split("\n")

    @classmethod
    def from_lines(cls, lines: Sequence[str]) -> "TextDocument":
        doc = cls()
        doc.lines = list(lines)
        return doc

    def line_at(self, line_number: int) -> Optional[str]:
        if 0 <= line_number < len(self.lines):
            return self.lines[line_number].rstrip("\r")
        return None


class FileDocument(TextDocument):
    """ディスク上のファイルを行ソースとして読む。読めない場合は空のドキュメント。"""

    def __init__(self, path: str, encoding: str = 'utf-8'):
        self.path = path
        try:
            with open(path, 'r', encoding=encoding, errors='replace') as f:
                text = f.read()
        except OSError as e:
            logger.warning("Could not read %s: %s", path, e)
            text = ""
        super().__init__(text)


class FileRename:
    """
    名前変更イベント1件。

    is_directory が None の場合は、適用前に種別を問い合わせる必要がある。
    """
    __slots__ = ("old_path", "new_path", "is_directory")

    def __init__(self, old_path: str, new_path: str, is_directory: Optional[bool] = None):
        self.old_path = old_path
        self.new_path = new_path
        self.is_directory = is_directory

    def __repr__(self):
        return f"FileRename({self.old_path!r} -> {self.new_path!r}, is_directory={self.is_directory})"


def path_is_directory(path: str) -> bool:
    """名前変更後のパスがディレクトリかどうかを問い合わせる既定の実装。"""
    return os.path.isdir(path)


def resolve_rename_kinds(renames: Sequence[FileRename],
                         is_directory: Callable[[str], bool] = path_is_directory) -> List[FileRename]:
    """
    すべての名前変更について種別を確定させる。

    バッチ内のすべての問い合わせが終わってから変更を適用するため、
    結果は新しい `FileRename` のリストとして返す。
    """
    resolved = []
    for rename in renames:
        kind = rename.is_directory
        if kind is None:
            try:
                kind = bool(is_directory(rename.new_path))
            except OSError as e:
                logger.warning("Could not stat %s, treating it as a file: %s", rename.new_path, e)
                kind = False
        resolved.append(FileRename(rename.old_path, rename.new_path, kind))
    return resolved
