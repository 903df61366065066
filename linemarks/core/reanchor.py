import logging
from typing import List, Sequence, Set

from .model import Bookmark, snippet_of
from .store import EntryStore

"""
再アンカー処理。
- `EditOperation` : 1件の行置換（変更前の座標系）
- `Reanchorer`    : 編集バッチを適用してブックマークの行番号とテキストを更新する

行頭から編集開始位置までが空白かどうかで「ブックマークの行を押し下げる」か
「行内に入力した」かを判断している。これは経験則であり、差分アルゴリズムではない。
"""

logger = logging.getLogger(__name__)


class EditOperation:
    """
    行 [start_line, end_line] を inserted_line_count 行で置き換える編集。

    行番号はホストの変更イベントが報告する変更前の座標系で表す。
    """
    __slots__ = ("start_line", "start_character", "end_line", "inserted_line_count")

    def __init__(self, start_line: int, end_line: int, inserted_line_count: int, start_character: int = 0):
        if end_line < start_line:
            raise ValueError("end_line must be >= start_line")
        self.start_line = start_line
        self.end_line = end_line
        self.inserted_line_count = inserted_line_count
        self.start_character = start_character

    @property
    def replaced_line_count(self) -> int:
        return self.end_line - self.start_line

    @property
    def delta(self) -> int:
        return self.inserted_line_count - self.replaced_line_count

    def __repr__(self):
        return (f"EditOperation(start_line={self.start_line}, end_line={self.end_line}, "
                f"inserted_line_count={self.inserted_line_count}, start_character={self.start_character})")


class ReanchorResult:
    """1回の再アンカー処理の結果"""

    def __init__(self):
        self.moved: List[Bookmark] = []
        self.refreshed: List[Bookmark] = []
        self.removed: List[Bookmark] = []

    @property
    def changed(self) -> bool:
        return bool(self.moved or self.refreshed or self.removed)


class Reanchorer:
    """ドキュメント編集に追従してブックマークを再配置する。"""

    def __init__(self, store: EntryStore):
        self.store = store

    def apply(self, file_path: str, operations: Sequence[EditOperation], document) -> ReanchorResult:
        """
        1つのドキュメントに対する編集バッチを適用する。

        Args:
            file_path: 編集されたファイルのパス
            operations: 編集操作の並び（与えられた順に適用する）
            document: `line_at(n) -> Optional[str]` を持つ編集後のドキュメント

        Returns:
            移動・更新・削除されたブックマークをまとめた `ReanchorResult`
        """
        result = ReanchorResult()
        bookmarks = [b for b in self.store.bookmarks_only() if b.file_path == file_path]
        if not bookmarks:
            return result

        removed: Set[str] = set()
        for op in operations:
            live = [b for b in bookmarks if b.label not in removed]
            # 先頭行が削除可能かどうかは、この操作の開始時点の状態で判定する
            start_occupied = any(b.line_number == op.start_line for b in live)
            prefix_empty = self._prefix_is_empty(document, op)
            for bookmark in live:
                if self._apply_one(bookmark, op, document, prefix_empty, start_occupied, result):
                    removed.add(bookmark.label)

        for bookmark in result.removed:
            self.store.remove(bookmark)
        if result.changed:
            logger.debug("Reanchored %s: moved=%d refreshed=%d removed=%d", file_path,
                         len(result.moved), len(result.refreshed), len(result.removed))
        return result

    def _apply_one(self, bookmark: Bookmark, op: EditOperation, document,
                   prefix_empty: bool, start_occupied: bool, result: ReanchorResult) -> bool:
        """1件のブックマークに1件の操作を適用する。削除した場合 True を返す。"""
        d = op.delta
        line = bookmark.line_number

        if d == 0:
            if op.start_line <= line <= op.end_line:
                self._refresh(bookmark, document, result)
            return False

        if d > 0:
            shift_from = op.start_line if prefix_empty else op.start_line + 1
            if line >= shift_from:
                self._move(bookmark, line + d, result)
            self._refresh_if_inside(bookmark, op, document, result)
            return False

        if line < op.start_line:
            return False

        shift_up = -d
        deletable = prefix_empty or not start_occupied
        delete_from = op.start_line if deletable else op.start_line + 1
        shift_from = delete_from + shift_up

        if delete_from <= line < shift_from:
            result.removed.append(bookmark)
            return True
        if line >= shift_from:
            self._move(bookmark, line - shift_up, result)
        self._refresh_if_inside(bookmark, op, document, result)
        return False

    @staticmethod
    def _prefix_is_empty(document, op: EditOperation) -> bool:
        if op.start_character <= 0:
            return True
        line_text = document.line_at(op.start_line)
        if line_text is None:
            return True
        return line_text[:op.start_character].strip() == ""

    @staticmethod
    def _move(bookmark: Bookmark, new_line: int, result: ReanchorResult) -> None:
        bookmark.line_number = max(0, new_line)
        if bookmark not in result.moved:
            result.moved.append(bookmark)

    def _refresh_if_inside(self, bookmark: Bookmark, op: EditOperation, document, result: ReanchorResult) -> None:
        if op.start_line <= bookmark.line_number <= op.start_line + op.inserted_line_count:
            self._refresh(bookmark, document, result)

    @staticmethod
    def _refresh(bookmark: Bookmark, document, result: ReanchorResult) -> None:
        line_text = document.line_at(bookmark.line_number)
        # 行が存在しない（ファイルが短くなった）場合は以前のテキストを残す
        if line_text is None:
            return
        bookmark.text = snippet_of(line_text)
        if bookmark not in result.refreshed:
            result.refreshed.append(bookmark)
