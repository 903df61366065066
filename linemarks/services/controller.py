import logging
import threading
from typing import Optional, List, Sequence, Callable

from linemarks.core.model import Bookmark, Group, Entry, snippet_of
from linemarks.core.store import EntryStore
from linemarks.core.reanchor import Reanchorer, ReanchorResult
from linemarks.core.reorder import HierarchyReorderer
from linemarks.core.utils import is_valid_label, is_under_path
from linemarks.services.documents import (
    TextChange, FileRename, operations_from_changes, resolve_rename_kinds, path_is_directory,
)

"""
ブックマーク操作のコントローラ。
ユーザー操作とホストからのイベント（編集・名前変更・削除・ドロップ）を受けてストアを更新し、
変更があれば一度だけ保存して表示側へ更新を通知する。
"""


class BookmarksController:
    """
    ストア・再アンカー・並べ替えをまとめて扱うクラス。

    Args:
        repository: `load()` / `save(records)` を持つ永続化コラボレータ（None なら保存しない）
        logger: ロガー（オプション）
    """

    def __init__(self, repository=None, logger: Optional[logging.Logger] = None):
        self.repository = repository
        self.logger = logger or logging.getLogger(__name__)
        self.store = EntryStore()
        self.reanchorer = Reanchorer(self.store)
        self.reorderer = HierarchyReorderer(self.store)
        self._refresh_listeners: List[Callable[[], None]] = []
        # 各操作を丸ごと排他する（スレッドから呼ばれるホスト向け）
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # 永続化と通知
    # ------------------------------------------------------------------

    def add_refresh_listener(self, callback: Callable[[], None]) -> None:
        self._refresh_listeners.append(callback)

    def refresh(self) -> None:
        for callback in list(self._refresh_listeners):
            callback()

    def load(self) -> int:
        """保存済みのブックマークを読み込む。壊れたレコードは読み飛ばす。"""
        with self._lock:
            records = self.repository.load() if self.repository is not None else []
            loaded = EntryStore.deserialize(records)
            self.store.entries[:] = loaded.entries
            self.logger.info("Loaded %d entries", len(self.store))
        self.refresh()
        return len(self.store)

    def save(self) -> None:
        if self.repository is not None:
            self.repository.save(self.store.serialize())

    def _commit(self) -> None:
        self.save()
        self.refresh()

    # ------------------------------------------------------------------
    # ユーザー操作
    # ------------------------------------------------------------------

    def _check_new_label(self, label: Optional[str]) -> bool:
        if not is_valid_label(label):
            self.logger.info("Rejected empty label")
            return False
        if self.store.is_label_used(label):
            self.logger.warning("Label <%s> already exists", label)
            return False
        return True

    def _check_group(self, group: Optional[str]) -> bool:
        if group is None:
            return True
        parent = self.store.by_label(group)
        if parent is None or not parent.is_group:
            self.logger.warning("Group <%s> does not exist", group)
            return False
        return True

    def add_bookmark(self, label: str, file_path: str, line_number: int, document=None,
                     text: Optional[str] = None, group: Optional[str] = None) -> Optional[Bookmark]:
        """
        ブックマークを追加する。

        Args:
            label: 一意なラベル
            file_path: ファイルのパス
            line_number: 0 始まりの行番号
            document: `line_at` を持つ行ソース（text を省略した場合に使う）
            text: キャッシュするテキスト（オプション）
            group: 追加先のグループのラベル（オプション）

        Returns:
            追加したブックマーク。ラベルが空・重複、またはグループが無い場合は None
        """
        with self._lock:
            if not self._check_new_label(label) or not self._check_group(group):
                return None
            if text is None and document is not None:
                text = document.line_at(line_number)
            bookmark = Bookmark(label, file_path, line_number, snippet_of(text), group=group)
            self.store.add(bookmark)
            self.logger.info("Bookmark <%s> added at %s:%d", label, file_path, bookmark.line_number + 1)
            self._commit()
            return bookmark

    def add_group(self, label: str, group: Optional[str] = None) -> Optional[Group]:
        with self._lock:
            if not self._check_new_label(label) or not self._check_group(group):
                return None
            new_group = Group(label, group=group)
            self.store.add(new_group)
            self.logger.info("Group <%s> added", label)
            self._commit()
            return new_group

    def rename_label(self, label: str, new_label: str) -> bool:
        """ラベルを変更する。グループの場合は直下の子の group も書き換える。"""
        with self._lock:
            entry = self.store.by_label(label)
            if entry is None or not self._check_new_label(new_label):
                return False
            if entry.is_group:
                for child in self.store.children_of(entry.label):
                    child.group = new_label
            entry.label = new_label
            self.logger.info("Renamed <%s> to <%s>", label, new_label)
            self._commit()
            return True

    def remove(self, label: Optional[str] = None) -> bool:
        """
        エントリを削除する。グループは配下（入れ子を含む）ごと削除する。
        label が None の場合はすべて削除する。
        """
        with self._lock:
            if label is None:
                self.store.clear()
                self.logger.info("Cleared all bookmarks")
                self._commit()
                return True

            entry = self.store.by_label(label)
            if entry is None:
                return False
            if entry.is_group:
                for child in self.store.descendants_of(entry):
                    self.store.remove(child)
            self.store.remove(entry)
            self.logger.info("Removed <%s>", label)
            self._commit()
            return True

    def set_expanded(self, label: str, expanded: bool) -> bool:
        with self._lock:
            entry = self.store.by_label(label)
            if entry is None:
                return False
            entry.is_expanded = bool(expanded)
            self._commit()
            return True

    def handle_drop(self, source_labels: Sequence[str], target_label: Optional[str] = None) -> bool:
        """
        ドラッグ＆ドロップを適用する。target_label が None なら何も無い場所へのドロップ。

        Returns:
            適用した場合 True
        """
        with self._lock:
            sources = [self.store.by_label(label) for label in source_labels]
            if not sources or any(s is None for s in sources):
                self.logger.info("Drop ignored: unknown source in %s", list(source_labels))
                return False
            target = None
            if target_label is not None:
                target = self.store.by_label(target_label)
                if target is None:
                    self.logger.info("Drop ignored: unknown target <%s>", target_label)
                    return False
            if not self.reorderer.reparent(sources, target):
                return False
            self._commit()
            return True

    # ------------------------------------------------------------------
    # ホストからのイベント
    # ------------------------------------------------------------------

    def on_text_changed(self, file_path: str, changes: Sequence[TextChange], document) -> ReanchorResult:
        """ドキュメントの編集に合わせてブックマークを再アンカーする。"""
        with self._lock:
            result = self.reanchorer.apply(file_path, operations_from_changes(changes), document)
            for bookmark in result.removed:
                self.logger.info("Bookmark <%s> removed: its line was deleted", bookmark.label)
            if result.changed:
                self._commit()
            return result

    def on_files_renamed(self, renames: Sequence[FileRename],
                         is_directory: Callable[[str], bool] = path_is_directory) -> int:
        """
        ファイル／ディレクトリの名前変更に追従する。

        すべての種別を問い合わせてから一括で適用し、保存は一度だけ行う。

        Returns:
            パスを書き換えたブックマークの数
        """
        resolved = resolve_rename_kinds(renames, is_directory)
        with self._lock:
            updated = 0
            for rename in resolved:
                for bookmark in self.store.bookmarks_only():
                    if rename.is_directory and is_under_path(bookmark.file_path, rename.old_path):
                        bookmark.file_path = rename.new_path + bookmark.file_path[len(rename.old_path):]
                        updated += 1
                    elif bookmark.file_path == rename.old_path:
                        bookmark.file_path = rename.new_path
                        updated += 1
            if updated:
                self.logger.info("Updated %d bookmark path(s) after rename", updated)
                self._commit()
            return updated

    def on_files_deleted(self, paths: Sequence[str]) -> int:
        """削除されたファイル、または削除されたディレクトリ配下のブックマークを削除する。"""
        with self._lock:
            removed = 0
            for path in paths:
                for bookmark in self.store.bookmarks_only():
                    if is_under_path(bookmark.file_path, path):
                        self.store.remove(bookmark)
                        removed += 1
            if removed:
                self.logger.info("Removed %d bookmark(s) of deleted files", removed)
                self._commit()
            return removed

    # ------------------------------------------------------------------
    # 参照系
    # ------------------------------------------------------------------

    def children_of(self, label: Optional[str] = None) -> List[Entry]:
        return self.store.children_of(label)

    def bookmark_descriptions(self) -> List[str]:
        return [b.describe() for b in self.store.bookmarks_only()]

    def find_by_description(self, description: Optional[str]) -> Optional[Bookmark]:
        """クイックピックで選ばれた文字列からブックマークを探す。"""
        for bookmark in self.store.bookmarks_only():
            if bookmark.describe() == description:
                return bookmark
        return None
