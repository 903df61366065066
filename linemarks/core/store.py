import logging
from typing import Optional, List, Dict, Any, Iterable

from .model import Entry, Bookmark, Group, entry_from_record

"""
エントリストア。
- `EntryStore` : ブックマークとグループを1本の順序付きリストで保持する

グループの子は「group フィールドがそのグループのラベルと一致するエントリ」を
ストア内の順序で並べたものであり、別のツリー構造は持たない。
"""

logger = logging.getLogger(__name__)


class EntryStore:
    """ブックマークとグループの順序付きコンテナ。ラベルはストア全体で一意。"""

    def __init__(self, entries: Optional[Iterable[Entry]] = None):
        self.entries: List[Entry] = list(entries or [])

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(list(self.entries))

    def add(self, entry: Optional[Entry]) -> None:
        """末尾に追加する。ラベルの重複チェックは呼び出し側の責任。"""
        if entry is not None:
            self.entries.append(entry)

    def remove(self, entry: Optional[Entry]) -> None:
        """同一オブジェクトを削除する（ラベル比較ではない）。"""
        for i, cur in enumerate(self.entries):
            if cur is entry:
                del self.entries[i]
                return

    def clear(self) -> None:
        self.entries.clear()

    def by_label(self, label: Optional[str]) -> Optional[Entry]:
        if label is None:
            return None
        for entry in self.entries:
            if entry.label == label:
                return entry
        return None

    def index_of(self, entry: Optional[Entry]) -> int:
        """ラベルで位置を探す。見つからない場合は -1。"""
        if entry is None:
            return -1
        for i, cur in enumerate(self.entries):
            if cur.label == entry.label:
                return i
        return -1

    def bookmarks_only(self) -> List[Bookmark]:
        return [e for e in self.entries if not e.is_group]

    def groups_only(self) -> List[Group]:
        return [e for e in self.entries if e.is_group]

    def is_label_used(self, label: str) -> bool:
        return any(e.label == label for e in self.entries)

    def ancestor_chain(self, entry: Entry) -> List[Entry]:
        """
        group の参照をたどり、親・祖父母…の順に返す。

        解決できない参照、または既に訪れたエントリに戻った時点で打ち切る。
        """
        chain: List[Entry] = []
        visited = {entry.label}
        current = entry
        while current is not None:
            parent = self.by_label(current.group)
            if parent is None or parent.label in visited:
                break
            chain.append(parent)
            visited.add(parent.label)
            current = parent
        return chain

    def children_of(self, label: Optional[str]) -> List[Entry]:
        """指定グループの直下のエントリ（None ならトップレベル）をストア順で返す。"""
        return [e for e in self.entries if e.group == label]

    def descendants_of(self, group: Entry) -> List[Entry]:
        """グループ配下のすべてのエントリ（入れ子のグループを含む）。"""
        return [e for e in self.entries
                if e is not group and any(a.label == group.label for a in self.ancestor_chain(e))]

    def serialize(self) -> List[Dict[str, Any]]:
        return [e.to_record() for e in self.entries]

    @classmethod
    def deserialize(cls, records: Optional[Iterable[Dict[str, Any]]]) -> "EntryStore":
        """
        永続化レコードのリストからストアを復元する。

        壊れたレコードは1件ずつ読み飛ばし、残りの読み込みは継続する。
        重複ラベルは後から出たものを捨て、存在しないグループへの参照と
        循環参照はトップレベルへ戻して不変条件を保つ。

        Args:
            records: `Entry.to_record` 形式の辞書の並び

        Returns:
            復元したストア
        """
        store = cls()
        for record in records or []:
            try:
                entry = entry_from_record(record)
            except ValueError as e:
                logger.warning("Skipping malformed record: %s", e)
                continue
            if store.is_label_used(entry.label):
                logger.warning("Skipping record with duplicate label '%s'", entry.label)
                continue
            store.add(entry)
        store._repair_group_references()
        return store

    def _repair_group_references(self) -> None:
        for entry in self.entries:
            if entry.group is None:
                continue
            parent = self.by_label(entry.group)
            if parent is None or not parent.is_group:
                logger.warning("Entry '%s' refers to unknown group '%s'; moved to top level",
                               entry.label, entry.group)
                entry.group = None
            elif any(a.label == entry.label for a in self.ancestor_chain(parent)) or parent is entry:
                logger.warning("Entry '%s' closes a group cycle; moved to top level", entry.label)
                entry.group = None
