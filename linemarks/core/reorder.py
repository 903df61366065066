import logging
from typing import Optional, List, Sequence

from .model import Entry
from .store import EntryStore

"""
並べ替え／親変更モジュール。
- `HierarchyReorderer` : ドラッグ＆ドロップ相当の移動とグループへの出し入れ

兄弟間の順序はストアの並び順そのもので表現される。
"""

logger = logging.getLogger(__name__)


class HierarchyReorderer:
    """`EntryStore` の並び順と group 割り当てを変更する。"""

    def __init__(self, store: EntryStore):
        self.store = store

    def move_before(self, source: Optional[Entry], target: Optional[Entry]) -> None:
        """source を取り除き、target の直前に挿入し直す。"""
        if source is None or target is None:
            return
        entries = self.store.entries
        source_idx = self.store.index_of(source)
        target_idx = self.store.index_of(target)
        if source_idx == -1 or target_idx == -1 or source_idx == target_idx:
            return

        moving = entries.pop(source_idx)
        # source が target より前にあった場合、取り除いた分だけ target の位置が1つ詰まる
        if source_idx < target_idx:
            target_idx -= 1
        entries.insert(target_idx, moving)

    def move_many_before(self, sources: Sequence[Entry], target: Optional[Entry]) -> None:
        """sources を元の相対順序のまま target の直前に並べる。"""
        # 各要素は target の直前、つまり先に移動した要素の直後に入る
        for source in list(sources):
            self.move_before(source, target)

    def move_to_back(self, source: Optional[Entry]) -> None:
        """
        source を末尾の要素の直前へ移動する。

        末尾そのものではなく「最後の要素の直前」になる点に注意。
        要素が1つ以下なら並べ替える意味が無いので何もしない。
        """
        if source is None or len(self.store) <= 1:
            return
        self.move_before(source, self.store.entries[-1])

    def move_many_to_back(self, sources: Sequence[Entry]) -> None:
        for source in list(sources):
            self.move_to_back(source)

    def would_create_cycle(self, sources: Sequence[Entry], target: Entry) -> bool:
        """sources を target の位置へ動かすとグループが自分自身の子孫になるかどうか。"""
        ancestors = {a.label for a in self.store.ancestor_chain(target)}
        for source in sources:
            if source.label in ancestors:
                return True
            if target.is_group and source.label == target.label:
                return True
        return False

    def reparent(self, sources: Sequence[Entry], target: Optional[Entry]) -> bool:
        """
        ドロップ操作を適用する。

        Args:
            sources: 移動するエントリ
            target: ドロップ先。None の場合は何も無い場所へのドロップ（トップレベルへ移動）

        Returns:
            変更を適用した場合 True、循環になるため拒否した場合 False
        """
        sources = [s for s in sources if s is not None]
        if not sources:
            return False

        if target is None:
            for source in sources:
                source.group = None
            self.move_many_to_back(sources)
            return True

        if self.store.index_of(target) == -1:
            logger.info("Drop target '%s' is not in the store", target.label)
            return False

        if self.would_create_cycle(sources, target):
            logger.warning("Cannot move %s into '%s': a group cannot contain itself",
                           [s.label for s in sources], target.label)
            return False

        new_group = target.label if target.is_group else target.group
        for source in sources:
            source.group = new_group
        self.move_many_before(sources, target)
        return True

    def ordered_labels(self) -> List[str]:
        return [e.label for e in self.store.entries]
