"""
表示状態の導出
タブ・表示モード・個別展開からカードごとの表示内容を決める（I/Oなし）
"""
from typing import Iterable, List, Optional, Set

from ideavault.models import EvaluationResult, Idea

TABS = ("submit", "ideas")
VIEW_MODES = ("summary", "full")
SORT_ORDERS = ("newest", "highest_score", "most_innovative", "most_feasible")

# 並び替えに使うスコア
_SORT_KEYS = {
    "highest_score": "overall",
    "most_innovative": "innovation",
    "most_feasible": "feasibility",
}


def score_band(score: Optional[int]) -> Optional[str]:
    """スコアの色分け: 8以上 high、6以上 medium、それ未満 low"""
    if score is None:
        return None
    if score >= 8:
        return "high"
    if score >= 6:
        return "medium"
    return "low"


def _kpis(evaluation: EvaluationResult) -> dict:
    return {
        name: {"score": getattr(evaluation, name), "band": score_band(getattr(evaluation, name))}
        for name in ("innovation", "feasibility", "impact", "overall")
    }


class ViewState:
    """ユーザーが切り替える表示設定。レジストリやオーケストレーターには触れない"""

    def __init__(self, tab: str = "submit", view_mode: str = "summary", sort_order: str = "newest"):
        self._expanded: Set[str] = set()
        self.set_tab(tab)
        self.set_view_mode(view_mode)
        self.set_sort_order(sort_order)

    @property
    def expanded(self) -> frozenset:
        return frozenset(self._expanded)

    def set_tab(self, tab: str) -> None:
        if tab not in TABS:
            raise ValueError(f"Unknown tab: {tab}")
        self.tab = tab

    def set_view_mode(self, view_mode: str) -> None:
        if view_mode not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {view_mode}")
        self.view_mode = view_mode

    def set_sort_order(self, sort_order: str) -> None:
        if sort_order not in SORT_ORDERS:
            raise ValueError(f"Unknown sort order: {sort_order}")
        self.sort_order = sort_order

    def toggle(self, idea_id: str) -> bool:
        """個別展開を切り替える。切り替え後に展開されていればTrue"""
        if idea_id in self._expanded:
            self._expanded.discard(idea_id)
            return False
        self._expanded.add(idea_id)
        return True

    def is_full(self, idea_id: str) -> bool:
        return self.view_mode == "full" or idea_id in self._expanded

    def _sorted(self, records: Iterable[Idea]) -> List[Idea]:
        records = list(records)
        field = _SORT_KEYS.get(self.sort_order)
        if field is None:
            return records

        def key(idea: Idea):
            score = getattr(idea.evaluation, field) if idea.evaluation else None
            # スコアなしは末尾（安定ソートで元の順序を維持）
            return (score is None, -(score or 0))

        return sorted(records, key=key)

    def card(self, idea: Idea) -> dict:
        """1件分の表示内容"""
        full = self.is_full(idea.id)
        card = {
            "id": idea.id,
            "title": idea.title,
            "description": idea.description,
            "category": idea.category.value if idea.category else None,
            "timestamp": idea.timestamp,
            "status": idea.status.value,
            "display": "full" if full else "summary",
            "expanded": idea.id in self._expanded,
        }
        evaluation = idea.evaluation
        if evaluation is None:
            card["evaluation"] = None
        elif full:
            card["evaluation"] = evaluation.model_dump(by_alias=True)
        elif evaluation.has_scores():
            card["evaluation"] = {"kpis": _kpis(evaluation)}
        else:
            # 失敗プレースホルダーはサマリーだけ見せる
            card["evaluation"] = {"summary": evaluation.summary}
        return card

    def derive(self, records: Iterable[Idea]) -> List[dict]:
        return [self.card(idea) for idea in self._sorted(records)]
