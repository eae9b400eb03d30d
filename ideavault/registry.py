"""
アイデアレジストリ
id をキーにしたメモリ上の唯一の正本。UIはここのスナップショットだけを見る
"""
from typing import Dict, Iterable, List, Optional, Tuple

from ideavault.errors import RegistryError
from ideavault.models import EvaluationResult, Idea, IdeaStatus


class IdeaRegistry:
    """
    アイデアの表（新しい順）

    変更は必ずメソッド経由で行い、新しい表を組み立ててから一度に差し替える。
    途中まで適用された状態が読み手から見えることはない。
    """

    def __init__(self, records: Iterable[Idea] = ()):
        self._order: List[str] = []
        self._records: Dict[str, Idea] = {}
        for record in records:
            self.insert_new(record)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, idea_id: str) -> bool:
        return idea_id in self._records

    def get(self, idea_id: str) -> Optional[Idea]:
        return self._records.get(idea_id)

    def snapshot(self) -> Tuple[Idea, ...]:
        """現在の一覧（新しい順）"""
        records = self._records
        return tuple(records[i] for i in self._order)

    def ids_with_status(self, *statuses: IdeaStatus) -> List[str]:
        return [i for i in self._order if self._records[i].status in statuses]

    def _swap(self, order: List[str], records: Dict[str, Idea]) -> None:
        self._order = order
        self._records = records

    def replace_all(self, incoming: Iterable[Idea]) -> None:
        """
        一覧を再読み込みした結果をマージする

        - ローカルにないレコードは追加
        - 同じ id で受信側に評価がなければ、ローカルのステータス・評価を維持
          （評価中のアイデアが古い一覧で巻き戻されないように）
        - 受信側に評価があれば受信側を採用
        - 受信側にないローカルのレコードは削除せず先頭に残す

        Args:
            incoming: ストアから取得したレコード（取得順）
        """
        merged: Dict[str, Idea] = {}
        incoming_order: List[str] = []
        for record in incoming:
            if record.id in merged:
                print(f"[Registry] duplicate id in list payload skipped: {record.id}")
                continue
            record = record.with_derived_status()
            local = self._records.get(record.id)
            if local is not None and record.evaluation is None:
                record = record.model_copy(update={
                    "status": local.status,
                    "evaluation": local.evaluation,
                })
            merged[record.id] = record
            incoming_order.append(record.id)

        local_only = [i for i in self._order if i not in merged]
        for idea_id in local_only:
            merged[idea_id] = self._records[idea_id]

        self._swap(local_only + incoming_order, merged)

    def insert_new(self, record: Idea) -> None:
        """新規作成されたアイデアを先頭に追加"""
        if record.id in self._records:
            raise RegistryError(f"id が重複しています: {record.id}")
        records = dict(self._records)
        records[record.id] = record
        self._swap([record.id] + self._order, records)

    def _replace(self, record: Idea) -> None:
        records = dict(self._records)
        records[record.id] = record
        self._swap(self._order, records)

    def mark_evaluating(self, idea_id: str) -> Optional[Idea]:
        """評価中に切り替える（評価は外す）。存在しなければ None"""
        local = self._records.get(idea_id)
        if local is None:
            return None
        updated = local.model_copy(update={
            "status": IdeaStatus.EVALUATING,
            "evaluation": None,
        })
        self._replace(updated)
        return updated

    def merge_evaluation(self, idea_id: str, result: EvaluationResult, outcome: IdeaStatus) -> bool:
        """
        評価結果とステータスを同時に反映する

        Args:
            idea_id: 対象のid
            result: 評価結果（失敗時はプレースホルダー）
            outcome: IdeaStatus.EVALUATED または IdeaStatus.ERROR

        Returns:
            反映できた場合はTrue。id が存在しない場合はFalse（例外にはしない）
        """
        if outcome == IdeaStatus.EVALUATED:
            if not result.has_scores():
                raise ValueError("evaluated にはスコア4つが必要です")
        elif outcome == IdeaStatus.ERROR:
            if not result.is_placeholder():
                result = EvaluationResult.failure(result.summary)
        else:
            raise ValueError(f"outcome が不正です: {outcome}")

        local = self._records.get(idea_id)
        if local is None:
            # 並行した再読み込みで消えた場合など。更新は捨てる
            print(f"[Registry] merge target not found, update dropped: {idea_id}")
            return False

        self._replace(local.model_copy(update={"status": outcome, "evaluation": result}))
        return True
